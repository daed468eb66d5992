# -*- coding: utf-8 -*-
"""
FastAPI integration

    adapter = FastAPIAdapter(session_factory=sessionmaker(engine))
    install_crud_exception_handlers(app)
    crud = CrudController(ModelRegistry.from_metadata(metadata), adapter)

    app.add_api_route("/users/{user_id}", adapter.endpoint(crud.response(crud.show("users"))), methods=["GET"])

The request context passed to the actions is the starlette request, the contextual store is request.state (keys prefixed with "crud_")
"""
import json
from typing import Any, Callable, Mapping, Optional

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..config import get_config
from ..errors import ConfigurationError, CrudError, ValidationError
from ..util import maybe_await
from .base import ContextAdapter

_SESSION_OWNER_KEY = "_sacrud_session_owner"
# contextual store keys, kept apart from request.state.db
_STATE_PREFIX = "crud_"


def install_crud_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CrudError)
    async def _crud_error_handler(_request: Request, exc: CrudError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


class FastAPIAdapter(ContextAdapter):
    """
    :param session_factory: callable returning a (sync or async) sqlalchemy session, the session is closed when
        the endpoint returns. When not set, the session must be provided as request.state.db (eg. by a dependency)
    """

    def __init__(self, session_factory: Optional[Callable[[], Any]] = None) -> None:
        self.session_factory = session_factory

    def use_store(self, c: Request) -> Any:
        db = getattr(c.state, "db", None)
        if db is not None:
            return db
        if self.session_factory is None:
            raise ConfigurationError("No database session: set request.state.db or provide a session_factory")
        db = c.state.db = self.session_factory()
        setattr(c.state, _SESSION_OWNER_KEY, True)
        return db

    def get(self, c: Request, key: str) -> Any:
        return getattr(c.state, _STATE_PREFIX + key, None)

    def set(self, c: Request, key: str, value: Any) -> None:
        setattr(c.state, _STATE_PREFIX + key, value)

    def get_route_params(self, c: Request) -> Mapping[str, Any]:
        return dict(c.path_params)

    async def get_request_body(self, c: Request) -> Any:
        body = await c.body()
        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ValidationError(f"Invalid JSON body: {exc}") from exc

    def respond(self, c: Request, body: Any, status_code: Optional[int] = None) -> JSONResponse:
        if status_code is None:
            status_code = get_config("DEFAULT_STATUS_CODE")
        return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

    async def close_session(self, c: Request) -> None:
        if not getattr(c.state, _SESSION_OWNER_KEY, False):
            return
        setattr(c.state, _SESSION_OWNER_KEY, False)
        await maybe_await(c.state.db.close())

    def endpoint(self, handler: Callable[[Any], Any]) -> Callable[[Request], Any]:
        """
        Wrap a crud handler into a fastapi endpoint
        """

        async def endpoint(request: Request) -> Response:
            try:
                return await maybe_await(handler(request))
            finally:
                await self.close_session(request)

        endpoint.__name__ = getattr(handler, "__name__", "endpoint")
        return endpoint
