# -*- coding: utf-8 -*-
"""
Flask integration

    db = SQLAlchemy(app)
    adapter = FlaskAdapter()
    adapter.init_app(app)
    crud = CrudController(ModelRegistry.from_metadata(db.metadata), adapter)

    app.add_url_rule("/users", view_func=adapter.view(crud.collection_response(crud.index("users"))))

The request context passed to the actions is the flask request, the contextual store is flask.g
"""
import logging
from functools import wraps
from typing import Any, Callable, Mapping, Optional

from flask import Flask, Response, current_app, g, jsonify, make_response, request

import sacrud
from ..config import get_config
from ..errors import CrudError
from .base import ContextAdapter


def handle_crud_error(error: CrudError) -> Response:
    """
    Format the CrudError as a json error document with the embedded status code
    """
    return make_response(jsonify(error.to_dict()), error.status_code)


class FlaskAdapter(ContextAdapter):
    """
    :param db: flask_sqlalchemy.SQLAlchemy instance, defaults to the extension registered on the current app
    """

    def __init__(self, db: Any = None) -> None:
        self.db = db

    def init_app(self, app: Flask) -> None:
        """
        Load the CRUD settings from the app config and register the error handler
        """
        if not isinstance(app, Flask):  # pragma: no cover
            raise TypeError("'app' should be Flask.")
        if app.config.get("DEBUG", False):
            sacrud.log.setLevel(logging.DEBUG)
        sacrud.CRUD.configure(**app.config)
        app.register_error_handler(CrudError, handle_crud_error)

    def use_store(self, c: Any) -> Any:
        db = self.db if self.db is not None else current_app.extensions["sqlalchemy"]
        return db.session

    def get(self, c: Any, key: str) -> Any:
        return g.get(key)

    def set(self, c: Any, key: str, value: Any) -> None:
        setattr(g, key, value)

    def get_route_params(self, c: Any) -> Mapping[str, Any]:
        return dict(request.view_args or {})

    def get_request_body(self, c: Any) -> Any:
        return request.get_json(silent=True)

    def respond(self, c: Any, body: Any, status_code: Optional[int] = None) -> Response:
        if status_code is None:
            status_code = get_config("DEFAULT_STATUS_CODE")
        return make_response(jsonify(body), status_code)

    def view(self, handler: Callable[[Any], Any]) -> Callable[..., Any]:
        """
        Wrap a crud handler into a flask view function,
        the route parameters are read from the request so the view arguments are ignored
        """

        @wraps(handler)
        def view_func(**kwargs: Any) -> Any:
            return current_app.ensure_sync(handler)(request._get_current_object())

        return view_func
