# -*- coding: utf-8 -*-
#
# controller.py: the crud actions (index, create, show, update, destroy)
#
"""
The CrudController turns the registered model schemas into request handlers:

    crud = CrudController({"users": users_table, "things": things_table}, adapter)

    list_users = crud.collection_response(crud.index("users"))
    create_user = crud.response(crud.create("users", attributes={"user_id": "uuid", "name": "payload"}), status_code=201)
    show_user = crud.response(crud.show("users"), omit=["password"])

The actions are separate from the response so that the actions can be composed
before being rendered into the response. Every action and handler is a coroutine function
taking the request context (whatever the adapter understands) as its first argument.

Nested resources are scoped automatically: all route parameters are applied as
equality filters, eg. for /users/<user_id>/things/<thing_id> the things are
filtered on user_id and thing_id. Use the `scopes` option to restrict the
route parameters that are used.
"""
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite

import sacrud
from .attributes import AttributeResolver
from .config import get_config
from .errors import ConfigurationError, NotFoundError, ValidationError
from .filters import compose
from .options import ConflictHook, CreateOptions, LoadOptions, QueryHook, RenderFn, ResponseOptions, UpdateOptions, WhereOption
from .response import shape, shape_collection
from .schema import ModelRegistry, ModelSchema
from .util import maybe_await

# insert constructs that support conflict clauses
DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
    "mysql": mysql.insert,
    "mariadb": mysql.insert,
}


def _dialect_name(db: Any) -> str:
    dialect = getattr(db, "dialect", None)
    if dialect is None:
        dialect = db.get_bind().dialect
    return dialect.name


class CrudController:
    """
    :param models: ModelRegistry or mapping of model name to model definition (see ModelRegistry)
    :param adapter: ContextAdapter
    """

    def __init__(self, models: Mapping, adapter: Any) -> None:
        self.models = models if isinstance(models, ModelRegistry) else ModelRegistry(models)
        self.adapter = adapter

    def singular_name(self, model: str, as_: Optional[str] = None) -> str:
        """
        Name of the contextual store key for a loaded `model` record
        The default is the model name without the trailing "s", irregular plurals need an explicit `as_`
        """
        if as_:
            return as_
        if get_config("REQUIRE_EXPLICIT_NAMES"):
            raise ConfigurationError(f'No name for "{model}" records, set the as_ option')
        if len(model) < 2 or not model.endswith("s"):
            raise ConfigurationError(f'Can\'t derive a singular name from "{model}", set the as_ option')
        return model[:-1]

    #
    # statement execution
    #
    @staticmethod
    async def _execute(db: Any, statement: Any) -> Any:
        return await maybe_await(db.execute(statement))

    @staticmethod
    async def _commit(db: Any) -> None:
        if not get_config("AUTO_COMMIT"):
            return
        commit = getattr(db, "commit", None)
        if commit is not None:
            await maybe_await(commit())

    async def _get_payload(self, c: Any, resolver: AttributeResolver) -> Any:
        if not resolver.needs_payload:
            return None
        return await maybe_await(self.adapter.get_request_body(c))

    @staticmethod
    def _insert(db: Any, schema: ModelSchema, record: Dict[str, Any], on_conflict: Optional[ConflictHook]) -> Any:
        if on_conflict is None:
            return insert(schema.table).values(record)
        dialect = _dialect_name(db)
        dialect_insert = DIALECT_INSERTS.get(dialect)
        if dialect_insert is None:
            raise ConfigurationError(f"on_conflict is not supported for {dialect} databases")
        return on_conflict(dialect_insert(schema.table).values(record))

    async def _load(self, c: Any, schema: ModelSchema, options: LoadOptions) -> Dict[str, Any]:
        db = self.adapter.use_store(c)
        statement = compose(c, self.adapter, options, select(schema.table).limit(1), schema.table)
        result = await self._execute(db, statement)
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(f"No {schema.name} record found")
        return dict(row)

    #
    # actions
    #
    def index(
        self,
        model: str,
        scopes: Optional[Sequence[str]] = None,
        where: Optional[WhereOption] = None,
        query: Optional[QueryHook] = None,
    ) -> Callable[[Any], Awaitable[Dict[str, Any]]]:
        """
        List the records matching the route parameter scopes and where clauses
        metadata.total_count is a placeholder (CRUD.TOTAL_COUNT), use the query hook to implement paging
        """
        schema = self.models[model]
        options = LoadOptions(scopes=scopes, where=where, query=query)

        async def action(c: Any) -> Dict[str, Any]:
            db = self.adapter.use_store(c)
            statement = compose(c, self.adapter, options, select(schema.table), schema.table)
            result = await self._execute(db, statement)
            data = [dict(row) for row in result.mappings().all()]
            return {"data": data, "metadata": {"total_count": get_config("TOTAL_COUNT")}}

        action.__name__ = f"{model}_index"
        return action

    def create(
        self,
        model: str,
        attributes: Mapping[str, Any],
        on_conflict: Optional[ConflictHook] = None,
    ) -> Callable[..., Awaitable[Optional[Dict[str, Any]]]]:
        """
        Insert a record built from the declared attributes, returns the inserted row
        (None when the conflict clause skipped the insert)

        :param attributes: mapping of column name to attribute source
        :param on_conflict: receives the dialect insert statement, eg.
            lambda stmt: stmt.on_conflict_do_nothing(index_elements=["user_id"])
        """
        schema = self.models[model]
        options = CreateOptions(attributes=attributes, on_conflict=on_conflict)
        resolver = AttributeResolver(schema, self.adapter, options.attributes)

        async def action(c: Any, args: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
            db = self.adapter.use_store(c)
            payload = await self._get_payload(c, resolver)
            record = await resolver.resolve(c, payload, args)

            sacrud.log.debug("inserting %s attributes %s", model, record)
            statement = self._insert(db, schema, resolver.bind(record), options.on_conflict).returning(*schema.table.c)
            if get_config("LOG_QUERIES"):
                sacrud.log.debug("%s query: %s", model, statement)
            result = await self._execute(db, statement)
            row = result.mappings().first()
            await self._commit(db)
            return dict(row) if row is not None else None

        action.__name__ = f"{model}_create"
        return action

    async def load(
        self,
        c: Any,
        model: str,
        scopes: Optional[Sequence[str]] = None,
        where: Optional[WhereOption] = None,
        query: Optional[QueryHook] = None,
        as_: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Load the first record matching the scopes and where clauses
        :raises NotFoundError: no record matches
        """
        options = LoadOptions(scopes=scopes, where=where, query=query, as_=as_)
        return await self._load(c, self.models[model], options)

    def loader(
        self,
        model: str,
        scopes: Optional[Sequence[str]] = None,
        where: Optional[WhereOption] = None,
        query: Optional[QueryHook] = None,
        as_: Optional[str] = None,
    ) -> Callable[..., Awaitable[Any]]:
        """
        Middleware-like step: load the record and keep it in the contextual store so
        that the following steps (show, destroy, custom "get" attributes) can use it
        """
        schema = self.models[model]
        options = LoadOptions(scopes=scopes, where=where, query=query, as_=as_)
        name = self.singular_name(model, options.as_)

        async def step(c: Any, call_next: Optional[Callable[[], Any]] = None) -> Any:
            data = await self._load(c, schema, options)
            self.adapter.set(c, name, data)
            if call_next is not None:
                return await maybe_await(call_next())
            return data

        step.__name__ = f"{model}_loader"
        return step

    def show(
        self,
        model: str,
        scopes: Optional[Sequence[str]] = None,
        where: Optional[WhereOption] = None,
        query: Optional[QueryHook] = None,
        as_: Optional[str] = None,
    ) -> Callable[[Any], Awaitable[Dict[str, Any]]]:
        """
        Return the record cached by a loader, or load it
        """
        schema = self.models[model]
        options = LoadOptions(scopes=scopes, where=where, query=query, as_=as_)
        name = self.singular_name(model, options.as_)

        async def action(c: Any) -> Dict[str, Any]:
            data = self.adapter.get(c, name)
            if data is None:
                data = await self._load(c, schema, options)
            return data

        action.__name__ = f"{model}_show"
        return action

    def update(
        self,
        model: str,
        attributes: Mapping[str, Any],
        scopes: Optional[Sequence[str]] = None,
        where: Optional[WhereOption] = None,
        query: Optional[QueryHook] = None,
        as_: Optional[str] = None,
    ) -> Callable[..., Awaitable[Dict[str, Any]]]:
        """
        Update the records matching the scopes and where clauses, returns the (first) updated row
        :raises NotFoundError: no record matches
        """
        schema = self.models[model]
        options = UpdateOptions(scopes=scopes, where=where, query=query, as_=as_, attributes=attributes)
        resolver = AttributeResolver(schema, self.adapter, options.attributes)

        async def action(c: Any, args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
            db = self.adapter.use_store(c)
            payload = await self._get_payload(c, resolver)
            record = await resolver.resolve(c, payload, args)
            if not record:
                raise ValidationError("Nothing to update")

            sacrud.log.debug("updating %s attributes %s", model, record)
            statement = compose(c, self.adapter, options, update(schema.table), schema.table)
            statement = statement.values(resolver.bind(record)).returning(*schema.table.c)
            result = await self._execute(db, statement)
            row = result.mappings().first()
            if row is None:
                raise NotFoundError(f"No {model} record to update")
            await self._commit(db)
            return dict(row)

        action.__name__ = f"{model}_update"
        return action

    def destroy(
        self,
        model: str,
        scopes: Optional[Sequence[str]] = None,
        where: Optional[WhereOption] = None,
        query: Optional[QueryHook] = None,
        as_: Optional[str] = None,
    ) -> Callable[[Any], Awaitable[Dict[str, Any]]]:
        """
        Delete the records matching the scopes and where clauses
        :raises NotFoundError: no record matches
        """
        schema = self.models[model]
        options = LoadOptions(scopes=scopes, where=where, query=query, as_=as_)
        name = self.singular_name(model, options.as_)

        async def action(c: Any) -> Dict[str, Any]:
            record = self.adapter.get(c, name)
            if record is None:
                record = await self._load(c, schema, options)

            db = self.adapter.use_store(c)
            statement = compose(c, self.adapter, options, delete(schema.table), schema.table)
            result = await self._execute(db, statement)
            if result.rowcount == 0:
                raise NotFoundError(f"No {model} record to delete")
            await self._commit(db)
            sacrud.log.debug("deleted %s %s", model, record)
            return {}

        action.__name__ = f"{model}_destroy"
        return action

    #
    # one-shot variants
    #
    async def execute_index(self, c: Any, model: str, **load_options: Any) -> Dict[str, Any]:
        return await self.index(model, **load_options)(c)

    async def execute_create(
        self,
        c: Any,
        model: str,
        attributes: Mapping[str, Any],
        on_conflict: Optional[ConflictHook] = None,
        args: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        return await self.create(model, attributes, on_conflict=on_conflict)(c, args)

    async def execute_show(self, c: Any, model: str, **load_options: Any) -> Dict[str, Any]:
        return await self.show(model, **load_options)(c)

    async def execute_update(
        self, c: Any, model: str, attributes: Mapping[str, Any], args: Optional[Mapping[str, Any]] = None, **load_options: Any
    ) -> Dict[str, Any]:
        return await self.update(model, attributes, **load_options)(c, args)

    async def execute_destroy(self, c: Any, model: str, **load_options: Any) -> Dict[str, Any]:
        return await self.destroy(model, **load_options)(c)

    #
    # responses
    #
    def _respond(self, c: Any, body: Dict[str, Any], options: ResponseOptions) -> Any:
        status_code = options.status_code if options.status_code is not None else get_config("DEFAULT_STATUS_CODE")
        return self.adapter.respond(c, body, status_code)

    def response(
        self,
        action: Callable[[Any], Any],
        omit: Optional[Sequence[str]] = None,
        pick: Optional[Sequence[str]] = None,
        render: Optional[RenderFn] = None,
        status_code: Optional[int] = None,
    ) -> Callable[[Any], Awaitable[Any]]:
        """
        Wrap a single-record action: {"data": record}
        """
        options = ResponseOptions(omit=omit, pick=pick, render=render, status_code=status_code)

        async def handler(c: Any) -> Any:
            data = await maybe_await(action(c))
            data = await shape(data, options)
            return await maybe_await(self._respond(c, {"data": data}, options))

        handler.__name__ = f"{getattr(action, '__name__', 'action')}_response"
        return handler

    def collection_response(
        self,
        action: Callable[[Any], Any],
        omit: Optional[Sequence[str]] = None,
        pick: Optional[Sequence[str]] = None,
        render: Optional[RenderFn] = None,
        status_code: Optional[int] = None,
    ) -> Callable[[Any], Awaitable[Any]]:
        """
        Wrap a collection action: {"data": [records], "metadata": {...}}
        """
        options = ResponseOptions(omit=omit, pick=pick, render=render, status_code=status_code)

        async def handler(c: Any) -> Any:
            result = await maybe_await(action(c))
            data = await shape_collection(result["data"], options)
            return await maybe_await(self._respond(c, {"data": data, "metadata": result.get("metadata", {})}, options))

        handler.__name__ = f"{getattr(action, '__name__', 'action')}_response"
        return handler
