# -*- coding: utf-8 -*-
"""
Attribute resolution: every attribute of a create/update action declares the source of its value.

    attributes = {
        "user_id": "uuid",          # Source.UUID: fresh uuid4 string
        "owner_id": "param",        # Source.PARAM: route parameter with the same name
        "name": "payload",          # Source.PAYLOAD: validated request body field
        "created_at": "inserted_at",
        "tenant": lambda c: ...,    # Custom: called with the request context, may be async
    }

Only the declared attributes are written, payload fields that aren't declared with the "payload" source
are dropped, even when they're present in the request body.
"""
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from sqlalchemy import Boolean, String, literal_column, type_coerce

import sacrud
from .config import get_config
from .errors import ConfigurationError
from .schema import ModelSchema
from .util import maybe_await, utc_timestamp

# "use the column default" marker, rendered as DEFAULT in the INSERT/UPDATE statement
SERVER_DEFAULT = literal_column("DEFAULT")


class Source(str, Enum):
    NULL = "null"
    DEFAULT = "default"
    UUID = "uuid"
    GET = "get"
    ARG = "arg"
    PAYLOAD = "payload"
    PARAM = "param"
    INSERTED_AT = "inserted_at"
    UPDATED_AT = "updated_at"


@dataclass(frozen=True)
class Custom:
    """
    Custom attribute source, `fn` is called with the request context and may return an awaitable
    """

    fn: Callable[[Any], Any]


AttributeSource = Union[Source, Custom]


def coerce_source(key: str, value: Any) -> AttributeSource:
    if isinstance(value, (Source, Custom)):
        return value
    if callable(value):
        return Custom(value)
    try:
        return Source(value)
    except ValueError:
        valid_values = ", ".join(source.value for source in Source)
        raise ConfigurationError(f"Invalid source {value!r} for attribute {key}, expected a function or one of: {valid_values}") from None


@dataclass(frozen=True)
class _Resolution:
    """Request-scoped inputs of a single resolve() call"""

    c: Any
    adapter: Any
    payload: Mapping[str, Any]
    args: Optional[Mapping[str, Any]]


# returned by a resolver when the attribute must not be written
_UNSET = object()


def _resolve_null(key: str, res: _Resolution) -> Any:
    return None


def _resolve_default(key: str, res: _Resolution) -> Any:
    return SERVER_DEFAULT


def _resolve_uuid(key: str, res: _Resolution) -> Any:
    return str(uuid.uuid4())


def _resolve_get(key: str, res: _Resolution) -> Any:
    return res.adapter.get(res.c, key)


def _resolve_arg(key: str, res: _Resolution) -> Any:
    if res.args is None:
        raise ConfigurationError(f'Attribute "{key}" is read from the action arguments but the action was called without arguments')
    return res.args.get(key)


def _resolve_payload(key: str, res: _Resolution) -> Any:
    # optional fields that weren't sent aren't written
    return res.payload.get(key, _UNSET)


def _resolve_param(key: str, res: _Resolution) -> Any:
    return (res.adapter.get_route_params(res.c) or {}).get(key)


def _resolve_timestamp(key: str, res: _Resolution) -> Any:
    return utc_timestamp()


_RESOLVERS: Dict[Source, Callable[[str, _Resolution], Any]] = {
    Source.NULL: _resolve_null,
    Source.DEFAULT: _resolve_default,
    Source.UUID: _resolve_uuid,
    Source.GET: _resolve_get,
    Source.ARG: _resolve_arg,
    Source.PAYLOAD: _resolve_payload,
    Source.PARAM: _resolve_param,
    Source.INSERTED_AT: _resolve_timestamp,
    Source.UPDATED_AT: _resolve_timestamp,
}
assert set(_RESOLVERS) == set(Source), "every attribute source needs a resolver"


def encode_value(value: Any) -> Any:
    """
    booleans are stored as text
    """
    if isinstance(value, bool):
        return get_config("TRUE_VALUE") if value else get_config("FALSE_VALUE")
    return value


class AttributeResolver:
    """
    Resolves the declared attributes of a model into the record that will be written

    :param schema: ModelSchema of the model
    :param adapter: ContextAdapter
    :param attributes: mapping of column name to attribute source
    """

    def __init__(self, schema: ModelSchema, adapter: Any, attributes: Mapping[str, Any]) -> None:
        self.schema = schema
        self.adapter = adapter
        self.attributes: Dict[str, AttributeSource] = {}
        for key, value in attributes.items():
            if key not in schema.table.c:
                raise ConfigurationError(f'Unknown attribute "{key}" for {schema.name}')
            self.attributes[key] = coerce_source(key, value)
        self.payload_fields: Tuple[str, ...] = tuple(key for key, source in self.attributes.items() if source is Source.PAYLOAD)
        # Boolean columns receive the encoded text as is
        self.boolean_columns = frozenset(key for key in self.attributes if isinstance(schema.table.c[key].type, Boolean))
        if self.payload_fields:
            # fail early on payload fields missing from the schema
            schema.pick(self.payload_fields)

    @property
    def needs_payload(self) -> bool:
        return bool(self.payload_fields)

    async def resolve(self, c: Any, payload: Any = None, args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        :param c: request context
        :param payload: raw request body, only validated when attributes are read from the payload
        :param args: caller-supplied argument bag for the "arg" sources
        :return: record to write
        :raises ValidationError: the payload doesn't pass validation
        """
        validated: Mapping[str, Any] = {}
        if self.payload_fields:
            validated = self.schema.validate(payload, self.payload_fields)

        res = _Resolution(c=c, adapter=self.adapter, payload=validated, args=args)
        record: Dict[str, Any] = {}
        # declaration order, custom functions run one after the other
        for key, source in self.attributes.items():
            if isinstance(source, Custom):
                value = await maybe_await(source.fn(c))
            else:
                value = _RESOLVERS[source](key, res)
            if value is _UNSET:
                continue
            record[key] = encode_value(value)

        sacrud.log.debug("Resolved %s attributes: %s", self.schema.name, record)
        return record

    def bind(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        :return: statement values for `record`, text values of Boolean columns are bound as strings
        """
        return {
            key: type_coerce(value, String) if key in self.boolean_columns and isinstance(value, str) else value
            for key, value in record.items()
        }
