import asyncio
import re
import uuid

import pytest
from sqlalchemy import String

from sacrud import CRUD, SERVER_DEFAULT, ConfigurationError, Custom, Source, ValidationError
from sacrud.attributes import AttributeResolver, coerce_source, encode_value

TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def resolve(crud, model, attributes, c, payload=None, args=None):
    resolver = AttributeResolver(crud.models[model], crud.adapter, attributes)
    return asyncio.run(resolver.resolve(c, payload, args))


def test_payload_fields_are_restricted_to_the_declared_attributes(crud, make_context):
    record = resolve(
        crud,
        "users",
        {"user_id": "uuid", "name": "payload"},
        make_context(),
        payload={"name": "Ann", "extra": "ignored", "active": True, "user_id": "forged"},
    )
    assert set(record) == {"user_id", "name"}
    assert record["name"] == "Ann"
    assert record["user_id"] != "forged"
    assert uuid.UUID(record["user_id"])


def test_uuids_are_fresh(crud, make_context):
    first = resolve(crud, "things", {"thing_id": "uuid"}, make_context())
    second = resolve(crud, "things", {"thing_id": "uuid"}, make_context())
    assert first["thing_id"] != second["thing_id"]


@pytest.mark.parametrize("value, expected", [(True, "1"), (False, "0")])
def test_booleans_are_encoded_as_text(crud, make_context, value, expected):
    record = resolve(crud, "users", {"active": "payload", "name": lambda c: value}, make_context(), payload={"active": value})
    assert record == {"active": expected, "name": expected}


def test_boolean_columns_are_bound_as_text(crud, make_context):
    resolver = AttributeResolver(crud.models["flags"], crud.adapter, {"flag_id": "uuid", "active": "payload"})
    record = asyncio.run(resolver.resolve(make_context(), {"active": False}))
    assert record["active"] == "0"
    assert resolver.boolean_columns == {"active"}

    values = resolver.bind(record)
    assert values["flag_id"] == record["flag_id"]
    assert isinstance(values["active"].type, String)
    assert values["active"].clause.value == "0"


def test_boolean_encoding_is_configurable(monkeypatch):
    monkeypatch.setattr(CRUD, "TRUE_VALUE", "t")
    monkeypatch.setattr(CRUD, "FALSE_VALUE", "f")
    assert encode_value(True) == "t"
    assert encode_value(False) == "f"
    assert encode_value(1) == 1


def test_timestamps(crud, make_context):
    record = resolve(crud, "users", {"inserted_at": "inserted_at", "updated_at": Source.UPDATED_AT}, make_context())
    assert TIMESTAMP_RE.match(record["inserted_at"])
    assert TIMESTAMP_RE.match(record["updated_at"])
    assert record["inserted_at"] <= record["updated_at"]


def test_contextual_values(crud, make_context):
    c = make_context(state={"name": "from the store"})
    assert resolve(crud, "users", {"name": "get", "active": "get"}, c) == {"name": "from the store", "active": None}


def test_route_parameters(crud, make_context):
    c = make_context(params={"user_id": "u1", "thing_id": "t1"})
    assert resolve(crud, "things", {"user_id": "param"}, c) == {"user_id": "u1"}


def test_argument_bag(crud, make_context):
    record = resolve(crud, "things", {"thing_id": "arg", "name": "arg"}, make_context(), args={"thing_id": "t1"})
    assert record == {"thing_id": "t1", "name": None}


def test_argument_source_without_arguments(crud, make_context):
    with pytest.raises(ConfigurationError) as exc_info:
        resolve(crud, "things", {"thing_id": "arg"}, make_context())
    assert "thing_id" in exc_info.value.message


def test_literal_sources(crud, make_context):
    record = resolve(crud, "users", {"name": "null", "active": "default"}, make_context())
    assert record["name"] is None
    assert record["active"] is SERVER_DEFAULT


def test_custom_functions_run_in_declaration_order(crud, make_context):
    calls = []

    async def slow(c):
        await asyncio.sleep(0.01)
        calls.append("slow")
        return "a"

    def fast(c):
        calls.append("fast")
        return "b"

    record = resolve(crud, "things", {"name": slow, "user_id": Custom(fast)}, make_context())
    assert record == {"name": "a", "user_id": "b"}
    assert calls == ["slow", "fast"]


def test_custom_functions_receive_the_context(crud, make_context):
    c = make_context(params={"user_id": "u9"})
    record = resolve(crud, "things", {"user_id": lambda ctx: ctx.params["user_id"].upper()}, c)
    assert record == {"user_id": "U9"}


def test_invalid_payload(crud, make_context):
    with pytest.raises(ValidationError) as exc_info:
        resolve(crud, "things", {"name": "payload", "position": "payload"}, make_context(), payload={"name": "x", "position": "NaN"})
    assert exc_info.value.status_code == 400
    assert [error["loc"] for error in exc_info.value.details] == [("position",)]


def test_missing_payload(crud, make_context):
    with pytest.raises(ValidationError):
        resolve(crud, "users", {"name": "payload"}, make_context(), payload=None)


def test_source_coercion():
    assert coerce_source("name", "payload") is Source.PAYLOAD
    assert coerce_source("name", Source.PARAM) is Source.PARAM
    assert isinstance(coerce_source("name", len), Custom)
    with pytest.raises(ConfigurationError):
        coerce_source("name", "body")


def test_unknown_attribute(crud):
    with pytest.raises(ConfigurationError):
        AttributeResolver(crud.models["things"], crud.adapter, {"color": "payload"})


def test_payload_field_missing_from_the_schema(crud):
    # inserted_at is a users column but isn't part of the users pydantic schema
    with pytest.raises(ConfigurationError):
        AttributeResolver(crud.models["users"], crud.adapter, {"inserted_at": "payload"})
