from typing import Optional

import pytest
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlalchemy import Column, Integer, MetaData, String, Table

from sacrud import ConfigurationError, ModelRegistry, ModelSchema, ValidationError


@pytest.fixture
def table():
    return Table(
        "books",
        MetaData(),
        Column("book_id", Integer, primary_key=True),
        Column("title", String, nullable=False),
        Column("subtitle", String, nullable=True),
    )


def test_schema_from_table(table):
    schema = ModelSchema("books", table)
    assert schema.fields == ("book_id", "title", "subtitle")
    fields = schema.model.model_fields
    assert fields["title"].annotation is str
    assert fields["subtitle"].annotation == Optional[str]
    assert all(field.is_required() for field in fields.values())


def test_validate_subset(table):
    schema = ModelSchema("books", table)
    assert schema.validate({"title": "Dune", "book_id": "7", "extra": 1}, ["title", "book_id"]) == {"title": "Dune", "book_id": 7}
    assert schema.validate({"subtitle": None}, ["subtitle"]) == {"subtitle": None}
    with pytest.raises(ValidationError) as exc_info:
        schema.validate({}, ["subtitle"])
    assert exc_info.value.details[0]["type"] == "missing"


def test_pick_is_cached(table):
    schema = ModelSchema("books", table)
    assert schema.pick(["title", "subtitle"]) is schema.pick(("subtitle", "title"))
    with pytest.raises(ConfigurationError):
        schema.pick(["isbn"])


def test_subsets_keep_the_model_validators(table):
    class Book(BaseModel):
        title: str
        subtitle: Optional[str] = None

        @field_validator("title")
        @classmethod
        def title_not_blank(cls, value):
            if not value.strip():
                raise ValueError("title must not be blank")
            return value.strip()

        @model_validator(mode="after")
        def subtitle_differs(self):
            if self.subtitle is not None and self.subtitle == self.title:
                raise ValueError("subtitle repeats the title")
            return self

    schema = ModelSchema("books", table, Book)
    with pytest.raises(ValidationError):
        schema.validate({"title": "   "}, ["title"])
    with pytest.raises(ValidationError):
        schema.validate({"title": "Dune", "subtitle": "Dune"}, ["title", "subtitle"])
    assert schema.validate({"title": " Dune "}, ["title"]) == {"title": "Dune"}
    # the validators of fields that aren't picked don't see the payload
    assert schema.validate({"title": "   ", "subtitle": "Messiah"}, ["subtitle"]) == {"subtitle": "Messiah"}


def test_pick_drops_extra_fields_of_permissive_models(table):
    class Book(BaseModel):
        model_config = ConfigDict(extra="allow")
        title: str
        subtitle: Optional[str] = None

    schema = ModelSchema("books", table, Book)
    assert schema.validate({"title": "Dune", "book_id": 1}, ["title"]) == {"title": "Dune"}
    # optional fields that weren't sent aren't returned
    assert schema.validate({"title": "Dune"}, ["title", "subtitle"]) == {"title": "Dune"}


def test_registry(table):
    class Book(BaseModel):
        title: str

    registry = ModelRegistry({"books": table, "novels": (table, Book)})
    assert list(registry) == ["books", "novels"]
    assert registry["novels"].model is Book
    assert registry["books"].table is table
    assert "books" in registry
    assert "magazines" not in registry
    with pytest.raises(ConfigurationError):
        registry["magazines"]
    with pytest.raises(TypeError):
        registry["magazines"] = table


def test_registry_from_metadata(table):
    registry = ModelRegistry.from_metadata(table.metadata)
    assert len(registry) == 1
    assert registry["books"].table is table


def test_invalid_definition():
    with pytest.raises(ConfigurationError):
        ModelRegistry({"books": object()})
