# -*- coding: utf-8 -*-
"""
Model schemas: every model exposed by the crud controller has a SQLAlchemy table (used to build the queries)
and a pydantic model (used to validate the payloads). When no pydantic model is given, it is derived from the
table columns.
"""
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Set, Tuple, Type, cast

import pydantic
from pydantic import BaseModel, Field, create_model
from sqlalchemy import Column, MetaData, Table

import sacrud
from .errors import ConfigurationError, ValidationError


def _safe_python_type(column: Column) -> Any:
    col_type = getattr(column, "type", None)
    if col_type is None:
        return Any
    try:
        py_type = col_type.python_type
    except NotImplementedError:
        return Any
    return py_type


def create_schema_model(table: Table, model_name: str) -> Type[BaseModel]:
    """
    Create a pydantic model from the table columns
    nullable columns accept None but all fields are required
    """
    fields: Dict[str, Tuple[Any, Any]] = {}
    for column in table.columns:
        py_type = _safe_python_type(column)
        if column.nullable:
            py_type = Optional[py_type]
        fields[column.name] = (py_type, ...)
    return cast(Type[BaseModel], create_model(model_name, **cast(Any, fields)))


class ModelSchema:
    """
    Schema of a single model
    :param name: model name, this is also the name used in the crud actions
    :param table: SQLAlchemy table
    :param model: pydantic model used to validate payloads
    """

    def __init__(self, name: str, table: Table, model: Optional[Type[BaseModel]] = None) -> None:
        self.name = name
        self.table = table
        self.model = model if model is not None else create_schema_model(table, f"{name}Schema")
        self._subsets: Dict[FrozenSet[str], Type[BaseModel]] = {}

    def __repr__(self) -> str:
        return f"<ModelSchema {self.name}>"

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(self.model.model_fields)

    def pick(self, fields: Iterable[str]) -> Type[BaseModel]:
        """
        :param fields: names of the fields to retain
        :return: subclass of the schema model where the other fields are optional and excluded from the dump,
            the validators of the schema model are inherited
        """
        key = frozenset(fields)
        cached = self._subsets.get(key)
        if cached is not None:
            return cached

        model_fields = self.model.model_fields
        unknown = sorted(key - set(model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown {self.name} fields: {', '.join(unknown)}")

        dropped = {name: (Any, Field(default=None, exclude=True)) for name in self.fields if name not in key}
        subset = cast(Type[BaseModel], create_model(f"{self.model.__name__}Subset", __base__=self.model, **cast(Any, dropped)))
        self._subsets[key] = subset
        return subset

    def _input_keys(self, fields: FrozenSet[str]) -> Set[str]:
        keys = set(fields)
        for name in fields:
            field = self.model.model_fields[name]
            keys.update(alias for alias in (field.alias, field.validation_alias) if isinstance(alias, str))
        return keys

    def validate(self, payload: Any, fields: Iterable[str]) -> Dict[str, Any]:
        """
        Validate `payload` against the `fields` subset of the schema
        payload keys of the other fields are dropped before validation, so their validators don't run
        :return: the validated values of the fields present in the payload
        """
        picked = frozenset(fields)
        schema = self.pick(picked)
        if isinstance(payload, Mapping):
            keys = self._input_keys(picked)
            payload = {name: value for name, value in payload.items() if name in keys}
        try:
            instance = schema.model_validate(payload)
        except pydantic.ValidationError as exc:
            details = exc.errors(include_url=False, include_context=False, include_input=False)
            raise ValidationError(f"Invalid {self.name} payload: {exc.error_count()} error(s)", details=details) from exc
        return {name: value for name, value in instance.model_dump(exclude_unset=True).items() if name in picked}


class ModelRegistry(Mapping):
    """
    Read-only mapping of model name to ModelSchema

    The definitions can be
    - a ModelSchema
    - a SQLAlchemy Table
    - a declarative class (having a __table__)
    - a (Table, pydantic model) tuple
    """

    def __init__(self, models: Mapping) -> None:
        self._models = MappingProxyType({name: self._coerce(name, definition) for name, definition in models.items()})
        sacrud.log.debug("Registered models: %s", ", ".join(self._models))

    @staticmethod
    def _coerce(name: str, definition: Any) -> ModelSchema:
        if isinstance(definition, ModelSchema):
            return definition
        if isinstance(definition, Table):
            return ModelSchema(name, definition)
        if isinstance(definition, tuple) and len(definition) == 2:
            table, model = definition
            return ModelSchema(name, getattr(table, "__table__", table), model)
        table = getattr(definition, "__table__", None)
        if isinstance(table, Table):
            return ModelSchema(name, table)
        raise ConfigurationError(f"Invalid model definition for {name}: {definition!r}")

    @classmethod
    def from_metadata(cls, metadata: MetaData, schemas: Optional[Mapping] = None) -> "ModelRegistry":
        """
        Register all tables in `metadata`, `schemas` optionally maps table names to pydantic models
        """
        schemas = schemas or {}
        return cls({name: ModelSchema(name, table, schemas.get(name)) for name, table in metadata.tables.items()})

    def __getitem__(self, name: str) -> ModelSchema:
        try:
            return self._models[name]
        except KeyError:
            raise ConfigurationError(f"Unknown model {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def get(self, name: str, default: Any = None) -> Any:
        return self._models.get(name, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)
