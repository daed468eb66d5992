# -*- coding: utf-8 -*-
"""
Options of the crud actions and responses
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError

WhereTriple = Tuple[str, str, Any]
WhereList = Sequence[WhereTriple]
# static list of (field, operator, value) triples or a function computing the list from the request context
WhereOption = Union[WhereList, Callable[[Any], WhereList]]
# receives the request context and the statement so far, returns the statement to use
QueryHook = Callable[[Any, Any], Any]
# receives the dialect-specific insert statement, returns the statement with its conflict clause
ConflictHook = Callable[[Any], Any]
RenderFn = Callable[[Mapping[str, Any]], Any]


def _as_tuple(names: Optional[Sequence[str]], option: str) -> Optional[Tuple[str, ...]]:
    if names is None:
        return None
    if isinstance(names, str):
        raise ConfigurationError(f"{option} should be a list of field names, not a string")
    return tuple(names)


def _check_where(where: Optional[WhereOption]) -> Optional[WhereOption]:
    if where is None or callable(where):
        return where
    result = []
    for triple in where:
        if len(triple) != 3:
            raise ConfigurationError(f"Invalid where clause {triple!r}, expected (field, operator, value)")
        result.append(tuple(triple))
    return tuple(result)


@dataclass(frozen=True)
class LoadOptions:
    """
    :param scopes: route parameters used as equality filters, all route parameters are used when not set
    :param where: explicit filters, applied after the scopes
    :param query: statement customization hook, applied last
    :param as_: name of the record in the contextual store, defaults to the model name without its trailing "s"
    """

    scopes: Optional[Tuple[str, ...]] = None
    where: Optional[WhereOption] = None
    query: Optional[QueryHook] = None
    as_: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", _as_tuple(self.scopes, "scopes"))
        object.__setattr__(self, "where", _check_where(self.where))


IndexOptions = ShowOptions = DestroyOptions = LoadOptions


@dataclass(frozen=True)
class CreateOptions:
    attributes: Mapping[str, Any]
    on_conflict: Optional[ConflictHook] = None


@dataclass(frozen=True)
class UpdateOptions(LoadOptions):
    attributes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResponseOptions:
    omit: Optional[Tuple[str, ...]] = None
    pick: Optional[Tuple[str, ...]] = None
    render: Optional[RenderFn] = None
    status_code: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "omit", _as_tuple(self.omit, "omit"))
        object.__setattr__(self, "pick", _as_tuple(self.pick, "pick"))
