"""
Statement composition: route parameter scopes, explicit where clauses and the query hook
are applied, in that order, to the statement of an action.
"""
import operator
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import Column, Table

import sacrud
from .config import get_config
from .errors import ConfigurationError
from .options import LoadOptions, WhereOption

_OPERATORS: Dict[str, Callable[[Column, Any], Any]] = {
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda column, value: column.in_(value),
    "not in": lambda column, value: column.not_in(value),
    "like": lambda column, value: column.like(value),
    "not like": lambda column, value: column.not_like(value),
    "ilike": lambda column, value: column.ilike(value),
    "not ilike": lambda column, value: column.not_ilike(value),
    "is": lambda column, value: column.is_(value),
    "is not": lambda column, value: column.is_not(value),
}


def get_column(table: Table, name: str) -> Column:
    try:
        return table.c[name]
    except KeyError:
        raise ConfigurationError(f'Unknown column "{name}" for table {table.name}') from None


def get_scopes(params: Optional[Mapping[str, Any]], scopes: Optional[Sequence[str]] = None) -> List[Tuple[str, Any]]:
    """
    :param params: route parameters
    :param scopes: names of the parameters to use, all parameters are used when None
    :return: (column name, value) equality filters
    """
    result = list((params or {}).items())
    if scopes is not None:
        result = [(name, value) for name, value in result if name in scopes]
    return result


def where_clause(table: Table, lhs: str, op: str, rhs: Any) -> Any:
    """
    Create the sqla expression for a (field, operator, value) triple,
    operators we don't know are passed to the database as-is
    """
    column = get_column(table, lhs)
    op_func = _OPERATORS.get(" ".join(op.lower().split()))
    if op_func is None:
        return column.op(op)(rhs)
    return op_func(column, rhs)


def apply_scopes(statement: Any, table: Table, scopes: Iterable[Tuple[str, Any]]) -> Any:
    for name, value in scopes:
        statement = statement.where(get_column(table, name) == value)
    return statement


def apply_where(c: Any, where: WhereOption, statement: Any, table: Table) -> Any:
    if callable(where):
        where = where(c)
    for lhs, op, rhs in where:
        statement = statement.where(where_clause(table, lhs, op, rhs))
    return statement


def compose(c: Any, adapter: Any, options: LoadOptions, statement: Any, table: Table) -> Any:
    """
    Apply the load options to a select/update/delete statement
    :param c: request context
    :param adapter: ContextAdapter, provides the route parameters
    :param options: LoadOptions
    :param statement: sqla statement
    :param table: table the statement operates on
    :return: the composed statement
    """
    scopes = get_scopes(adapter.get_route_params(c), options.scopes)
    statement = apply_scopes(statement, table, scopes)

    if options.where is not None:
        statement = apply_where(c, options.where, statement, table)

    if options.query is not None:
        # the hook can see and override everything above
        statement = options.query(c, statement)

    if get_config("LOG_QUERIES"):
        sacrud.log.debug("%s query: %s", table.name, statement)
    return statement
