"""
Query Compiler
==============

Compiles a ``QueryDescriptor`` against an ORM model into SQLAlchemy
criteria and ``ORDER BY`` clauses.

- Every field referenced by the filter, the sort or the projection must be
  one of the model's exposed fields; anything else is an
  ``InvalidQueryError``.
- Literals are coerced to the column's Python type before they reach the
  database, so ``rating[gte]=3`` compares numerically.
- The primary key is appended as the final ascending sort key, which makes
  the ordering total even when the requested keys tie.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import and_, asc, desc

from backend.database.core.exceptions import InvalidQueryError
from backend.database.query.descriptor import (
    Equals,
    GreaterOrEqual,
    GreaterThan,
    IsIn,
    LessOrEqual,
    LessThan,
    QueryDescriptor,
)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def _python_type(column):
    try:
        return column.type.python_type
    except NotImplementedError:
        return str


def coerce_value(column, raw: str):
    """Convert a raw query-string literal to the Python type of ``column``."""
    target = _python_type(column)
    try:
        if target is bool:
            lowered = raw.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(raw)
        if target is int:
            return int(raw)
        if target is float:
            return float(raw)
        if target is datetime:
            parsed = datetime.fromisoformat(raw)
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
        if target is date:
            return date.fromisoformat(raw)
        if target is uuid.UUID:
            return uuid.UUID(raw)
    except ValueError:
        raise InvalidQueryError(f"Invalid value '{raw}' for field '{column.key}'")
    return raw


def _column(model, fields, name: str):
    if name not in fields:
        raise InvalidQueryError(f"Unknown field '{name}'")
    return getattr(model, name)


def compile_predicate(model, fields, predicate):
    column = _column(model, fields, predicate.field)
    if isinstance(predicate, IsIn):
        return column.in_([coerce_value(column, value) for value in predicate.values])

    value = coerce_value(column, predicate.value)
    if isinstance(predicate, Equals):
        return column == value
    if isinstance(predicate, GreaterThan):
        return column > value
    if isinstance(predicate, GreaterOrEqual):
        return column >= value
    if isinstance(predicate, LessThan):
        return column < value
    if isinstance(predicate, LessOrEqual):
        return column <= value
    raise InvalidQueryError(f"Unsupported predicate {predicate!r}")


def compile_filter(model, fields, query: QueryDescriptor):
    """Return the conjunction of the descriptor's predicates, or None when it has none."""
    criteria = [compile_predicate(model, fields, predicate) for predicate in query.filter]
    if not criteria:
        return None
    return and_(*criteria)


def compile_order(model, fields, query: QueryDescriptor) -> list:
    clauses = []
    for key in query.sort:
        column = _column(model, fields, key.field)
        clauses.append(desc(column) if key.descending else asc(column))
    if not any(key.field == "id" for key in query.sort):
        clauses.append(asc(model.id))
    return clauses


def validate_projection(fields, query: QueryDescriptor) -> None:
    unknown = sorted(query.projection.fields - set(fields))
    if unknown:
        raise InvalidQueryError(f"Unknown field '{unknown[0]}'")


def compile_query(model, fields, query: QueryDescriptor):
    """
    Compile ``query`` for ``model``.

    Parameters
    ----------
    model : type
        ORM class.
    fields : Iterable[str]
        Field names a request may reference.
    query : QueryDescriptor

    Returns
    -------
    tuple
        ``(criteria | None, order_by clauses)``

    Raises
    ------
    InvalidQueryError
        Before any SQL is issued, when the descriptor references unknown
        fields or carries literals of the wrong type.
    """
    fields = set(fields)
    validate_projection(fields, query)
    return compile_filter(model, fields, query), compile_order(model, fields, query)
