"""
Query Translator
================

Turns raw request query parameters into a ``QueryDescriptor``.

Grammar
-------
- ``<field>=<value>``            equality
- ``<field>[op]=<value>``        ``op`` in ``gt``, ``gte``, ``lt``, ``lte``, ``in``
                                 (``in`` takes a comma-separated list)
- ``fields=a,b,-c``              projection; ``-`` excludes
- ``sort=a,-b``                  ordering; ``-`` is descending. Defaults to ``-created_at``
- ``page`` / ``limit``           positive integers, default 1 / 25

Malformed ``page``/``limit`` values are not errors: they silently fall back
to the defaults. Unknown operators are errors (``InvalidQueryError``).

The translator is pure; it never touches the database and does not know
which fields exist. Field validation happens in ``compiler``.
"""

import re
from collections.abc import Mapping

from backend.database.core.exceptions import InvalidQueryError
from backend.database.query.descriptor import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    Equals,
    GreaterOrEqual,
    GreaterThan,
    IsIn,
    LessOrEqual,
    LessThan,
    Pagination,
    Projection,
    QueryDescriptor,
    SortKey,
)

RESERVED_KEYS = ("fields", "sort", "page", "limit")

OPERATORS = {
    "gt": GreaterThan,
    "gte": GreaterOrEqual,
    "lt": LessThan,
    "lte": LessOrEqual,
}

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_OPERATOR_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]*)\]$")


def _pairs(params):
    if hasattr(params, "multi_items"):
        return list(params.multi_items())
    if isinstance(params, Mapping):
        return list(params.items())
    return list(params)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _check_field(name: str) -> str:
    if not _FIELD_NAME.match(name):
        raise InvalidQueryError(f"Invalid field name '{name}'")
    return name


def parse_filter_term(key: str, value: str):
    """
    Parse a single filter parameter into a predicate.

    >>> parse_filter_term("rating[gte]", "3")
    GreaterOrEqual(field='rating', value='3')
    """
    match = _OPERATOR_KEY.match(key)
    if match is None:
        return Equals(_check_field(key), value)

    field, op = match.group("field"), match.group("op")
    _check_field(field)
    if op == "in":
        return IsIn(field, tuple(_split_list(value)))
    if op not in OPERATORS:
        raise InvalidQueryError(f"Unsupported operator '{op}' for field '{field}'")
    return OPERATORS[op](field, value)


def parse_projection(value: str | None) -> Projection:
    if not value:
        return Projection()
    include, exclude = set(), set()
    for item in _split_list(value):
        if item.startswith("-"):
            exclude.add(_check_field(item[1:]))
        else:
            include.add(_check_field(item))
    return Projection(include=frozenset(include), exclude=frozenset(exclude))


def parse_sort(value: str | None) -> tuple[SortKey, ...]:
    keys = []
    for item in _split_list(value or ""):
        if item.startswith("-"):
            keys.append(SortKey(_check_field(item[1:]), descending=True))
        else:
            keys.append(SortKey(_check_field(item)))
    if not keys:
        return (SortKey("created_at", descending=True),)
    return tuple(keys)


def _positive_int(value: str | None, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_pagination(page: str | None, limit: str | None) -> Pagination:
    return Pagination(
        page=_positive_int(page, DEFAULT_PAGE),
        limit=_positive_int(limit, DEFAULT_LIMIT),
    )


def build_query(params) -> QueryDescriptor:
    """
    Build the query descriptor for one read request.

    Parameters
    ----------
    params : Mapping[str, str] | starlette QueryParams | Iterable[tuple[str, str]]
        Raw query parameters. Multi-valued inputs keep every filter term
        (``rating[gte]=2&rating[lte]=4``); for reserved keys the last value wins.

    Returns
    -------
    QueryDescriptor

    Raises
    ------
    InvalidQueryError
        On malformed field names or unsupported operators.
    """
    reserved = {}
    predicates = []
    for key, value in _pairs(params):
        if key in RESERVED_KEYS:
            reserved[key] = value
        else:
            predicates.append(parse_filter_term(key, value))

    return QueryDescriptor(
        filter=tuple(predicates),
        projection=parse_projection(reserved.get("fields")),
        sort=parse_sort(reserved.get("sort")),
        pagination=parse_pagination(reserved.get("page"), reserved.get("limit")),
    )
