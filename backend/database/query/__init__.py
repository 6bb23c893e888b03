"""
Query Package — request parameters → canonical query
====================================================

Contents
--------
- descriptor
    Immutable `QueryDescriptor` and the typed predicate union
    (`Equals`, `GreaterThan`, `GreaterOrEqual`, `LessThan`, `LessOrEqual`, `IsIn`),
    plus `Projection`, `SortKey` and `Pagination`.

- translator
    `build_query(params)` — pure parsing of `?rating[gte]=3&sort=-name&fields=name&page=2`.

- compiler
    `compile_query(model, fields, descriptor)` — SQLAlchemy criteria and a
    total `ORDER BY`, with literal coercion and field validation.

- pipeline
    `match`, `group`, `order` — composable aggregation stages over a `Select`.
"""

from backend.database.query.descriptor import QueryDescriptor, Equals, IsIn
from backend.database.query.translator import build_query

__all__ = ["QueryDescriptor", "Equals", "IsIn", "build_query"]
