"""
Query Descriptor
================

Immutable value objects describing one read request: which rows match
(``filter``), which fields come back (``projection``), in which order
(``sort``) and which window of the result is returned (``pagination``).

Filter predicates form a tagged union over comparison kinds. Every
predicate names a field and carries the raw literal(s) from the request;
coercion to the column type happens later in ``compiler``.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Union

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25


@dataclass(frozen=True)
class Equals:
    field: str
    value: str


@dataclass(frozen=True)
class GreaterThan:
    field: str
    value: str


@dataclass(frozen=True)
class GreaterOrEqual:
    field: str
    value: str


@dataclass(frozen=True)
class LessThan:
    field: str
    value: str


@dataclass(frozen=True)
class LessOrEqual:
    field: str
    value: str


@dataclass(frozen=True)
class IsIn:
    field: str
    values: tuple[str, ...]


Predicate = Union[Equals, GreaterThan, GreaterOrEqual, LessThan, LessOrEqual, IsIn]


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    """
    Field selection.

    When ``include`` is non-empty only those fields are returned, minus
    anything in ``exclude``. Otherwise every field except ``exclude`` is
    returned. ``id`` is always kept.
    """

    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    @property
    def fields(self) -> frozenset[str]:
        return self.include | self.exclude

    def apply(self, record: dict[str, Any]) -> dict[str, Any]:
        if not self.include and not self.exclude:
            return record
        projected = {}
        for key, value in record.items():
            if key == "id":
                projected[key] = value
            elif self.include and key not in self.include:
                continue
            elif key in self.exclude:
                continue
            else:
                projected[key] = value
        return projected


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class QueryDescriptor:
    filter: tuple[Predicate, ...] = ()
    projection: Projection = field(default_factory=Projection)
    sort: tuple[SortKey, ...] = (SortKey("created_at", descending=True),)
    pagination: Pagination = field(default_factory=Pagination)

    def narrowed(self, *predicates: Predicate) -> "QueryDescriptor":
        """Return a copy whose filter also requires ``predicates``."""
        return replace(self, filter=tuple(predicates) + self.filter)
