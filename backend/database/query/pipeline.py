"""
Aggregation pipeline stages.

A pipeline is a list of callables, each taking a SQLAlchemy ``Select`` and
returning a new one. ``EntityDao.aggregate`` starts from ``select(model)``
and applies the stages in order; ``VisibleDao.aggregate`` puts its
visibility ``match`` stage in front.

Example
-------
>>> pipeline = [
...     match(Venue.vegan_friendly.is_(True)),
...     group(Venue.affordability, num_venues=func.count(Venue.id)),
...     order(Venue.affordability),
... ]
"""

from sqlalchemy import Select


def match(*criteria):
    """Keep only rows satisfying every criterion."""
    def stage(stmt: Select) -> Select:
        return stmt.where(*criteria)
    return stage


def group(key, **aggregates):
    """Group by ``key`` (None for one global group) and compute labelled aggregates."""
    def stage(stmt: Select) -> Select:
        columns = [expr.label(name) for name, expr in aggregates.items()]
        if key is None:
            return stmt.with_only_columns(*columns)
        return stmt.with_only_columns(key.label(key.key), *columns).group_by(key)
    return stage


def order(*clauses):
    def stage(stmt: Select) -> Select:
        return stmt.order_by(*clauses)
    return stage


def run_stages(stmt: Select, pipeline) -> Select:
    for stage in pipeline:
        stmt = stage(stmt)
    return stmt
