"""
Visibility Filter
=================

``VisibleDao`` wraps an ``EntityDao`` together with a visibility criterion
(``Venue.banned.is_(False)``, ``User.active.is_(True)``) and exposes the
same read interface. Every read puts the criterion first:

- ``find``       → ``dao.find(session, query, visible, *criteria)``
- ``findOne``    → ``dao.findOne(session, visible, *criteria)``
- ``findById``   → ``dao.findOne(session, visible, model.id == id)``
- ``aggregate``  → ``dao.aggregate(session, [match(visible), *pipeline])``

``updateById``/``deleteById`` resolve the target through ``findById`` first,
so a hidden entity cannot be modified through ordinary paths either. A
hidden entity is indistinguishable from a missing one: both yield ``None``.

Administrative code that must reach hidden rows (ban/unban, rating
writes) uses the wrapped DAO directly via ``unfiltered``.
"""

from sqlalchemy.orm import Session

from backend.database.daos.entity_dao import EntityDao
from backend.database.query.descriptor import QueryDescriptor
from backend.database.query.pipeline import match


class VisibleDao:
    """
    Read-side wrapper that composes a visibility predicate into every query.

    Parameters
    ----------
    dao : EntityDao
        The repository being wrapped.
    visible : ColumnElement[bool]
        Criterion an entity must satisfy to be visible.
    """

    def __init__(self, dao: EntityDao, visible):
        self.dao = dao
        self.visible = visible

    @property
    def unfiltered(self) -> EntityDao:
        return self.dao

    def find(self, session: Session, query: QueryDescriptor, *criteria) -> list:
        return self.dao.find(session, query, self.visible, *criteria)

    def findOne(self, session: Session, *criteria):
        return self.dao.findOne(session, self.visible, *criteria)

    def findById(self, session: Session, entity_id):
        return self.dao.findOne(session, self.visible, self.dao.model.id == entity_id)

    def aggregate(self, session: Session, pipeline: list) -> list[dict]:
        return self.dao.aggregate(session, [match(self.visible), *pipeline])

    def updateById(self, session: Session, entity_id, fields: dict):
        entity = self.findById(session, entity_id)
        if entity is None:
            return None
        return self.dao.update(session, entity, fields)

    def deleteById(self, session: Session, entity_id):
        entity = self.findById(session, entity_id)
        if entity is None:
            return None
        return self.dao.delete(session, entity)
