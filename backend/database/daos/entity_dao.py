"""
Entity DAO — base repository
============================

Purpose
-------
Generic data-access operations shared by every entity DAO:

- ``find(session, query, *criteria)``   list rows for a ``QueryDescriptor``
- ``findOne(session, *criteria)``       first row matching raw criteria
- ``findById(session, entity_id)``
- ``aggregate(session, pipeline)``      run aggregation stages, return dict rows
- ``create(session, entity)``
- ``updateById(session, entity_id, fields)``
- ``deleteById(session, entity_id)``

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller;
  transaction boundaries live in the service layer (``@transactional``).
- This base class applies **no visibility rules**. Read paths that serve
  API requests must go through ``VisibleDao`` (see ``visibility.py``).
- ``create``/``updateById``/``deleteById`` flush immediately so constraint
  violations surface at the call site instead of at commit.

Error Handling
--------------
- Database errors are logged and re-raised; upper layers decide policy.
- ``InvalidQueryError`` is raised by the compiler before any SQL is issued.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.database.query.compiler import compile_query
from backend.database.query.descriptor import QueryDescriptor
from backend.database.query.pipeline import run_stages

logger = logging.getLogger(__name__)


class EntityDao:
    """
    Base Data Access Object.

    Subclasses set ``model`` (the ORM class), ``fields`` (names a request may
    filter, sort and project on) and optionally ``load_options`` (eager
    loading applied to ``find``/``findOne``).
    """

    model = None
    fields: tuple[str, ...] = ()
    load_options: tuple = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def find(self, session: Session, query: QueryDescriptor, *criteria) -> list:
        """
        List entities matching ``criteria`` and the descriptor's filter, in
        the descriptor's order, restricted to its pagination window.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        query : QueryDescriptor
            Translated request parameters.
        *criteria
            Extra SQLAlchemy criteria, applied before the descriptor's filter.

        Raises
        ------
        InvalidQueryError
            If the descriptor references unknown fields or bad literals.
        """
        where, order_by = compile_query(self.model, self.fields, query)
        stmt = select(self.model).options(*self.load_options)
        if criteria:
            stmt = stmt.where(*criteria)
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.order_by(*order_by).offset(query.pagination.skip).limit(query.pagination.limit)
        try:
            return list(session.scalars(stmt).unique().all())
        except Exception as e:
            logger.error(f"Error in {self.name}.find. Error Message: {e}")
            raise

    def findOne(self, session: Session, *criteria):
        try:
            stmt = select(self.model).options(*self.load_options).where(*criteria).limit(1)
            return session.scalars(stmt).unique().first()
        except Exception as e:
            logger.error(f"Error in {self.name}.findOne. Error Message: {e}")
            raise

    def findById(self, session: Session, entity_id):
        return self.findOne(session, self.model.id == entity_id)

    def aggregate(self, session: Session, pipeline: list) -> list[dict[str, Any]]:
        """
        Run an aggregation pipeline over the model's table.

        Returns
        -------
        list[dict]
            One dict per result row, keyed by the labels the stages assigned.
        """
        try:
            stmt = run_stages(select(self.model), pipeline)
            return [dict(row) for row in session.execute(stmt).mappings().all()]
        except Exception as e:
            logger.error(f"Error in {self.name}.aggregate. Error Message: {e}")
            raise

    def create(self, session: Session, entity):
        try:
            session.add(entity)
            session.flush()
            return entity
        except Exception as e:
            logger.error(f"Error in {self.name}.create. Error Message: {e}")
            raise

    def updateById(self, session: Session, entity_id, fields: dict[str, Any]):
        """
        Apply ``fields`` to the entity with ``entity_id``.

        Returns
        -------
        The updated entity, or None when no row has that id.
        """
        entity = self.findById(session, entity_id)
        if entity is None:
            return None
        return self.update(session, entity, fields)

    def update(self, session: Session, entity, fields: dict[str, Any]):
        try:
            for key, value in fields.items():
                setattr(entity, key, value)
            session.flush()
            return entity
        except Exception as e:
            logger.error(f"Error in {self.name}.update. Error Message: {e}")
            raise

    def deleteById(self, session: Session, entity_id):
        entity = self.findById(session, entity_id)
        if entity is None:
            return None
        return self.delete(session, entity)

    def delete(self, session: Session, entity):
        try:
            session.delete(entity)
            session.flush()
            return entity
        except Exception as e:
            logger.error(f"Error in {self.name}.delete. Error Message: {e}")
            raise
