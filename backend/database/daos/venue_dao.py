"""
Venue DAO

Purpose
-------
Data-access layer for the `Venue` entity. On top of the generic
``EntityDao`` operations it owns the two writes of the rating summary:

- ``applyRatingDelta``   atomic in-database increment of sum/count/average
- ``writeRatingSummary`` overwrite of the summary from a full recount
- ``lockById``           row lock taken before a full recount

Both writes target the row **without** a visibility criterion: the summary
of a banned venue is kept current so it is correct if the venue is unbanned.

``visibleVenueDao()`` returns the ``VisibleDao`` every API read goes through.
"""

import logging

from sqlalchemy import Float, case, cast, select, update
from sqlalchemy.orm import Session

from backend.database.daos.entity_dao import EntityDao
from backend.database.daos.visibility import VisibleDao
from backend.database.entities.venue import DEFAULT_AVERAGE_RATING, Venue

logger = logging.getLogger(__name__)

VENUE_IS_VISIBLE = Venue.banned.is_(False)


class VenueDao(EntityDao):
    """
    Data Access Object (DAO) for managing Venue entities.
    """

    model = Venue
    fields = Venue.SERIALIZED_FIELDS

    def fetchByName(self, session: Session, name: str):
        return self.findOne(session, Venue.name == name)

    def applyRatingDelta(self, session: Session, venue_id, rating_delta: float, count_delta: int) -> bool:
        """
        Shift the venue's rating summary by a delta in one UPDATE statement.

        Every SET expression is computed from the row as it was before the
        statement, so concurrent deltas on the same venue serialize on the
        row and never overwrite each other. ``average_rating`` is assigned
        first because MySQL evaluates SET clauses left to right against the
        partially updated row.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        venue_id : UUID
            Venue to update (visibility is not considered).
        rating_delta : float
            Change of the ratings sum.
        count_delta : int
            Change of the ratings count.

        Returns
        -------
        bool
            False when no venue has that id.
        """
        new_sum = Venue.ratings_sum + rating_delta
        new_qty = Venue.ratings_qty + count_delta
        stmt = (
            update(Venue)
            .where(Venue.id == venue_id)
            .ordered_values(
                (
                    Venue.average_rating,
                    case(
                        (new_qty <= 0, DEFAULT_AVERAGE_RATING),
                        else_=cast(new_sum, Float) / new_qty,
                    ),
                ),
                (Venue.ratings_sum, new_sum),
                (Venue.ratings_qty, new_qty),
            )
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = session.execute(stmt)
            return result.rowcount > 0
        except Exception as e:
            logger.error(f"Error in VenueDao.applyRatingDelta. Error Message: {e}")
            raise

    def lockById(self, session: Session, venue_id):
        """Load the venue with ``SELECT ... FOR UPDATE`` (a no-op lock on SQLite)."""
        try:
            stmt = select(Venue).where(Venue.id == venue_id).with_for_update()
            return session.scalars(stmt).first()
        except Exception as e:
            logger.error(f"Error in VenueDao.lockById. Error Message: {e}")
            raise

    def writeRatingSummary(self, session: Session, venue: Venue, ratings_sum: float, ratings_qty: int) -> Venue:
        if ratings_qty == 0:
            fields = {"ratings_sum": 0.0, "ratings_qty": 0, "average_rating": DEFAULT_AVERAGE_RATING}
        else:
            fields = {
                "ratings_sum": float(ratings_sum),
                "ratings_qty": ratings_qty,
                "average_rating": float(ratings_sum) / ratings_qty,
            }
        return self.update(session, venue, fields)


def visibleVenueDao() -> VisibleDao:
    return VisibleDao(VenueDao(), VENUE_IS_VISIBLE)
