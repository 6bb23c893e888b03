"""
Review DAO

Purpose
-------
Data-access layer for the `Review` entity:
- Generic find/create/update/delete through ``EntityDao``
- Lookup of an author's review for a venue (uniqueness pre-check)
- Rating aggregation for one venue (full recount)
- Bulk removal of an author's reviews

Reviews carry no visibility flag, so there is no ``VisibleDao`` for them.
Reads eagerly load the author and venue because ``Review.to_dict`` embeds
both.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload

from backend.database.daos.entity_dao import EntityDao
from backend.database.entities.review import Review
from backend.database.query.pipeline import group, match

logger = logging.getLogger(__name__)


class ReviewDao(EntityDao):
    """
    Data Access Object (DAO) for managing Review entities.
    """

    model = Review
    fields = Review.SERIALIZED_FIELDS
    load_options = (joinedload(Review.user), joinedload(Review.venue))

    def fetchByVenueAndUser(self, session: Session, venue_id, user_id):
        return self.findOne(session, Review.venue_id == venue_id, Review.user_id == user_id)

    def ratingSummary(self, session: Session, venue_id) -> dict:
        """
        Count and sum the ratings of every review of ``venue_id``.

        Returns
        -------
        dict
            ``{"ratings_qty": int, "ratings_sum": float}``; zeros when the
            venue has no reviews.
        """
        rows = self.aggregate(
            session,
            [
                match(Review.venue_id == venue_id),
                group(
                    Review.venue_id,
                    ratings_qty=func.count(Review.id),
                    ratings_sum=func.sum(Review.rating),
                ),
            ],
        )
        if not rows:
            return {"ratings_qty": 0, "ratings_sum": 0.0}
        return {"ratings_qty": int(rows[0]["ratings_qty"]), "ratings_sum": float(rows[0]["ratings_sum"])}

    def fetchVenueIdsByUser(self, session: Session, user_id) -> list:
        try:
            stmt = select(Review.venue_id).where(Review.user_id == user_id).distinct()
            return list(session.scalars(stmt).all())
        except Exception as e:
            logger.error(f"Error in ReviewDao.fetchVenueIdsByUser. Error Message: {e}")
            raise

    def deleteByUser(self, session: Session, user_id) -> int:
        try:
            result = session.execute(
                delete(Review).where(Review.user_id == user_id).execution_options(synchronize_session="fetch")
            )
            return result.rowcount
        except Exception as e:
            logger.error(f"Error in ReviewDao.deleteByUser. Error Message: {e}")
            raise
