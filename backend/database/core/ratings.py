"""
Venue rating summary maintenance.

A venue's ``average_rating``/``ratings_qty`` pair is derived from its
reviews. After every committed review mutation the summary must equal the
mean and the number of the venue's current reviews, or ``(4.5, 0)`` when it
has none.

Two ways to get there:

- ``apply_rating_change`` (normal path) — O(1): shifts the running sum and
  count by the mutation's delta in a single atomic UPDATE.
- ``recalculate_venue_rating`` (repair path) — O(n): locks the venue row,
  recounts every review and overwrites the summary.

``sync_venue_rating`` runs the normal path in its own unit of work after the
review write has committed. It never raises: a failure is logged and
reported as ``False`` so the caller can schedule a recount, while the
review mutation itself stays committed and successful.
"""

import logging

from sqlalchemy.orm import Session

from backend.database.daos.review_dao import ReviewDao
from backend.database.daos.venue_dao import VenueDao
from backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


@transactional
def apply_rating_change(session: Session, venue_id, rating_delta: float, count_delta: int) -> bool:
    """
    Shift the venue's rating summary by one mutation's delta.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    venue_id : UUID
        Parent venue of the mutated review.
    rating_delta : float
        ``+rating`` on create, ``new - old`` on update, ``-rating`` on delete.
    count_delta : int
        ``+1`` on create, ``0`` on update, ``-1`` on delete.

    Returns
    -------
    bool
        False if the venue no longer exists.
    """
    return VenueDao().applyRatingDelta(session, venue_id, rating_delta, count_delta)


@transactional
def recalculate_venue_rating(session: Session, venue_id) -> dict | None:
    """
    Recount every review of a venue and overwrite its rating summary.

    The venue row is locked first (``SELECT ... FOR UPDATE``) so that
    concurrent deltas wait for the recount instead of being lost under it.

    Returns
    -------
    dict | None
        ``{"average_rating", "ratings_qty"}`` as written, or None when the
        venue does not exist.
    """
    venue_dao = VenueDao()
    venue = venue_dao.lockById(session, venue_id)
    if venue is None:
        return None
    summary = ReviewDao().ratingSummary(session, venue_id)
    venue = venue_dao.writeRatingSummary(session, venue, summary["ratings_sum"], summary["ratings_qty"])
    logger.info(f"Recalculated rating of venue {venue_id}: {venue.average_rating} ({venue.ratings_qty})")
    return {"average_rating": venue.average_rating, "ratings_qty": venue.ratings_qty}


def sync_venue_rating(venue_id, rating_delta: float, count_delta: int) -> bool:
    """
    Apply a rating delta without letting a failure escape.

    Returns
    -------
    bool
        True when the summary was updated (or there was nothing to do),
        False when the update failed and a recount should be scheduled.
    """
    if rating_delta == 0 and count_delta == 0:
        return True
    try:
        apply_rating_change(venue_id, rating_delta, count_delta)
        return True
    except Exception:
        logger.exception(f"Rating update failed for venue {venue_id}; a recount is required")
        return False


def recalculate_venue_rating_safely(venue_id) -> None:
    """Background-task entry point: recount, logging instead of raising."""
    try:
        recalculate_venue_rating(venue_id)
    except Exception:
        logger.exception(f"Rating recount failed for venue {venue_id}")
