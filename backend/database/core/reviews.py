"""
Service-layer operations for reviews.

Mutations follow a fixed pipeline:

    validate → persist (own transaction, committed) → update parent rating

The first two steps are one ``@transactional`` function; the rating update
is a separate unit of work run by ``sync_venue_rating`` afterwards. A
review mutation that fails validation (unknown venue, duplicate author,
not the author) never reaches the rating step. A rating step that fails
never undoes the review mutation.

Mutations return ``(review_dict, rating_synced)``; when ``rating_synced``
is False the caller schedules ``recalculate_venue_rating_safely``.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.database.core.exceptions import DuplicateReviewError, NotFoundError, PermissionDeniedError
from backend.database.core.ratings import sync_venue_rating
from backend.database.daos.review_dao import ReviewDao
from backend.database.daos.venue_dao import visibleVenueDao
from backend.database.entities.review import Review
from backend.database.helpers.transactionManagement import transactional
from backend.database.query.descriptor import Equals
from backend.database.query.translator import build_query

logger = logging.getLogger(__name__)


def _review_not_found(review_id) -> NotFoundError:
    return NotFoundError(f"No review found with id {review_id}")


def _check_author(review: Review, actor: dict) -> None:
    if actor["role"] != "admin" and review.user_id != actor["id"]:
        raise PermissionDeniedError("You can only modify your own reviews")


@transactional
def list_reviews(session: Session, params, venue_id=None) -> list[dict]:
    """
    List reviews, optionally scoped to one venue.

    A venue scope must resolve to a visible venue; the reviews of a banned
    venue are answered with the same 404 as an unknown venue.
    """
    query = build_query(params)
    if venue_id is not None:
        if visibleVenueDao().findById(session, venue_id) is None:
            raise NotFoundError(f"No venue found with id {venue_id}")
        query = query.narrowed(Equals("venue_id", str(venue_id)))
    reviews = ReviewDao().find(session, query)
    return [query.projection.apply(review.to_dict()) for review in reviews]


@transactional
def get_review(session: Session, review_id) -> dict:
    review = ReviewDao().findById(session, review_id)
    if review is None:
        raise _review_not_found(review_id)
    return review.to_dict()


@transactional
def create_review(session: Session, venue_id, user_id, data: dict) -> dict:
    """
    Validate and persist a new review.

    Raises
    ------
    NotFoundError
        The venue does not exist or is banned.
    DuplicateReviewError
        The author already reviewed this venue.
    """
    review_dao = ReviewDao()
    if visibleVenueDao().findById(session, venue_id) is None:
        raise NotFoundError(f"No venue found with id {venue_id}")
    if review_dao.fetchByVenueAndUser(session, venue_id, user_id) is not None:
        raise DuplicateReviewError("You have already reviewed this venue")
    try:
        review = review_dao.create(
            session, Review(review=data["review"], rating=data["rating"], venue_id=venue_id, user_id=user_id)
        )
    except IntegrityError:
        raise DuplicateReviewError("You have already reviewed this venue")
    session.refresh(review)
    return review.to_dict()


@transactional
def update_review(session: Session, review_id, actor: dict, data: dict) -> tuple[dict, int]:
    """
    Validate and persist a review edit.

    Returns
    -------
    tuple[dict, int]
        The updated review and the rating change (``new - old``).
    """
    review_dao = ReviewDao()
    review = review_dao.findById(session, review_id)
    if review is None:
        raise _review_not_found(review_id)
    _check_author(review, actor)
    previous_rating = review.rating
    review = review_dao.update(session, review, data)
    return review.to_dict(), review.rating - previous_rating


@transactional
def delete_review(session: Session, review_id, actor: dict) -> dict:
    review_dao = ReviewDao()
    review = review_dao.findById(session, review_id)
    if review is None:
        raise _review_not_found(review_id)
    _check_author(review, actor)
    removed = {"id": review.id, "venue_id": review.venue_id, "rating": review.rating}
    review_dao.delete(session, review)
    return removed


def add_review(venue_id, user_id, data: dict) -> tuple[dict, bool]:
    """Create a review, then add its rating to the venue summary."""
    review = create_review(venue_id, user_id, data)
    synced = sync_venue_rating(review["venue_id"], review["rating"], 1)
    return review, synced


def edit_review(review_id, actor: dict, data: dict) -> tuple[dict, bool]:
    """Edit a review, then shift the venue summary by the rating change."""
    review, rating_change = update_review(review_id, actor, data)
    synced = sync_venue_rating(review["venue_id"], rating_change, 0)
    return review, synced


def remove_review(review_id, actor: dict) -> tuple[dict, bool]:
    """Delete a review, then remove its rating from the venue summary."""
    removed = delete_review(review_id, actor)
    synced = sync_venue_rating(removed["venue_id"], -removed["rating"], -1)
    return removed, synced
