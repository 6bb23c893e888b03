"""
Service-layer operations for venues.

Every read goes through ``visibleVenueDao()``, so banned venues never
appear in listings, id lookups or statistics. Only ``ban_venue`` and
``unban_venue`` touch the ``banned`` flag, and they are the only operations
that reach a banned venue.

All functions are wrapped with `@transactional` and return plain dicts, so
results stay usable after the session is closed.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.database.core.exceptions import ConflictError, NotFoundError
from backend.database.daos.venue_dao import VenueDao, visibleVenueDao
from backend.database.entities.venue import Venue
from backend.database.helpers.transactionManagement import transactional
from backend.database.query.compiler import compile_filter
from backend.database.query.pipeline import group, match, order
from backend.database.query.translator import build_query

logger = logging.getLogger(__name__)


def _not_found(venue_id) -> NotFoundError:
    return NotFoundError(f"No venue found with id {venue_id}")


@transactional
def list_venues(session: Session, params) -> list[dict]:
    """
    List visible venues for raw request query parameters.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    params : Mapping[str, str] | QueryParams
        Filter, `fields`, `sort`, `page` and `limit` parameters.

    Returns
    -------
    list[dict]
        Projected venue representations.
    """
    query = build_query(params)
    venues = visibleVenueDao().find(session, query)
    return [query.projection.apply(venue.to_dict()) for venue in venues]


@transactional
def get_venue(session: Session, venue_id, params=None) -> dict:
    query = build_query(params or {})
    venue = visibleVenueDao().findById(session, venue_id)
    if venue is None:
        raise _not_found(venue_id)
    return query.projection.apply(venue.to_dict())


@transactional
def venue_stats(session: Session, params=None) -> list[dict]:
    """
    Aggregate visible venues per affordability class.

    Request filter terms (``vegan_friendly=true``, ``average_rating[gte]=4``)
    narrow the venues before grouping.

    Returns
    -------
    list[dict]
        One row per affordability class:
        ``{affordability, num_venues, num_ratings, avg_rating, avg_dish_price, min_dish_price, max_dish_price}``.
    """
    query = build_query(params or {})
    criteria = compile_filter(Venue, set(Venue.SERIALIZED_FIELDS), query)
    pipeline = []
    if criteria is not None:
        pipeline.append(match(criteria))
    pipeline += [
        group(
            Venue.affordability,
            num_venues=func.count(Venue.id),
            num_ratings=func.sum(Venue.ratings_qty),
            avg_rating=func.avg(Venue.average_rating),
            avg_dish_price=func.avg(Venue.average_dish_price),
            min_dish_price=func.min(Venue.average_dish_price),
            max_dish_price=func.max(Venue.average_dish_price),
        ),
        order(func.avg(Venue.average_rating).desc(), Venue.affordability),
    ]
    return visibleVenueDao().aggregate(session, pipeline)


@transactional
def create_venue(session: Session, data: dict) -> dict:
    """
    Create a venue from business fields.

    The rating summary starts at its no-review default and the venue starts
    visible; neither can be supplied by the caller.

    Raises
    ------
    ConflictError
        If another venue (banned or not) already uses the name.
    """
    venue_dao = VenueDao()
    if venue_dao.fetchByName(session, data["name"]) is not None:
        raise ConflictError(f"Value {data['name']} for name field is already taken")
    try:
        venue = venue_dao.create(session, Venue(**data))
    except IntegrityError:
        raise ConflictError(f"Value {data['name']} for name field is already taken")
    return venue.to_dict()


@transactional
def update_venue(session: Session, venue_id, data: dict) -> dict:
    venue_dao = VenueDao()
    if "name" in data:
        clash = venue_dao.fetchByName(session, data["name"])
        if clash is not None and clash.id != venue_id:
            raise ConflictError(f"Value {data['name']} for name field is already taken")
    venue = visibleVenueDao().updateById(session, venue_id, data)
    if venue is None:
        raise _not_found(venue_id)
    return venue.to_dict()


@transactional
def remove_venue(session: Session, venue_id) -> None:
    """Delete a visible venue together with its reviews."""
    venue = visibleVenueDao().deleteById(session, venue_id)
    if venue is None:
        raise _not_found(venue_id)
    logger.info(f"Deleted venue {venue_id}")


@transactional
def set_venue_banned(session: Session, venue_id, banned: bool) -> dict:
    """
    Administrative visibility transition.

    Reaches the venue without the visibility filter so a banned venue can be
    restored. Returns ``{"id", "banned"}``.
    """
    venue = VenueDao().updateById(session, venue_id, {"banned": banned})
    if venue is None:
        raise _not_found(venue_id)
    logger.info(f"Venue {venue_id} {'banned' if banned else 'unbanned'}")
    return {"id": venue.id, "banned": venue.banned}


def ban_venue(venue_id) -> dict:
    return set_venue_banned(venue_id, True)


def unban_venue(venue_id) -> dict:
    return set_venue_banned(venue_id, False)
