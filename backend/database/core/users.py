"""
Service-layer operations for user administration.

Listings and lookups go through ``visibleUserDao()``: inactive users are
hidden exactly like banned venues. ``set_user_active`` is the only
operation that reaches an inactive account, and the only one (besides a
user deactivating themselves) that changes the ``active`` flag.

Deleting a user removes their reviews, then recounts the rating of every
venue they had reviewed.
"""

import logging

from sqlalchemy.orm import Session

from backend.crypt.encrypt_decrypt import EncryptionDec
from backend.database.core.exceptions import ConflictError, NotFoundError
from backend.database.core.ratings import recalculate_venue_rating_safely
from backend.database.daos.review_dao import ReviewDao
from backend.database.daos.user_dao import UserDao, visibleUserDao
from backend.database.entities.user import User
from backend.database.helpers.transactionManagement import transactional
from backend.database.query.translator import build_query

logger = logging.getLogger(__name__)


def _not_found(user_id) -> NotFoundError:
    return NotFoundError(f"No user found with id {user_id}")


@transactional
def list_users(session: Session, params) -> list[dict]:
    query = build_query(params)
    users = visibleUserDao().find(session, query)
    return [query.projection.apply(user.to_dict()) for user in users]


@transactional
def get_user(session: Session, user_id, params=None) -> dict:
    query = build_query(params or {})
    user = visibleUserDao().findById(session, user_id)
    if user is None:
        raise _not_found(user_id)
    return query.projection.apply(user.to_dict())


@transactional
def create_user(session: Session, name: str, email: str, password: str, role: str = "user", avatar: str | None = None) -> dict:
    """
    Create an account with a hashed password.

    Raises
    ------
    ConflictError
        If the email is already registered (active or not).
    """
    user_dao = UserDao()
    email = email.strip().lower()
    if user_dao.fetchUserByEmail(session, email) is not None:
        raise ConflictError(f"Value {email} for email field is already taken")
    user = User(
        name=name.strip(),
        email=email,
        password=EncryptionDec().hash_password(text=password),
        role=role,
        avatar=avatar,
    )
    user_dao.create(session, user)
    return user.to_dict()


@transactional
def update_user(session: Session, user_id, data: dict) -> dict:
    if "email" in data:
        data = {**data, "email": data["email"].strip().lower()}
        clash = UserDao().fetchUserByEmail(session, data["email"])
        if clash is not None and clash.id != user_id:
            raise ConflictError(f"Value {data['email']} for email field is already taken")
    user = visibleUserDao().updateById(session, user_id, data)
    if user is None:
        raise _not_found(user_id)
    return user.to_dict()


@transactional
def delete_user_and_reviews(session: Session, user_id) -> list:
    """
    Delete a visible user and all of their reviews.

    Returns
    -------
    list
        Ids of the venues whose ratings need a recount.
    """
    user_dao = visibleUserDao()
    if user_dao.findById(session, user_id) is None:
        raise _not_found(user_id)
    review_dao = ReviewDao()
    venue_ids = review_dao.fetchVenueIdsByUser(session, user_id)
    removed = review_dao.deleteByUser(session, user_id)
    user_dao.deleteById(session, user_id)
    logger.info(f"Deleted user {user_id} and {removed} review(s)")
    return venue_ids


def remove_user(user_id) -> None:
    for venue_id in delete_user_and_reviews(user_id):
        recalculate_venue_rating_safely(venue_id)


@transactional
def set_user_active(session: Session, user_id, active: bool) -> dict:
    """
    Visibility transition for an account. Reaches inactive users too, so an
    administrator can reactivate them. Returns ``{"id", "active"}``.
    """
    user = UserDao().updateById(session, user_id, {"active": active})
    if user is None:
        raise _not_found(user_id)
    logger.info(f"User {user_id} {'activated' if active else 'deactivated'}")
    return {"id": user.id, "active": user.active}


def activate_user(user_id) -> dict:
    return set_user_active(user_id, True)


def deactivate_user(user_id) -> dict:
    return set_user_active(user_id, False)
