"""
User DAO

Purpose
-------
Data-access layer for the `User` entity. Provides, beyond the generic
``EntityDao`` operations:
- Lookup by email regardless of visibility (signup uniqueness check)

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller.
- Passwords arrive already hashed; hashing lives in ``backend.crypt``.
- ``visibleUserDao()`` hides inactive users. Login, token resolution and
  all user listings go through it, so a deactivated account can neither
  sign in nor be seen.
"""

from sqlalchemy.orm import Session

from backend.database.daos.entity_dao import EntityDao
from backend.database.daos.visibility import VisibleDao
from backend.database.entities.user import User

USER_IS_VISIBLE = User.active.is_(True)


class UserDao(EntityDao):
    """
    Data Access Object (DAO) for managing User entities.
    """

    model = User
    fields = User.SERIALIZED_FIELDS

    def fetchUserByEmail(self, session: Session, email: str):
        """
        Fetch a user by email, regardless of visibility.

        Used for the uniqueness check at signup, where an inactive account
        still owns its address.
        """
        return self.findOne(session, User.email == email.strip().lower())


def visibleUserDao() -> VisibleDao:
    return VisibleDao(UserDao(), USER_IS_VISIBLE)
