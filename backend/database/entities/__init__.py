"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package).

Conventions
-----------
- Portable `Uuid` primary keys (native UUID on PostgreSQL, CHAR(32) elsewhere)
- Timezone-aware timestamps (UTC), stamped per row at insert
- `SERIALIZED_FIELDS` lists what the API exposes; it doubles as the set of
  fields a request may filter, sort or project on
- `to_dict()` builds the public representation

Contents
--------
- Venue
    Reviewable place. Carries the denormalized rating summary
    (`average_rating`, `ratings_qty`, `ratings_sum`) and the `banned` flag.

- User
    Registered account with role, bcrypt password hash, reset-token state
    and the `active` flag.

- Review
    A user's rating and text for one venue; unique per (venue, user).
"""

from backend.database.entities.venue import Venue, DEFAULT_AVERAGE_RATING
from backend.database.entities.user import User, USER_ROLES
from backend.database.entities.review import Review

__all__ = ["Venue", "User", "Review", "DEFAULT_AVERAGE_RATING", "USER_ROLES"]
