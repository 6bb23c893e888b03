"""
Venue ORM Model
===============

The ``Venue`` ORM model represents a reviewable place (restaurant, bar, cafe)
stored in the ``venue`` table. Venues are the *parent* side of the
venue → review relationship.

Key features
~~~~~~~~~~~~
- Portable UUID primary key (``id``)
- Business fields (name, affordability, dish price, contact details ...)
- Denormalized rating summary (``average_rating``, ``ratings_qty``) plus the
  running ``ratings_sum`` it is derived from
- Administrative visibility flag (``banned``)

Ownership
~~~~~~~~~
The rating summary columns are written only by
``backend.database.core.ratings``; the ``banned`` flag only by the admin
operations in ``backend.database.core.venues``. Neither is part of any
create/update payload model.
"""

from backend.database.config.connection_engine import EntityBase
from sqlalchemy import VARCHAR, TEXT, Boolean, DateTime, Float, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import UUID
import uuid
from datetime import datetime, timezone

DEFAULT_AVERAGE_RATING = 4.5
"""Average reported for a venue that currently has no reviews."""


class Venue(EntityBase):
    """
    ORM model for the `venue` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    name : str
        Unique display name (max 25 chars).
    affordability : str
        One of ``affordable``, ``regular``, ``expensive``.
    average_rating : float
        Mean rating of all reviews, or ``DEFAULT_AVERAGE_RATING`` when there are none.
    ratings_qty : int
        Number of reviews.
    ratings_sum : float
        Sum of all review ratings. Internal; never serialized.
    banned : bool
        Hidden from every read path when True.
    created_at : datetime
        Insert timestamp (UTC).
    """

    __tablename__ = "venue"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(VARCHAR(25), nullable=False, unique=True)
    max_table_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    affordability: Mapped[str] = mapped_column(VARCHAR(16), nullable=False)
    average_dish_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str] = mapped_column(TEXT, nullable=False)
    image_cover: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    open_dine_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vegan_friendly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    address: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    phone: Mapped[str] = mapped_column(VARCHAR(32), nullable=False)
    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False)

    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_AVERAGE_RATING)
    ratings_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ratings_sum: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    reviews = relationship("Review", back_populates="venue", cascade="all, delete-orphan")

    SERIALIZED_FIELDS = (
        "id", "name", "max_table_size", "affordability", "average_dish_price",
        "description", "image_cover", "open_dine_in", "vegan_friendly", "address",
        "phone", "email", "average_rating", "ratings_qty", "created_at",
    )
    """Fields exposed through the API, and therefore filterable, sortable and projectable."""

    def to_dict(self) -> dict:
        """Return the public representation of the venue."""
        return {field: getattr(self, field) for field in self.SERIALIZED_FIELDS}

    def __str__(self) -> str:
        return f"Venue: id:{self.id}, name: {self.name}, rating: {self.average_rating} ({self.ratings_qty})"
