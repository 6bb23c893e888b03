"""
Review ORM Model
================

The ``Review`` ORM model is the *child* side of the venue → review
relationship. Each review belongs to exactly one venue and one author.

Key features
~~~~~~~~~~~~
- Portable UUID primary key (``id``)
- Rating (1–5) and free-text body
- Foreign keys to ``venue.id`` and ``app_user.id``
- Unique (``venue_id``, ``user_id``): one review per author per venue
"""

from backend.database.config.connection_engine import EntityBase
from sqlalchemy import TEXT, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import UUID
import uuid
from datetime import datetime, timezone


class Review(EntityBase):
    """
    ORM model for the `review` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    review : str
        Review body.
    rating : int
        Rating between 1 and 5.
    venue_id : UUID
        Foreign key to the reviewed venue.
    user_id : UUID
        Foreign key to the author.
    created_at : datetime
        Insert timestamp (UTC).
    """

    __tablename__ = "review"
    __table_args__ = (UniqueConstraint("venue_id", "user_id", name="uq_review_venue_user"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    review: Mapped[str] = mapped_column(TEXT, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    venue_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("venue.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    venue = relationship("Venue", back_populates="reviews")
    user = relationship("User", back_populates="reviews")

    SERIALIZED_FIELDS = ("id", "review", "rating", "venue_id", "user_id", "created_at")

    def __init__(self, review: str, rating: int, venue_id: UUID, user_id: UUID, created_at: datetime | None = None):
        self.id = uuid.uuid4()
        self.review = review
        self.rating = rating
        self.venue_id = venue_id
        self.user_id = user_id
        self.created_at = created_at or datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        """
        Return the public representation of the review, with the author and
        venue embedded as ``{id, name}`` summaries.

        A banned venue or an inactive author is embedded as ``None``, the
        same as a missing one.
        """
        data = {field: getattr(self, field) for field in self.SERIALIZED_FIELDS}
        user_visible = self.user is not None and self.user.active
        venue_visible = self.venue is not None and not self.venue.banned
        data["user"] = {"id": self.user.id, "name": self.user.name} if user_visible else None
        data["venue"] = {"id": self.venue.id, "name": self.venue.name} if venue_visible else None
        return data

    def __str__(self) -> str:
        return f"Review: id:{self.id}, venue: {self.venue_id}, user: {self.user_id}, rating: {self.rating}"
