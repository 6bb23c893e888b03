"""
User ORM Model
==============

The ``User`` ORM model represents a registered account. It maps to the
``app_user`` table and holds credentials, role and password-reset state.

Key features
~~~~~~~~~~~~
- Portable UUID primary key (``id``)
- Unique email, bcrypt-hashed password
- Role management (``user``, ``owner``, ``admin``)
- Password-reset token (stored as a sha256 digest) with expiry
- Visibility flag (``active``); inactive users are unreachable through the API

"""

from backend.database.config.connection_engine import EntityBase
from sqlalchemy import VARCHAR, Boolean, CheckConstraint, TEXT, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import UUID
import uuid
from datetime import datetime, timezone

USER_ROLES = ("user", "owner", "admin")


class User(EntityBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the user.
    name : str
        Display name.
    email : str
        Email address (unique).
    password : str
        bcrypt hash of the password.
    role : str
        One of ``USER_ROLES``.
    active : bool
        False once the account was deactivated; hidden from every read path.
    password_changed_at : datetime | None
        Tokens issued before this instant are rejected.
    """

    __tablename__ = "app_user"
    __table_args__ = (
        CheckConstraint(
            "role IN (" + ", ".join(f"'{role}'" for role in USER_ROLES) + ")",
            name="ck_app_user_role",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(VARCHAR(255), nullable=False)
    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(TEXT, nullable=False)
    role: Mapped[str] = mapped_column(VARCHAR(16), nullable=False, default="user")
    avatar: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    password_reset_token: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    reviews = relationship("Review", back_populates="user", passive_deletes=True)

    SERIALIZED_FIELDS = ("id", "name", "email", "role", "avatar", "created_at")
    """Public fields. Credentials and reset state are never serialized."""

    def __init__(self, name: str, email: str, password: str, role: str = "user", avatar: str | None = None):
        """
        Initialize a new User object.

        Parameters
        ----------
        name : str
            Display name.
        email : str
            Email address.
        password : str
            Already hashed password.
        role : str
            One of ``USER_ROLES``.
        avatar : str | None
            Optional avatar URL.
        """
        self.id = uuid.uuid4()
        self.name = name
        self.email = email
        self.password = password
        self.role = role
        self.avatar = avatar
        self.active = True
        self.created_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        return {field: getattr(self, field) for field in self.SERIALIZED_FIELDS}

    def __str__(self) -> str:
        return f"User: id:{self.id}, name: {self.name}, email: {self.email}, role: {self.role}"
