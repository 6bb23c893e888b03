"""
Pydantic models used for request validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation.

Update models forbid unknown keys: a payload that tries to set a venue's
rating summary, a ban flag or a user's role/active state through an
ordinary update is rejected instead of silently applied.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PHONE_PATTERN = r"^[\+]?[(]?[0-9]{3}[)]?[-\s\.]?[0-9]{3}[-\s\.]?[0-9]{4,6}$"

Affordability = Literal["affordable", "regular", "expensive"]


def reject_null(value):
    """Refuse an explicit null for a field whose column is NOT NULL."""
    if value is None:
        raise ValueError("may not be null")
    return value


class VenueData(BaseModel):
    """
    Business fields of a venue, as accepted on creation.
    """
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=25, description="Unique venue name.", examples=["Blue Door Bistro"])
    max_table_size: Optional[int] = Field(None, ge=1)
    affordability: Affordability
    average_dish_price: Optional[float] = Field(None, ge=0)
    description: str = Field(..., min_length=50, max_length=500)
    image_cover: Optional[str] = None
    open_dine_in: bool = False
    vegan_friendly: bool = False
    address: Optional[str] = None
    phone: str = Field(..., pattern=PHONE_PATTERN, examples=["555-123-4567"])
    email: EmailStr


class VenueUpdate(BaseModel):
    """
    Partial update of a venue's business fields. Only keys present in the
    request are applied.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=25)
    max_table_size: Optional[int] = Field(None, ge=1)
    affordability: Optional[Affordability] = None
    average_dish_price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, min_length=50, max_length=500)
    image_cover: Optional[str] = None
    open_dine_in: Optional[bool] = None
    vegan_friendly: Optional[bool] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None

    no_nulls = field_validator(
        "name", "affordability", "description", "open_dine_in", "vegan_friendly", "phone", "email", mode="before"
    )(reject_null)


class ReviewData(BaseModel):
    """
    A new review. The venue comes from the URL and the author from the token.
    """
    model_config = ConfigDict(extra="forbid")

    review: str = Field(..., min_length=50)
    """Review body."""
    rating: int = Field(..., ge=1, le=5)
    """Rating between 1 and 5."""


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    review: Optional[str] = Field(None, min_length=50)
    rating: Optional[int] = Field(None, ge=1, le=5)

    no_nulls = field_validator("review", "rating", mode="before")(reject_null)


class SignupData(BaseModel):
    """
    Represents data required to register a new user.
    """
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    """Plaintext password, at least 6 characters."""
    password_confirm: str
    role: Literal["user", "owner"] = "user"


class UserCredentials(BaseModel):
    """
    Represents login credentials for a user.
    """
    email: EmailStr
    password: str


class UserCreate(BaseModel):
    """
    Account created by an administrator; any role may be assigned.
    """
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["user", "owner", "admin"] = "user"
    avatar: Optional[str] = None


class UserUpdate(BaseModel):
    """
    Administrative update. The ``active`` flag has its own endpoints.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Literal["user", "owner", "admin"]] = None
    avatar: Optional[str] = None

    no_nulls = field_validator("name", "email", "role", mode="before")(reject_null)


class UserInfoUpdate(BaseModel):
    """
    Self-service profile update. Passwords and roles are not accepted.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None

    no_nulls = field_validator("name", "email", mode="before")(reject_null)


class PasswordUpdate(BaseModel):
    current_password: str
    password: str
    password_confirm: str


class ForgotPassword(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    password: str
    password_confirm: str
