"""
FastAPI Routers — Auth • Venues • Reviews • Users • Admin
=========================================================

Purpose
-------
Defines the HTTP API under `/api/v1`:
- Auth: signup, login, current-user profile, password change/reset, self-deactivation
- Venues: list (filter/sort/project/paginate), stats, CRUD, nested reviews
- Reviews: list, get, edit, delete
- Users: administrative CRUD
- Admin: venue ban/unban, rating recount, user (de)activation

Key Notes
---------
- Input validation via Pydantic models in `backend.api.models`.
- Auth: `token` cookie (set at login) or `Authorization: Bearer <jwt>`.
- Successful responses use the `{"status": "success", "data": {...}}` envelope;
  errors are rendered by the handlers in `backend.main`.
- Review mutations answer after the venue's rating summary was updated. If
  that update failed, the mutation still succeeds and a full recount is
  queued as a background task.
"""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from backend.api.models import (
    ForgotPassword,
    PasswordReset,
    PasswordUpdate,
    ReviewData,
    ReviewUpdate,
    SignupData,
    UserCreate,
    UserCredentials,
    UserInfoUpdate,
    UserUpdate,
    VenueData,
    VenueUpdate,
)
from backend.api.utils import create_access_token, envelope, get_current_user, require_roles
from backend.database.config.config import settings
from backend.database.core import auth, reviews, users, venues
from backend.database.core.exceptions import NotFoundError
from backend.database.core.ratings import recalculate_venue_rating, recalculate_venue_rating_safely

auth_router = APIRouter(prefix="/auth", tags=["auth"])
venue_router = APIRouter(prefix="/venues", tags=["venues"])
review_router = APIRouter(prefix="/reviews", tags=["reviews"])
user_router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_roles("admin"))])
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_roles("admin"))])

venue_writer = require_roles("owner", "admin")
review_writer = require_roles("user", "admin")


def _issue_token(response: Response, user: dict, status_code: int) -> dict:
    access_token = create_access_token(user["id"])
    response.set_cookie(
        key="token",
        value=access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=False,  # True in production
        samesite="lax",
    )
    response.status_code = status_code
    return {"status": "success", "token": access_token, "data": {"user": user}}


def _queue_recount(background_tasks: BackgroundTasks, venue_id, synced: bool) -> None:
    if not synced:
        background_tasks.add_task(recalculate_venue_rating_safely, venue_id)


# -----------------------
# Auth
# -----------------------

@auth_router.post("/signup", status_code=201)
def signup(data: SignupData, response: Response):
    """Register an account and log it in (token cookie + body)."""
    user = auth.signup(
        name=data.name,
        email=data.email,
        password=data.password,
        password_confirm=data.password_confirm,
        role=data.role,
    )
    return _issue_token(response, user, 201)


@auth_router.post("/login")
def login(data: UserCredentials, response: Response):
    """Authenticate with email/password and set a signed JWT cookie."""
    user = auth.authenticate_user(email=data.email, password=data.password)
    return _issue_token(response, user, 200)


@auth_router.get("/me")
def load_me(user: dict = Depends(get_current_user)):
    return envelope("user", user)


@auth_router.patch("/me")
def update_me(data: UserInfoUpdate, user: dict = Depends(get_current_user)):
    updated = auth.update_info(user["id"], data.model_dump(exclude_unset=True))
    return envelope("user", updated)


@auth_router.patch("/me/password")
def update_password(data: PasswordUpdate, response: Response, user: dict = Depends(get_current_user)):
    """Change the caller's password. Previously issued tokens stop working."""
    updated = auth.update_password(
        user_id=user["id"],
        current_password=data.current_password,
        new_password=data.password,
        password_confirm=data.password_confirm,
    )
    return _issue_token(response, updated, 200)


@auth_router.delete("/me", status_code=204)
def delete_me(user: dict = Depends(get_current_user)):
    """Deactivate the caller's account. It disappears from every read path."""
    auth.deactivate_me(user["id"])
    return Response(status_code=204)


@auth_router.post("/forgot-password")
def forgot_password(data: ForgotPassword):
    auth.forgot_password(email=data.email)
    return {"status": "success", "message": "Token sent to email"}


@auth_router.patch("/reset-password/{token}")
def reset_password(token: str, data: PasswordReset, response: Response):
    user = auth.reset_password(token=token, password=data.password, password_confirm=data.password_confirm)
    return _issue_token(response, user, 200)


# -----------------------
# Venues
# -----------------------

@venue_router.get("")
def get_venues(request: Request):
    """
    List visible venues.

    Query grammar: `<field>=v`, `<field>[gt|gte|lt|lte|in]=v`, `fields=a,-b`,
    `sort=a,-b` (default `-created_at`), `page` (default 1), `limit` (default 25).
    """
    result = venues.list_venues(request.query_params)
    return envelope("venues", result, results=True)


@venue_router.get("/stats")
def get_venue_stats(request: Request):
    """Per-affordability statistics over visible venues; filter terms narrow the input."""
    result = venues.venue_stats(request.query_params)
    return envelope("stats", result, results=True)


@venue_router.get("/{venue_id}")
def get_venue(venue_id: UUID, request: Request):
    return envelope("venue", venues.get_venue(venue_id, request.query_params))


@venue_router.post("", status_code=201)
def add_venue(data: VenueData, user: dict = Depends(venue_writer)):
    return envelope("venue", venues.create_venue(data.model_dump()))


@venue_router.patch("/{venue_id}")
def update_venue(venue_id: UUID, data: VenueUpdate, user: dict = Depends(venue_writer)):
    return envelope("venue", venues.update_venue(venue_id, data.model_dump(exclude_unset=True)))


@venue_router.delete("/{venue_id}", status_code=204)
def delete_venue(venue_id: UUID, user: dict = Depends(venue_writer)):
    venues.remove_venue(venue_id)
    return Response(status_code=204)


@venue_router.get("/{venue_id}/reviews")
def get_venue_reviews(venue_id: UUID, request: Request):
    result = reviews.list_reviews(request.query_params, venue_id=venue_id)
    return envelope("reviews", result, results=True)


@venue_router.post("/{venue_id}/reviews", status_code=201)
def add_review(venue_id: UUID, data: ReviewData, background_tasks: BackgroundTasks, user: dict = Depends(review_writer)):
    """Create the caller's review of a venue (one per venue)."""
    review, synced = reviews.add_review(venue_id, user["id"], data.model_dump())
    _queue_recount(background_tasks, venue_id, synced)
    return envelope("review", review)


# -----------------------
# Reviews
# -----------------------

@review_router.get("")
def get_reviews(request: Request):
    result = reviews.list_reviews(request.query_params)
    return envelope("reviews", result, results=True)


@review_router.get("/{review_id}")
def get_review(review_id: UUID):
    return envelope("review", reviews.get_review(review_id))


@review_router.patch("/{review_id}")
def update_review(review_id: UUID, data: ReviewUpdate, background_tasks: BackgroundTasks, user: dict = Depends(review_writer)):
    review, synced = reviews.edit_review(review_id, user, data.model_dump(exclude_unset=True))
    _queue_recount(background_tasks, review["venue_id"], synced)
    return envelope("review", review)


@review_router.delete("/{review_id}", status_code=204)
def delete_review(review_id: UUID, background_tasks: BackgroundTasks, user: dict = Depends(review_writer)):
    removed, synced = reviews.remove_review(review_id, user)
    _queue_recount(background_tasks, removed["venue_id"], synced)
    return Response(status_code=204)


# -----------------------
# Users (admin)
# -----------------------

@user_router.get("")
def get_users(request: Request):
    result = users.list_users(request.query_params)
    return envelope("users", result, results=True)


@user_router.get("/{user_id}")
def get_user(user_id: UUID, request: Request):
    return envelope("user", users.get_user(user_id, request.query_params))


@user_router.post("", status_code=201)
def add_user(data: UserCreate):
    return envelope("user", users.create_user(**data.model_dump()))


@user_router.patch("/{user_id}")
def update_user(user_id: UUID, data: UserUpdate):
    return envelope("user", users.update_user(user_id, data.model_dump(exclude_unset=True)))


@user_router.delete("/{user_id}", status_code=204)
def delete_user(user_id: UUID):
    """Delete a user and their reviews; affected venue ratings are recounted."""
    users.remove_user(user_id)
    return Response(status_code=204)


# -----------------------
# Admin
# -----------------------

@admin_router.patch("/venues/{venue_id}/ban")
def ban_venue(venue_id: UUID):
    return envelope("venue", venues.ban_venue(venue_id))


@admin_router.patch("/venues/{venue_id}/unban")
def unban_venue(venue_id: UUID):
    return envelope("venue", venues.unban_venue(venue_id))


@admin_router.post("/venues/{venue_id}/recalculate-rating")
def recalculate_rating(venue_id: UUID):
    summary = recalculate_venue_rating(venue_id)
    if summary is None:
        raise NotFoundError(f"No venue found with id {venue_id}")
    return envelope("rating", summary)


@admin_router.patch("/users/{user_id}/deactivate")
def deactivate_user(user_id: UUID):
    return envelope("user", users.deactivate_user(user_id))


@admin_router.patch("/users/{user_id}/activate")
def activate_user(user_id: UUID):
    return envelope("user", users.activate_user(user_id))


router = APIRouter(prefix="/api/v1")
"""Root router mounted by the application; groups every resource router."""
for sub_router in (auth_router, venue_router, review_router, user_router, admin_router):
    router.include_router(sub_router)
