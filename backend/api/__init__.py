"""
API Package — FastAPI Routers • Models • JWT Utils
==================================================

Contents
--------
- fast_api
    Routers mounted under `/api/v1`:
      • auth: signup, login, me (get/update/delete), password update, forgot/reset password
      • venues: list, stats, get, create, update, delete, nested review list/create
      • reviews: list, get, update, delete
      • users (admin): list, get, create, update, delete
      • admin: venue ban/unban and rating recount, user activate/deactivate

- models
    Pydantic request contracts. Update models forbid unknown keys, so rating
    summaries, ban flags and account state cannot be smuggled into an update.

- utils
    JWT helpers and dependencies:
      • create_access_token(user_id) / verify_token(token)
      • get_current_user — resolves the caller from cookie or bearer header
      • require_roles(*roles) — role gate
      • envelope(resource, data) — success response shape

Operational Notes
-----------------
- List endpoints accept the query grammar handled by `backend.database.query`.
- Security: auth via HttpOnly `token` cookie or bearer header. Never log secrets.
"""
