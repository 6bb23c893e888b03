"""
JWT utilities, request dependencies and the response envelope.

Functions
---------
create_access_token(user_id) -> str
    Creates a signed JWT access token with `sub`, `iat` and `exp` claims.
verify_token(token: str) -> dict | None
    Verify a JWT's signature & expiration and return its claims if valid.
get_current_user(...) -> dict
    FastAPI dependency resolving the caller from the `token` cookie or an
    `Authorization: Bearer` header.
require_roles(*roles)
    Dependency factory restricting a route to the given roles.
envelope(resource, data) -> dict
    `{"status": "success", "results"?: n, "data": {resource: data}}`

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
ACCESS_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header
from jose import jwt, JWTError

from backend.database.config.config import settings
from backend.database.core.auth import resolve_token_user
from backend.database.core.exceptions import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)


def create_access_token(user_id) -> str:
    """
    Create a signed JWT access token.

    Parameters
    ----------
    user_id : UUID | str
        Identifier of the authenticated user, stored as the `sub` claim.

    Returns
    -------
    str
        Encoded JWT string.
    """
    issued_at = int(datetime.now(timezone.utc).timestamp())
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + int(settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify a JWT and return its claims.

    Returns
    ----------
    dict | None
        The decoded claims if the token is valid, otherwise None.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        return None


def _bearer(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def get_current_user(token: str = Cookie(None), authorization: str = Header(None)) -> dict:
    """
    Resolve the calling user.

    Raises
    ------
    AuthenticationError
        Missing, invalid or expired token, or the user is gone/inactive.
    """
    raw = _bearer(authorization) or token
    if not raw:
        raise AuthenticationError("You are not logged in")
    claims = verify_token(raw)
    if not claims or "sub" not in claims:
        raise AuthenticationError("Invalid or expired token")
    try:
        user_id = uuid.UUID(claims["sub"])
    except ValueError:
        raise AuthenticationError("Invalid or expired token")
    return resolve_token_user(user_id, int(claims.get("iat", 0)))


def require_roles(*roles: str):
    """Return a dependency that admits only users whose role is in ``roles``."""
    def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            raise PermissionDeniedError("You do not have permission to perform this action")
        return user
    return dependency


def envelope(resource: str, data, results: bool = False) -> dict:
    body = {"status": "success"}
    if results:
        body["results"] = len(data)
    body["data"] = {resource: data}
    return body
