"""
Service-layer operations for authentication and the current user's account.

All functions are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Token signing lives in
``backend.api.utils``; this module only resolves and checks accounts.

Every lookup goes through ``visibleUserDao()``: a deactivated account
cannot log in, cannot use an existing token and cannot request a reset.
"""

import logging
import smtplib
from datetime import datetime, timedelta, timezone
from email.mime.text import MIMEText

from sqlalchemy.orm import Session

from backend.crypt.encrypt_decrypt import EncryptionDec
from backend.database.config.config import settings
from backend.database.core.exceptions import (
    AuthenticationError,
    NotFoundError,
    ValidationFailedError,
)
from backend.database.core.users import create_user, set_user_active, update_user
from backend.database.daos.user_dao import UserDao, visibleUserDao
from backend.database.entities.user import User
from backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)

SIGNUP_ROLES = ("user", "owner")


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def signup(name: str, email: str, password: str, password_confirm: str, role: str = "user") -> dict:
    """
    Register a new account.

    Raises
    ------
    ValidationFailedError
        Password too short, confirmation mismatch or a role that cannot be
        self-assigned.
    ConflictError
        Email already registered.
    """
    enc = EncryptionDec()
    if not enc.is_valid_password(password):
        raise ValidationFailedError("Password must be at least 6 characters")
    if password != password_confirm:
        raise ValidationFailedError("Passwords do not match")
    if role not in SIGNUP_ROLES:
        raise ValidationFailedError(f"Role must be one of {', '.join(SIGNUP_ROLES)}")
    return create_user(name=name, email=email, password=password, role=role)


@transactional
def authenticate_user(session: Session, email: str, password: str) -> dict:
    """
    Check credentials.

    Returns
    -------
    dict
        The user's public representation.

    Raises
    ------
    AuthenticationError
        Unknown email, inactive account or wrong password. The message does
        not say which.
    """
    user = visibleUserDao().findOne(session, User.email == email.strip().lower())
    if user is None or not EncryptionDec().check_passwords(password, user.password):
        raise AuthenticationError("Incorrect email or password")
    return user.to_dict()


@transactional
def resolve_token_user(session: Session, user_id, issued_at: int) -> dict:
    """
    Load the account a verified token refers to.

    Raises
    ------
    AuthenticationError
        The account no longer exists, is inactive, or changed its password
        after the token was issued.
    """
    user = visibleUserDao().findById(session, user_id)
    if user is None:
        raise AuthenticationError("The user belonging to this token no longer exists")
    changed_at = _as_utc(user.password_changed_at)
    if changed_at is not None and issued_at < int(changed_at.timestamp()):
        raise AuthenticationError("Password was changed recently, please log in again")
    return user.to_dict()


def update_info(user_id, data: dict) -> dict:
    """Update the caller's own name/email/avatar. Role and visibility are not accepted here."""
    return update_user(user_id, data)


@transactional
def update_password(session: Session, user_id, current_password: str, new_password: str, password_confirm: str) -> dict:
    enc = EncryptionDec()
    user = visibleUserDao().findById(session, user_id)
    if user is None:
        raise NotFoundError(f"No user found with id {user_id}")
    if not enc.check_passwords(current_password, user.password):
        raise AuthenticationError("Your current password is wrong")
    _set_password(session, user, new_password, password_confirm)
    return user.to_dict()


def _set_password(session: Session, user: User, password: str, password_confirm: str) -> None:
    enc = EncryptionDec()
    if not enc.is_valid_password(password):
        raise ValidationFailedError("Password must be at least 6 characters")
    if password != password_confirm:
        raise ValidationFailedError("Passwords do not match")
    UserDao().update(
        session,
        user,
        {
            "password": enc.hash_password(text=password),
            # one second back so a token issued right after still validates
            "password_changed_at": datetime.now(timezone.utc) - timedelta(seconds=1),
            "password_reset_token": None,
            "password_reset_expires": None,
        },
    )


@transactional
def forgot_password(session: Session, email: str) -> None:
    """
    Create a password-reset token and email it.

    Only the token's sha256 digest and its expiry are stored. If sending the
    email fails, the token is discarded with the rolled-back transaction and
    the error propagates.
    """
    enc = EncryptionDec()
    user = visibleUserDao().findOne(session, User.email == email.strip().lower())
    if user is None:
        raise NotFoundError("There is no user with that email address")
    token = enc.generate_reset_token()
    UserDao().update(
        session,
        user,
        {
            "password_reset_token": enc.hash_token(token),
            "password_reset_expires": datetime.now(timezone.utc)
            + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        },
    )
    send_password_reset_email(email=user.email, token=token)


@transactional
def reset_password(session: Session, token: str, password: str, password_confirm: str) -> dict:
    enc = EncryptionDec()
    user = visibleUserDao().findOne(session, User.password_reset_token == enc.hash_token(token))
    expires = _as_utc(user.password_reset_expires) if user is not None else None
    if user is None or expires is None or expires < datetime.now(timezone.utc):
        raise ValidationFailedError("Token is invalid or has expired")
    _set_password(session, user, password, password_confirm)
    return user.to_dict()


def deactivate_me(user_id) -> None:
    set_user_active(user_id, False)


def send_password_reset_email(email: str, token: str) -> None:
    """
    Send a password-reset token using the configured SMTP server.

    Notes
    -----
    - Uses `settings.SENDER_EMAIL` and `settings.APP_PASSWORD` for SMTP auth.
    - Sends plain-text email via `settings.SMTP_HOST:settings.SMTP_PORT` with STARTTLS.
    - Exceptions are propagated to the caller.
    """
    sender_email = settings.SENDER_EMAIL

    msg = MIMEText(
        f"Forgot your password? Use this token to reset it: {token}\n"
        f"It is valid for {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
        "If you didn't request a reset, ignore this email."
    )
    msg["Subject"] = "Your password reset token"
    msg["From"] = sender_email
    msg["To"] = email

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(sender_email, settings.APP_PASSWORD)
        server.sendmail(sender_email, email, msg.as_string())
    logger.info(f"Password reset email sent to {email}")
