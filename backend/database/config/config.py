"""
Application settings (pydantic-settings)
========================================

All runtime configuration of the venue reviews service is read from
environment variables, falling back to a `.env` file in the working
directory. Only ``SECRET_KEY`` is mandatory; every other value has a
default suited to a local SQLite setup.

Groups
------
- Database: ``DB_*`` fields, assembled into a URL by ``connection_engine``.
- Tokens: ``SECRET_KEY``, ``ALGORITHM``, ``ACCESS_TOKEN_EXPIRE_MINUTES``.
- Passwords: ``BCRYPT_ROUNDS``, ``PASSWORD_RESET_EXPIRE_MINUTES``.
- Email: ``SENDER_EMAIL``, ``APP_PASSWORD``, ``SMTP_HOST``, ``SMTP_PORT``.
- Runtime: ``FRONTEND_URL`` (CORS), ``INIT_MODE``, ``LOG_LEVEL``.

Usage
-----
from backend.database.config.config import settings

token_ttl = settings.ACCESS_TOKEN_EXPIRE_MINUTES

Never commit the `.env` file; in production pass secrets as environment
variables.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Typed view of the service environment. Unknown variables are ignored;
    a missing ``SECRET_KEY`` fails at import time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    FRONTEND_URL: str = Field("http://localhost:5173", description="Origin of the frontend allowed by CORS.")

    DB_DRIVER_NAME: str = Field("sqlite", description="SQLAlchemy driver (`sqlite`, `postgresql+psycopg`, `mysql+pymysql`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database user; unused for SQLite.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password; unused for SQLite.")
    DB_HOST: Optional[str] = Field(None, description="Database server host; unused for SQLite.")
    DB_PORT: Optional[int] = Field(None, description="Database server port.")
    DB_DATABASE_NAME: str = Field("venues.db", description="Database name, or the file path for SQLite.")
    DB_ECHO: bool = Field(False, description="Log every SQL statement the engine emits.")

    SECRET_KEY: str = Field(..., description="HMAC key signing access tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm.")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(1440, description="Access token lifetime in minutes.")

    BCRYPT_ROUNDS: int = Field(12, ge=4, le=31, description="bcrypt cost factor for password hashes.")
    PASSWORD_RESET_EXPIRE_MINUTES: int = Field(10, description="Lifetime of an emailed reset token in minutes.")

    SENDER_EMAIL: str = Field("", description="From-address of password reset emails.")
    APP_PASSWORD: str = Field("", description="SMTP password of the sender account.")
    SMTP_HOST: str = Field("smtp.gmail.com", description="SMTP server host.")
    SMTP_PORT: int = Field(587, description="SMTP server port (STARTTLS).")

    INIT_MODE: str = Field("create", description="`create` creates missing tables at startup; any other value skips it.")
    LOG_LEVEL: str = Field("INFO", description="Level of the root logger.")

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def is_sqlite(self) -> bool:
        return self.DB_DRIVER_NAME.startswith("sqlite")


settings = Settings()
"""Process-wide settings instance."""
