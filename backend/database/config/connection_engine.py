"""
Engine and declarative base
===========================

Builds the one SQLAlchemy ``Engine`` of the process from ``settings`` and
the ``metadata``/base class every entity in ``backend.database.entities``
registers on.

SQLite connections are opened with ``check_same_thread=False``: FastAPI
runs sync endpoints in a thread pool, so a pooled connection may be used by
a different thread than the one that opened it. Server databases get
``pool_pre_ping`` so connections dropped by the server are replaced.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import MetaData

from backend.database.config.config import settings

connection_url = URL.create(
    drivername=settings.DB_DRIVER_NAME,
    username=settings.DB_USERNAME,
    password=settings.DB_PASSWORD,
    host=settings.DB_HOST,
    port=settings.DB_PORT,
    database=settings.DB_DATABASE_NAME,
)


def build_engine(url: URL = connection_url):
    if settings.is_sqlite:
        return create_engine(url, echo=settings.DB_ECHO, connect_args={"check_same_thread": False})
    return create_engine(url, echo=settings.DB_ECHO, pool_pre_ping=True)


connection_engine = build_engine()

metadata = MetaData()
"""Schema of the venue, app_user and review tables."""


class EntityBase(DeclarativeBase):
    """Root class of the ORM entities."""

    metadata = metadata
