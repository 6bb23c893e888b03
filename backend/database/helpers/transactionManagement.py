"""
Units of work
=============

Service functions take their session as their first parameter and
never open or commit one themselves. ``@transactional`` supplies it:

- called with no session active in the current context, the function runs
  in a fresh unit of work (``unit_of_work``) that commits on return and
  rolls back on any exception;
- called from inside another ``@transactional`` function, it joins that
  function's session and its writes commit or roll back with the caller.

The review pipeline depends on the first rule: ``create_review`` and
``apply_rating_change`` are called one after the other from plain
functions, so each is its own unit of work and a failing rating update
cannot undo the committed review.
"""

import contextvars
from contextlib import contextmanager
from functools import wraps

from sqlalchemy.orm import Session, sessionmaker

from backend.database.config.connection_engine import connection_engine

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Session of the unit of work running in the current context, if any."""

SessionLocal = sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Factory for new sessions; looked up on every unit of work so tests can rebind it."""


@contextmanager
def unit_of_work():
    """
    Open a session, publish it in ``db_session_context`` and end it with a
    commit, or a rollback if the block raised.

    Yields
    ------
    Session
    """
    session: Session = SessionLocal()
    token = db_session_context.set(session)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
        db_session_context.reset(token)


def transactional(func):
    """
    Run ``func`` with a session as its first argument; callers pass only
    the remaining arguments, positionally or by keyword.

    Parameters
    ----------
    func : callable
        Service function whose first parameter is ``session``.

    Example
    -------
    >>> @transactional
    ... def count_venues(session):
    ...     return session.scalar(select(func.count(Venue.id)))
    >>> count_venues()
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        active = db_session_context.get()
        if active is not None:
            return func(active, *args, **kwargs)
        with unit_of_work() as session:
            return func(session, *args, **kwargs)

    return wrapper
