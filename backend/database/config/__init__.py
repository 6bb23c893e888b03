"""
Settings and database bootstrap.

- config: ``Settings`` read from the environment / `.env`, and the ``settings`` instance.
- connection_engine: the ``Engine`` built from those settings, the shared ``metadata`` and ``EntityBase``.
"""
