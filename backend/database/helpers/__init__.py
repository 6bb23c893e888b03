"""
Session handling for the service layer.

transactionManagement
    ``@transactional`` injects a session into service functions, joining
    the unit of work already running in the current context or opening a
    new one with ``unit_of_work()``. ``SessionLocal`` is the session
    factory both use.
"""
