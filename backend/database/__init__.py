"""
Persistence and business rules of the venue reviews service: settings and
engine, ORM entities, the request query language, repositories and the
service functions the HTTP layer calls.

Subpackages:
    - config:
        Settings and the SQLAlchemy engine / declarative base.

    - entities:
        SQLAlchemy entity models (Venue, User, Review).

    - query:
        Translation of request parameters into an immutable query descriptor
        and its compilation into SQLAlchemy criteria, ordering and aggregation stages.

    - daos:
        Data Access Objects, including the visibility wrapper every read goes through.

    - core:
        Service functions orchestrating DAOs: venue/review/user operations, authentication,
        and the venue rating-summary maintenance.

    - helpers:
        Transaction management (`@transactional`).
"""
