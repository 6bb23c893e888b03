"""
DAOs — repositories over the venue, user and review tables
==========================================================

Each DAO wraps one ORM entity and turns translated request queries
(`QueryDescriptor`) and raw SQLAlchemy criteria into statements. Services
in `backend.database.core` are the only callers.

Conventions
-----------
- The session comes from the caller (`@transactional`); DAOs never commit
- DAOs log and re-raise database exceptions so upper layers decide error policy
- Every API read of a venue or user goes through a `VisibleDao`; the plain
  DAO is reserved for writes and administrative visibility transitions

Contents
--------
- EntityDao (entity_dao)
    Generic repository: find / findOne / findById / aggregate / create /
    updateById / deleteById, driven by a `QueryDescriptor`.

- VisibleDao (visibility)
    Wrapper putting a visibility predicate in front of every read and
    every aggregation pipeline.

- VenueDao / visibleVenueDao
    * Atomic rating-delta UPDATE and full rating-summary writes
    * Row lock for recounts
    * Hidden when `banned`

- UserDao / visibleUserDao
    * Lookup by email
    * Hidden when not `active`

- ReviewDao
    * (venue, author) lookup for the uniqueness check
    * Rating count/sum aggregation per venue
    * Bulk removal of an author's reviews
"""
