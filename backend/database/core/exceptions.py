"""
Domain exceptions raised by the data-access and service layers.

Every exception carries the HTTP status the API should answer with; the
handlers registered in ``backend.main`` render them into the
``{"status": "error", "message": ...}`` envelope.
"""


class AppError(Exception):
    """Base class for errors that are reported to the client as-is."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidQueryError(AppError):
    """A filter, sort or projection parameter could not be translated."""

    status_code = 400


class NotFoundError(AppError):
    """The entity does not exist, or is hidden from the caller."""

    status_code = 404


class ConflictError(AppError):
    """A write would violate a uniqueness invariant."""

    status_code = 409


class DuplicateReviewError(ConflictError):
    """The author already reviewed this venue."""


class AuthenticationError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class ValidationFailedError(AppError):
    """Business-rule validation that pydantic cannot express (e.g. password confirmation)."""

    status_code = 400
