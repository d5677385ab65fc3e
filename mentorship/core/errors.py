"""Domain errors raised by the booking engine.

Services raise these; the HTTP layer turns them into ``HTTPException`` via
``to_http_exception``. None of them is retried internally.
"""

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class NotFoundError(DomainError):
    """A program or session does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(DomainError):
    """Role or ownership check failed."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidArgumentError(DomainError):
    """Malformed input such as an out-of-range slot duration."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(DomainError):
    """A booking would double-book a mentor or a student's program."""

    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(DomainError):
    """Operation not allowed for the current state (e.g. completing twice)."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnavailableError(DomainError):
    """Storage failure or expired deadline; safe to retry with backoff."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'
