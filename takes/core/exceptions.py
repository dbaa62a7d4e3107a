"""Domain-level exception hierarchy for service and repository layers."""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for domain-specific failures.

    ``code`` is machine readable and ends up in the JSON error body next to
    ``message``. ``extra`` is merged into the top level of that body.
    """

    status_code: int = 500
    default_code: str = "error"
    default_message: str = "Internal Server Error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        field: str | None = None,
        details: Any = None,
        extra: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.field = field
        self.details = details
        self.extra = dict(extra or {})
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field is not None:
            error["field"] = self.field
        if self.details is not None:
            error["errors"] = self.details
        return {"error": error, **self.extra}


class ValidationError(DomainError):
    """Client-fixable input problem, usually bound to one form field."""

    status_code = 400
    default_code = "invalid_request"
    default_message = "Bad Request"


class RateLimitError(DomainError):
    """Raised when a caller exceeded its attempt budget."""

    status_code = 429
    default_code = "rate_limited"
    default_message = "Too many submissions. Please try again later."

    def __init__(self, message: str | None = None, *, retry_after: int | None = None, **kw):
        super().__init__(message, **kw)
        self.retry_after = retry_after


class UnauthorizedError(DomainError):
    status_code = 401
    default_code = "unauthorized"
    default_message = "Unauthorized"


class NotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    status_code = 404
    default_code = "not_found"
    default_message = "Not Found"


class ConflictError(DomainError):
    """Raised when a state conflict occurs (e.g. a record was already reviewed)."""

    status_code = 409
    default_code = "conflict"
    default_message = "Conflict"


class UpstreamError(DomainError):
    """Raised when storage, the database or an external service failed."""

    status_code = 502
    default_code = "upstream_failed"
    default_message = "Upstream service failed"
