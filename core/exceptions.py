"""
Domain exceptions raised by the service layer.

Each error carries a stable machine-readable ``code`` and the HTTP status
the error handlers translate it to. Services never build HTTP responses
themselves; they raise one of these and let
``core.middleware.error_handling`` render the error envelope.
"""

from typing import Any, Optional


class DomainError(Exception):
    """Base class for all domain errors."""

    code: str = "DOMAIN_ERROR"
    status_code: int = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(DomainError):
    """Caller is authenticated but not allowed to act on the resource."""

    code = "FORBIDDEN"
    status_code = 403


class ConflictError(DomainError):
    """Operation would violate a uniqueness rule."""

    code = "CONFLICT"
    status_code = 409


class InvalidStateError(DomainError):
    """Entity is not in a state that permits the operation."""

    code = "INVALID_STATE"
    status_code = 400


class ExpiredError(InvalidStateError):
    """A deadline attached to the entity has passed."""

    code = "EXPIRED"


class InvalidTransitionError(InvalidStateError):
    """Requested status change is not an allowed edge."""

    code = "INVALID_TRANSITION"
    status_code = 409


class ValidationError(DomainError):
    """Input failed a domain-level validation rule."""

    code = "VALIDATION_ERROR"
    status_code = 422


class InvalidStatusError(ValidationError):
    """Status value is unknown or not accepted by this operation."""

    code = "INVALID_STATUS"
    status_code = 400
