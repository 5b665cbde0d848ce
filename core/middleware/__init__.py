"""
Core middleware package.

- Error handling with sensitive data sanitization
- Structured logging with PII masking
- Bearer token authentication
- Role and ownership based authorization rules
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    AuthenticationError,
    get_jwt_payload,
)

from core.middleware.authorization import (
    Permission,
    Principal,
    has_permission,
    can_view_application,
    can_manage_application,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    # Authentication
    "AuthenticationMiddleware",
    "AuthenticationError",
    "get_jwt_payload",
    # Authorization
    "Permission",
    "Principal",
    "has_permission",
    "can_view_application",
    "can_manage_application",
]
