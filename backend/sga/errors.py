"""Typed application errors.

Every failure raised by the auth chain, services and use-cases is an
`AppError` carrying a machine-readable `code`, a human-readable
`message`, the HTTP `status_code` the error boundary should answer with
and optional `details`. Only `sga.error_handlers` turns them into
responses.
"""

from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Any] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(AppError):
    """Input does not satisfy validation rules (400)."""
    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(message, details=details)


class AuthError(AppError):
    """Missing, malformed, expired or rejected credentials (401)."""
    status_code = 401
    code = "AUTH_FAILED"

    def __init__(self, message: str, code: str = "AUTH_FAILED"):
        super().__init__(message, code=code)


class ForbiddenError(AppError):
    """Authenticated, but the role or ownership check failed (403)."""
    status_code = 403
    code = "AUTH_ACCESS_DENIED"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class RouteNotFoundError(AppError):
    status_code = 404
    code = "ROUTE_NOT_FOUND"

    def __init__(self, method: str, path: str):
        super().__init__(
            f"Route not found: {method} {path}",
            details={"method": method, "path": path},
        )


class ConflictError(AppError):
    status_code = 409
    code = "DUPLICATE_ENTRY"

    def __init__(self, message: str = "A record with the same value already exists", details: Optional[Any] = None):
        super().__init__(message, details=details)


class BusinessLogicError(AppError):
    """The request is well formed but breaks a business rule (422)."""
    status_code = 422
    code = "BUSINESS_LOGIC_ERROR"

    def __init__(self, message: str, code: str = "BUSINESS_LOGIC_ERROR", details: Optional[Any] = None):
        super().__init__(message, code=code, details=details)


class RateLimitError(AppError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: int):
        super().__init__(f"Too many requests; retry after {retry_after}s", details={"retry_after": retry_after})
        self.retry_after = retry_after


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database error", details: Optional[Any] = None):
        super().__init__(message, details=details)
