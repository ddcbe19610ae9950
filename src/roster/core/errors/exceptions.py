"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to the ``{success: false, error, details}`` response envelope by
the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
        headers: Extra response headers
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Email already taken", field="email")
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        super().__init__(message=message, details=details, **kwargs)


class ValidationError(AppException):
    """Raised when request data fails validation.

    Example:
        raise ValidationError(
            "Passwords must match",
            errors=[{"field": "confirm_password", "message": "Passwords must match"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        """Build a validation error carrying a single field message."""
        return cls(message, errors=[{"field": field, "message": message}])


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid or expired token")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Raised when user lacks permission to access a resource.

    Example:
        raise ForbiddenError("Admin access required", error_code="admin_required")
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("No fields to update")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class RateLimitError(AppException):
    """Raised when rate limit is exceeded.

    The retry hint is rendered as ``retryAfter`` in the response body and the
    ``Retry-After`` header.

    Example:
        raise RateLimitError(retry_after=60, headers={"X-RateLimit-Limit": "100"})
    """

    message = "Rate limit exceeded"
    error_code = "rate_limit_exceeded"
    status_code = 429

    def __init__(
        self,
        message: str | None = None,
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        self.retry_after = retry_after
        headers = kwargs.pop("headers", {}) or {}
        if retry_after is not None:
            headers.setdefault("Retry-After", str(retry_after))
        super().__init__(message=message, headers=headers, **kwargs)


class DatabaseError(AppException):
    """Raised when a storage operation fails for reasons the caller cannot fix.

    Example:
        raise DatabaseError(details={"kind": "check_violation"})
    """

    message = "A database error occurred"
    error_code = "database_error"
    status_code = 500


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    Example:
        raise ServiceUnavailableError("Database connection failed")
    """

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503
