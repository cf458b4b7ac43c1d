"""
Service Errors

Error taxonomy shared by every module. Services raise these; the exception
handlers registered in ``main.py`` turn them into the JSON error envelope
``{"success": false, "error": "<message>"}`` with the matching status code.
"""


class ServiceError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Missing or malformed input. Nothing was written."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
        )


class AuthenticationError(ServiceError):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            status_code=401,
        )


class AuthorizationError(ServiceError):
    """Authenticated, but not allowed to perform the operation."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=403,
        )


class NotFoundError(ServiceError):
    """The requested record does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
        )


class ConflictError(ServiceError):
    """The request conflicts with the current state of a record."""

    def __init__(self, message: str, error_code: str = "CONFLICT", status_code: int = 409):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
        )


class StorageUnavailableError(ServiceError):
    """The database could not be reached. Not retried internally."""

    def __init__(self, message: str = "Service unavailable"):
        super().__init__(
            message=message,
            error_code="STORAGE_UNAVAILABLE",
            status_code=503,
        )


class RateLimitExceededError(ServiceError):
    """Too many requests from one client within the window."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        super().__init__(
            message=f"Too many requests. Maximum {limit} requests per {window_seconds} seconds.",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "StorageUnavailableError",
    "RateLimitExceededError",
]
