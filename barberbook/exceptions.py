"""Domain exceptions mapped to HTTP responses by the API error handlers."""


class BookingError(Exception):
    """Base class for all domain errors."""

    error_type = "booking_error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(BookingError):
    """Requested entity does not exist or is not visible to the caller."""

    error_type = "not_found"
    status_code = 404


class ConflictError(BookingError):
    """Uniqueness violation or an overlapping booking."""

    error_type = "conflict"
    status_code = 409


class InvalidTransitionError(BookingError):
    """Appointment status change not allowed from its current status."""

    error_type = "invalid_transition"
    status_code = 409


class BookingValidationError(BookingError):
    """Request is well-formed but violates a scheduling rule."""

    error_type = "validation_error"
    status_code = 422


class AuthenticationError(BookingError):
    """Missing, invalid or expired credentials."""

    error_type = "authentication_error"
    status_code = 401


class AuthorizationError(BookingError):
    """Caller is authenticated but not allowed to act on the resource."""

    error_type = "permission_denied"
    status_code = 403


class RateLimitExceeded(BookingError):
    """Too many requests from one client."""

    error_type = "rate_limited"
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message, details={"retry_after": retry_after})
        self.retry_after = retry_after
