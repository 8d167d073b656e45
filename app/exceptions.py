"""
Custom exception classes for the reservation core.

Every failure a caller can observe is one of these types. Controllers
catch ``ReservationError`` and render ``{"error": kind, "message": ...}``
instead of a generic 500, so raw storage errors never reach a client.
"""


class ReservationError(Exception):
    """Base class; ``kind`` is the public failure name."""

    kind = "ReservationError"
    status_code = 400
    retryable = False
    default_message = "Error: request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class InvalidCredentialError(ReservationError):
    """Raised when a credential is absent, malformed, tampered with or expired."""

    kind = "InvalidCredential"
    status_code = 401
    default_message = "Error: invalid or expired credential"


class NoPolicyError(ReservationError):
    """Raised when no policy rule covers the requested (resource kind, verb)."""

    kind = "NoPolicy"
    status_code = 403
    default_message = "Error: no policy for this action"


class ForbiddenError(ReservationError):
    """Raised when a policy rule exists but the principal does not satisfy it."""

    kind = "Forbidden"
    status_code = 403
    default_message = "Error: not allowed"


class ValidationError(ReservationError):
    """Raised for malformed request input (missing fields, bad numbers)."""

    kind = "ValidationError"
    status_code = 400
    default_message = "Error: invalid request"


class DateRangeInvalidError(ReservationError):
    """Raised when start date is after end date or a date lies in the past."""

    kind = "DateRangeInvalid"
    status_code = 400
    default_message = "Error: invalid date range"


class VehicleNotApprovedError(ReservationError):
    """Raised when booking a vehicle that an admin has not approved."""

    kind = "VehicleNotApproved"
    status_code = 409
    default_message = "Error: vehicle is not approved"


class VehicleUnavailableError(ReservationError):
    """Raised when a vehicle is not available for the requested dates."""

    kind = "VehicleUnavailable"
    status_code = 409
    default_message = "Error: vehicle is not available"


class InvalidTransitionError(ReservationError):
    """Raised when a booking status change is not in the state machine."""

    kind = "InvalidTransition"
    status_code = 409
    default_message = "Error: invalid status transition"


class StorageUnavailableError(ReservationError):
    """Raised when the store cannot be reached within its timeout. Safe to retry."""

    kind = "StorageUnavailable"
    status_code = 503
    retryable = True
    default_message = "Error: storage unavailable, try again"


class NotFoundError(ReservationError):
    """Raised when a booking, vehicle or user ID cannot be found."""

    kind = "NotFound"
    status_code = 404
    default_message = "Error: not found"
