# app/utils/constants.py

"""
Global constants for roles, booking statuses, and policy vocabulary.
These constants are imported by models, services and controllers.
"""

# Date format (used for booking start/end)
DATE_FMT = "%Y-%m-%d"

# Cookie carrying the signed credential
TOKEN_COOKIE = "token"
TOKEN_SALT = "reservation-auth"


class Role:
    GUEST = "guest"
    RENTER = "renter"
    OWNER = "owner"
    ADMIN = "admin"


# Account roles stored on the user record and embedded in the token
class AccountRole:
    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


class OwnerRequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ResourceKind:
    VEHICLE = "vehicle"
    BOOKING = "booking"
    VEHICLE_BOOKING = "vehicle_booking"
    EARNINGS = "earnings"
    PLATFORM = "platform"
    OWNER_REQUEST = "owner_request"


class Verb:
    VIEW = "view"
    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"
    MANAGE = "manage"


# Bookings in these states block the vehicle for their date range
ACTIVE_BOOKING_STATES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

# Bookings in these states count towards owner earnings / platform fees
EARNING_BOOKING_STATES = frozenset({BookingStatus.CONFIRMED, BookingStatus.COMPLETED})

# requested status -> verb checked by the Authorization Gate
STATUS_VERBS = {
    BookingStatus.CONFIRMED: Verb.CONFIRM,
    BookingStatus.REJECTED: Verb.REJECT,
    BookingStatus.CANCELLED: Verb.CANCEL,
    BookingStatus.COMPLETED: Verb.COMPLETE,
}
