"""Reservation Engine: availability, booking creation and the status state machine."""

import uuid
from datetime import date
from typing import List, Optional, Tuple

from app.config import Config
from app.exceptions import (
    DateRangeInvalidError,
    InvalidTransitionError,
    NotFoundError,
    VehicleNotApprovedError,
    VehicleUnavailableError,
)
from app.models.booking import Booking
from app.services.common import _store, _today, to_amount, with_read_retries
from app.utils.constants import ACTIVE_BOOKING_STATES, BookingStatus
from app.utils.dates import as_date, utcnow
from app.utils.logger import get_logger

log = get_logger(__name__)

# current status -> statuses it may move to; anything else is InvalidTransition
TRANSITIONS = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
    }),
}


def _has_overlap(bookings, start: date, end: date) -> bool:
    return any(b.status in ACTIVE_BOOKING_STATES and b.overlaps(start, end) for b in bookings)


def _parse_range(start, end) -> Tuple[date, date]:
    try:
        return as_date(start), as_date(end)
    except (TypeError, ValueError):
        raise DateRangeInvalidError("Error: invalid dates (YYYY-MM-DD)")


class RentalService:
    """
    Owns booking records. Performs no authorization: callers pass every
    mutating request through the Authorization Gate first.
    """

    @staticmethod
    def check_availability(vehicle_id: str, start_date, end_date,
                           retries: int = Config.READ_RETRIES) -> bool:
        """True iff no pending/confirmed booking of the vehicle overlaps [start, end]."""
        s, e = _parse_range(start_date, end_date)
        if s > e:
            raise DateRangeInvalidError("Error: start date is after end date")
        st = _store()
        bookings = with_read_retries(lambda: st.bookings_for_vehicle(vehicle_id), retries)
        return not _has_overlap(bookings, s, e)

    @staticmethod
    def availability_calendar(vehicle_id: str, retries: int = Config.READ_RETRIES) -> List[Tuple[str, str]]:
        """
        Return (start, end) ISO strings of blocking bookings, sorted by start.
        Used by clients to grey out booked date ranges.
        """
        st = _store()
        bookings = with_read_retries(lambda: st.bookings_for_vehicle(vehicle_id), retries)
        ranges = [(b.start_date.isoformat(), b.end_date.isoformat())
                  for b in bookings if b.status in ACTIVE_BOOKING_STATES]
        ranges.sort(key=lambda t: t[0])
        return ranges

    @staticmethod
    def create_booking(vehicle_id: str, renter_id: str, start_date, end_date,
                       total_amount, platform_fee, today: Optional[date] = None) -> Booking:
        """
        Create a pending booking.

        The overlap check and the insert run inside the vehicle's exclusive
        section, and the store re-checks the invariant on insert, so two
        overlapping requests for one vehicle can never both succeed.
        Requests for different vehicles do not contend.
        """
        st = _store()
        today = today or _today()

        s, e = _parse_range(start_date, end_date)
        if s > e:
            raise DateRangeInvalidError("Error: start date is after end date")
        if s < today or e < today:
            raise DateRangeInvalidError("Error: dates cannot be in the past")

        total = to_amount(total_amount, "total_amount")
        fee = to_amount(platform_fee, "platform_fee")

        vid = str(vehicle_id)
        veh = st.get_vehicle(vid)
        if not veh:
            raise NotFoundError(f"Error: vehicle '{vid}' not found")
        if not veh.get("approved"):
            raise VehicleNotApprovedError()

        booking = Booking(
            booking_id=str(uuid.uuid4()),
            vehicle_id=vid,
            renter_id=str(renter_id),
            start_date=s,
            end_date=e,
            status=BookingStatus.PENDING,
            total_amount=total,
            platform_fee=fee,
            created_at=utcnow(),
        )

        with st.vehicle_lock(vid):
            if _has_overlap(st.bookings_for_vehicle(vid), s, e) or not st.insert_booking(booking):
                log.info("Conflict: vehicle %s already booked within %s..%s", vid, s, e)
                raise VehicleUnavailableError("Error: date conflict with existing booking")

        log.info("Booking %s created: vehicle=%s renter=%s %s..%s",
                 booking.booking_id, vid, booking.renter_id, s, e)
        return booking

    @staticmethod
    def validate_transition(booking: Booking, new_status: str, today: Optional[date] = None) -> None:
        """Raise InvalidTransitionError unless ``booking.status -> new_status`` is allowed."""
        allowed = TRANSITIONS.get(booking.status, frozenset())
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Error: cannot move booking from '{booking.status}' to '{new_status}'")
        if new_status == BookingStatus.COMPLETED:
            today = today or _today()
            if not booking.end_date < today:
                raise InvalidTransitionError("Error: booking has not ended yet")

    @staticmethod
    def get_booking(booking_id: str) -> Booking:
        b = _store().get_booking(booking_id)
        if b is None:
            raise NotFoundError(f"Error: booking '{booking_id}' not found")
        return b
