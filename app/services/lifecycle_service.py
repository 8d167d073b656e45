"""Booking Lifecycle Supervisor: authorized status changes and earnings."""

from datetime import date
from typing import List, Optional

from app.config import Config
from app.exceptions import InvalidTransitionError, NotFoundError
from app.models.booking import Booking
from app.models.policy import Action
from app.models.user import Principal
from app.services.authorization import AuthorizationGate
from app.services.common import _store, _today, round2, with_read_retries
from app.services.rental_service import RentalService
from app.utils.constants import (
    BookingStatus,
    EARNING_BOOKING_STATES,
    ResourceKind,
    STATUS_VERBS,
    Verb,
)
from app.utils.logger import get_logger

log = get_logger(__name__)

CAS_ATTEMPTS = 3


def _transition_action(booking: Booking, verb: str, principal: Principal, owner_id: str) -> Action:
    """
    A renter cancelling or viewing their own booking acts on the booking
    itself; everything else acts on a booking of the owner's vehicle.
    """
    if verb in (Verb.CANCEL, Verb.VIEW) and principal.user_id == booking.renter_id:
        return Action(ResourceKind.BOOKING, verb, booking.booking_id, booking.renter_id)
    return Action(ResourceKind.VEHICLE_BOOKING, verb, booking.booking_id, owner_id)


class LifecycleService:

    @staticmethod
    def vehicle_owner(booking: Booking) -> str:
        veh = _store().get_vehicle(booking.vehicle_id)
        if not veh:
            raise NotFoundError(f"Error: vehicle '{booking.vehicle_id}' not found")
        return veh["owner_id"]

    @staticmethod
    def apply_transition(booking_id: str, requested_status: str, principal: Principal,
                         today: Optional[date] = None) -> Booking:
        """
        Authorize, validate and persist one status change.
        The write is a compare-and-set on the status read just before it.
        """
        booking = RentalService.get_booking(booking_id)
        owner_id = LifecycleService.vehicle_owner(booking)
        verb = STATUS_VERBS.get(requested_status)
        if verb is None:
            # only callers who may see the booking learn the status is not requestable
            AuthorizationGate.enforce(principal, _transition_action(booking, Verb.VIEW, principal, owner_id))
            raise InvalidTransitionError(f"Error: cannot move a booking to '{requested_status}'")

        AuthorizationGate.enforce(principal, _transition_action(booking, verb, principal, owner_id))

        st = _store()
        for _ in range(CAS_ATTEMPTS):
            RentalService.validate_transition(booking, requested_status, today)
            updated = st.compare_and_set_status(booking.booking_id, booking.status, requested_status)
            if updated is not None:
                log.info("Booking %s: %s -> %s by %s", booking.booking_id, booking.status,
                         requested_status, principal.user_id)
                return updated
            booking = RentalService.get_booking(booking_id)
        raise InvalidTransitionError("Error: booking changed concurrently, try again")

    @staticmethod
    def complete_elapsed(today: Optional[date] = None) -> List[Booking]:
        """
        System transition: every confirmed booking whose end date has passed
        becomes completed. Returns the bookings that changed.
        """
        today = today or _today()
        st = _store()
        done = []
        for b in st.all_bookings():
            if b.status != BookingStatus.CONFIRMED or not b.end_date < today:
                continue
            updated = st.compare_and_set_status(b.booking_id, BookingStatus.CONFIRMED,
                                                BookingStatus.COMPLETED)
            if updated is not None:
                done.append(updated)
        if done:
            log.info("Marked %d booking(s) completed", len(done))
        return done

    @staticmethod
    def get_owner_earnings(owner_id: str, retries: int = Config.READ_RETRIES) -> float:
        """Sum of total_amount over confirmed/completed bookings of the owner's vehicles."""
        st = _store()
        bookings = with_read_retries(lambda: st.bookings_for_owner(owner_id), retries)
        return round2(sum(b.total_amount for b in bookings if b.status in EARNING_BOOKING_STATES))

    @staticmethod
    def platform_fee_ledger(retries: int = Config.READ_RETRIES) -> dict:
        """Platform fees collected on confirmed/completed bookings, with per-booking records."""
        st = _store()
        bookings = with_read_retries(st.all_bookings, retries)
        records = [b for b in bookings if b.status in EARNING_BOOKING_STATES]
        records.sort(key=lambda b: b.start_date, reverse=True)
        return {
            "total_platform_fees": round2(sum(b.platform_fee for b in records)),
            "records": [
                {
                    "booking_id": b.booking_id,
                    "vehicle_id": b.vehicle_id,
                    "start_date": b.start_date.isoformat(),
                    "end_date": b.end_date.isoformat(),
                    "total_amount": b.total_amount,
                    "platform_fee": b.platform_fee,
                    "status": b.status,
                }
                for b in records
            ],
        }
