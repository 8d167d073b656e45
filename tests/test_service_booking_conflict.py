"""
Overlap rules for availability and booking creation. Date ranges are
inclusive: a booking ending on the day another starts is a conflict.
"""

from datetime import date, timedelta

import pytest

from app.exceptions import (
    DateRangeInvalidError,
    NotFoundError,
    ValidationError,
    VehicleNotApprovedError,
    VehicleUnavailableError,
)
from app.services.rental_service import RentalService
from app.utils.constants import BookingStatus
from conftest import future, seed_user, seed_vehicle


@pytest.fixture
def vid(store):
    owner = seed_user(store, "owner@example.com", "owner")
    return seed_vehicle(store, owner)


def book(vid, start, end, renter="u1", total=100, fee=10):
    return RentalService.create_booking(vid, renter, start, end, total, fee)


def test_new_booking_is_pending(vid):
    b = book(vid, future(1), future(5))
    assert b.status == BookingStatus.PENDING
    assert b.vehicle_id == vid
    assert (b.total_amount, b.platform_fee) == (100.0, 10.0)


@pytest.mark.parametrize("start, end, available", [
    (1, 5, False),     # identical
    (3, 7, False),     # overlaps the tail
    (-3, 1, False),    # ends on the first booked day
    (5, 9, False),     # starts on the last booked day
    (2, 3, False),     # inside
    (0, 10, False),    # covers
    (6, 9, True),      # day after
    (-5, 0, True),     # day before
])
def test_check_availability_fixtures(vid, start, end, available):
    book(vid, future(1), future(5))
    assert RentalService.check_availability(vid, future(start), future(end)) is available


def test_cross_booking_conflict(vid):
    book(vid, future(1), future(5))
    with pytest.raises(VehicleUnavailableError):
        book(vid, future(3), future(7), renter="u2")


def test_exact_boundary_touch_conflicts(vid):
    book(vid, future(1), future(5))
    with pytest.raises(VehicleUnavailableError):
        book(vid, future(5), future(8), renter="u2")


def test_non_overlapping_booking_succeeds(vid):
    book(vid, future(1), future(5))
    b = book(vid, future(6), future(10), renter="u3")
    assert b.status == BookingStatus.PENDING


@pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.REJECTED,
                                    BookingStatus.COMPLETED])
def test_closed_bookings_do_not_block(store, vid, status):
    first = book(vid, future(1), future(5))
    store.bookings[first.booking_id] = first.with_status(status)
    assert RentalService.check_availability(vid, future(1), future(5))
    book(vid, future(2), future(4), renter="u2")


def test_confirmed_booking_blocks(store, vid):
    first = book(vid, future(1), future(5))
    store.compare_and_set_status(first.booking_id, BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert not RentalService.check_availability(vid, future(4), future(4))


def test_other_vehicle_unaffected(store, vid):
    other = seed_vehicle(store, "someone", name="Mazda 2")
    book(vid, future(1), future(5))
    assert RentalService.check_availability(other, future(1), future(5))


def test_single_day_booking(vid):
    b = book(vid, future(2), future(2))
    assert b.start_date == b.end_date


def test_start_after_end_rejected(vid):
    with pytest.raises(DateRangeInvalidError):
        book(vid, future(5), future(1))


def test_past_start_rejected(vid):
    with pytest.raises(DateRangeInvalidError):
        book(vid, date.today() - timedelta(days=10), future(1))


def test_unparseable_dates_rejected(vid):
    with pytest.raises(DateRangeInvalidError):
        book(vid, "next tuesday", future(1))


def test_iso_strings_accepted(vid):
    b = book(vid, future(1).isoformat(), future(2).isoformat() + "T00:00:00")
    assert b.end_date == future(2)


def test_unapproved_vehicle_rejected(store):
    vid = seed_vehicle(store, "owner", approved=False)
    with pytest.raises(VehicleNotApprovedError):
        book(vid, future(1), future(2))


def test_unknown_vehicle_rejected():
    with pytest.raises(NotFoundError):
        book("no-such-vehicle", future(1), future(2))


def test_negative_amount_rejected(vid):
    with pytest.raises(ValidationError):
        book(vid, future(1), future(2), total=-5)


def test_availability_calendar_lists_active_ranges(store, vid):
    b1 = book(vid, future(10), future(12))
    book(vid, future(1), future(2))
    store.compare_and_set_status(b1.booking_id, BookingStatus.PENDING, BookingStatus.CANCELLED)
    assert RentalService.availability_calendar(vid) == [
        (future(1).isoformat(), future(2).isoformat()),
    ]
