"""Booking engine: pricing, conflict checks, lifecycle and room status sync."""

import threading
import time
from datetime import date
from itertools import combinations

import pytest

from conftest import as_principal
from database import Booking
from exceptions import (
    AuthorizationError,
    DateConflict,
    InvalidStatusTransition,
    NotFoundError,
    RoomUnavailable,
    ValidationError,
)
from repositories import BookingRepository
from schemas import BookingCreate, BookingUpdate, RoomUpdate
from services import ReservationService, RoomService

TODAY = date(2024, 1, 1)


def book(db, user, room, check_in, check_out, **extra):
    data = BookingCreate(room_id=room.id, check_in_date=check_in, check_out_date=check_out, **extra)
    return ReservationService.create_booking(db, as_principal(user), data, today=TODAY)


def room_status(db, room):
    db.refresh(room)
    return room.status


def test_booking_prices_stay_and_reserves_room(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    assert booking.total_nights == 5
    assert booking.total_amount == 500.0
    assert booking.status == "pending"
    assert booking.customer_id == customer.id
    assert booking.booking_date == TODAY
    assert room_status(db, room) == "reserved"


def test_touching_dates_do_not_conflict(db, customer, other_customer, room):
    book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    second = book(db, other_customer, room, date(2024, 1, 15), date(2024, 1, 18))

    assert second.total_nights == 3
    assert second.status == "pending"


def test_overlapping_dates_conflict_and_leave_nothing_behind(db, customer, other_customer, room):
    book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    with pytest.raises(DateConflict):
        book(db, other_customer, room, date(2024, 1, 12), date(2024, 1, 20))

    assert db.query(Booking).count() == 1
    assert room_status(db, room) == "reserved"


def test_cancelled_booking_frees_its_dates(db, customer, other_customer, room):
    first = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    ReservationService.update_booking(db, as_principal(customer), first.id, BookingUpdate(status="cancelled"))

    replacement = book(db, other_customer, room, date(2024, 1, 12), date(2024, 1, 14))
    assert replacement.status == "pending"


def test_check_in_in_the_past_is_rejected(db, customer, room):
    with pytest.raises(ValidationError) as exc:
        book(db, customer, room, date(2023, 12, 31), date(2024, 1, 2))
    assert "check_in_date" in exc.value.errors


def test_check_out_must_follow_check_in():
    with pytest.raises(ValueError):
        BookingCreate(room_id=1, check_in_date=date(2024, 1, 10), check_out_date=date(2024, 1, 10))


def test_room_under_maintenance_cannot_be_booked(db, customer, room):
    room.status = "maintenance"
    db.commit()

    with pytest.raises(RoomUnavailable):
        book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))


def test_unknown_room_is_not_found(db, customer):
    data = BookingCreate(room_id=999, check_in_date=date(2024, 1, 10), check_out_date=date(2024, 1, 12))
    with pytest.raises(NotFoundError):
        ReservationService.create_booking(db, as_principal(customer), data, today=TODAY)


def test_customer_cannot_book_for_someone_else(db, customer, other_customer, room):
    with pytest.raises(AuthorizationError):
        book(db, customer, room, date(2024, 1, 10), date(2024, 1, 12), customer_id=other_customer.id)


def test_admin_books_on_behalf_of_customer(db, admin, customer, room):
    booking = book(db, admin, room, date(2024, 1, 10), date(2024, 1, 12), customer_id=customer.id)
    assert booking.customer_id == customer.id


def test_cancelling_pending_booking_releases_room(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    updated = ReservationService.update_booking(
        db, as_principal(customer), booking.id, BookingUpdate(status="cancelled"))

    assert updated.status == "cancelled"
    assert room_status(db, room) == "available"


def test_cancelling_one_of_two_bookings_keeps_room_reserved(db, customer, other_customer, room):
    first = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    book(db, other_customer, room, date(2024, 1, 15), date(2024, 1, 18))

    ReservationService.update_booking(db, as_principal(customer), first.id, BookingUpdate(status="cancelled"))

    assert room_status(db, room) == "reserved"


def test_cancelling_checked_in_booking_is_rejected(db, admin, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    ReservationService.update_booking(db, as_principal(admin), booking.id, BookingUpdate(status="checked_in"))

    with pytest.raises(InvalidStatusTransition):
        ReservationService.update_booking(
            db, as_principal(customer), booking.id, BookingUpdate(status="cancelled"))

    assert room_status(db, room) == "occupied"


def test_customer_may_only_cancel(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    with pytest.raises(ValidationError):
        ReservationService.update_booking(
            db, as_principal(customer), booking.id, BookingUpdate(status="confirmed"))


def test_customer_cannot_move_dates(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    with pytest.raises(AuthorizationError):
        ReservationService.update_booking(
            db, as_principal(customer), booking.id, BookingUpdate(check_out_date=date(2024, 1, 20)))


def test_customer_edits_special_requests(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    updated = ReservationService.update_booking(
        db, as_principal(customer), booking.id, BookingUpdate(special_requests="Late arrival"))

    assert updated.special_requests == "Late arrival"
    assert updated.status == "pending"


@pytest.mark.parametrize("status, expected_room_status", [
    ("pending", "reserved"),
    ("confirmed", "reserved"),
    ("checked_in", "occupied"),
    ("checked_out", "available"),
    ("cancelled", "available"),
])
def test_admin_status_changes_drive_room_status(db, admin, customer, room, status, expected_room_status):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    # Move away from pending first so every target is an actual change
    ReservationService.update_booking(db, as_principal(admin), booking.id, BookingUpdate(status="confirmed"))

    updated = ReservationService.update_booking(db, as_principal(admin), booking.id, BookingUpdate(status=status))

    assert updated.status == status
    assert room_status(db, room) == expected_room_status


def test_admin_check_in_takes_room_out_of_maintenance(db, admin, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    RoomService.update_room(db, room.id, RoomUpdate(status="maintenance"))

    ReservationService.update_booking(db, as_principal(admin), booking.id, BookingUpdate(status="checked_in"))

    assert room_status(db, room) == "occupied"


def test_customer_cancel_keeps_room_in_maintenance(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    RoomService.update_room(db, room.id, RoomUpdate(status="maintenance"))

    ReservationService.update_booking(db, as_principal(customer), booking.id, BookingUpdate(status="cancelled"))

    assert room_status(db, room) == "maintenance"


def test_admin_date_change_reprices_booking(db, admin, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    updated = ReservationService.update_booking(
        db, as_principal(admin), booking.id, BookingUpdate(check_out_date=date(2024, 1, 12)))

    assert updated.total_nights == 2
    assert updated.total_amount == 200.0


def test_admin_date_change_is_conflict_checked(db, admin, customer, other_customer, room):
    book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    second = book(db, other_customer, room, date(2024, 1, 15), date(2024, 1, 18))

    with pytest.raises(DateConflict):
        ReservationService.update_booking(
            db, as_principal(admin), second.id, BookingUpdate(check_in_date=date(2024, 1, 12)))


def test_reactivating_cancelled_booking_is_conflict_checked(db, admin, customer, other_customer, room):
    first = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    ReservationService.update_booking(db, as_principal(customer), first.id, BookingUpdate(status="cancelled"))
    book(db, other_customer, room, date(2024, 1, 12), date(2024, 1, 14))

    with pytest.raises(DateConflict):
        ReservationService.update_booking(db, as_principal(admin), first.id, BookingUpdate(status="confirmed"))


def test_deleting_confirmed_booking_is_rejected(db, admin, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    ReservationService.update_booking(db, as_principal(admin), booking.id, BookingUpdate(status="confirmed"))

    with pytest.raises(InvalidStatusTransition):
        ReservationService.delete_booking(db, as_principal(admin), booking.id)


def test_deleting_pending_booking_releases_room(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    ReservationService.delete_booking(db, as_principal(customer), booking.id)

    assert db.query(Booking).count() == 0
    assert room_status(db, room) == "available"


def test_deleting_cancelled_booking_leaves_room_status_unchanged(db, customer, other_customer, room):
    cancelled = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    ReservationService.update_booking(db, as_principal(customer), cancelled.id, BookingUpdate(status="cancelled"))
    book(db, other_customer, room, date(2024, 1, 20), date(2024, 1, 22))
    assert room_status(db, room) == "reserved"

    ReservationService.delete_booking(db, as_principal(customer), cancelled.id)

    assert room_status(db, room) == "reserved"


def test_customers_only_see_their_own_bookings(db, customer, other_customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    with pytest.raises(AuthorizationError):
        ReservationService.get_booking(db, as_principal(other_customer), booking.id)

    assert ReservationService.get_customer_bookings(db, as_principal(other_customer)) == []
    mine = ReservationService.get_customer_bookings(db, as_principal(customer))
    assert [b.id for b in mine] == [booking.id]


def test_booking_detail_includes_room_and_services(db, customer, room):
    booking = book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))

    detail = ReservationService.get_booking(db, as_principal(customer), booking.id)

    assert detail.room.room_number == "101"
    assert detail.room.room_type.base_price == 100.0
    assert detail.services == []
    assert detail.review is None


def test_admin_list_filters_by_window(db, customer, room):
    book(db, customer, room, date(2024, 1, 10), date(2024, 1, 15))
    book(db, customer, room, date(2024, 3, 1), date(2024, 3, 3))

    january = ReservationService.list_bookings(db, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

    assert [b.check_in_date for b in january] == [date(2024, 1, 10)]


def test_no_two_live_bookings_overlap(db, customer, room):
    attempts = [
        (date(2024, 1, 10), date(2024, 1, 15)),
        (date(2024, 1, 14), date(2024, 1, 16)),
        (date(2024, 1, 15), date(2024, 1, 18)),
        (date(2024, 1, 5), date(2024, 1, 11)),
        (date(2024, 1, 1), date(2024, 1, 10)),
        (date(2024, 1, 17), date(2024, 1, 25)),
        (date(2024, 1, 18), date(2024, 1, 19)),
    ]
    for check_in, check_out in attempts:
        try:
            book(db, customer, room, check_in, check_out)
        except DateConflict:
            pass

    live = db.query(Booking).filter(Booking.status != "cancelled").all()
    assert len(live) == 4
    for a, b in combinations(live, 2):
        assert not (a.check_in_date < b.check_out_date and a.check_out_date > b.check_in_date)


def test_concurrent_overlapping_bookings_admit_exactly_one(db, customer, other_customer, room, monkeypatch):
    principals = [as_principal(customer), as_principal(other_customer)]
    data = BookingCreate(room_id=room.id, check_in_date=date(2024, 1, 10), check_out_date=date(2024, 1, 15))
    db.commit()

    find_overlapping = BookingRepository.find_overlapping

    def slow_find_overlapping(self, *args, **kwargs):
        found = find_overlapping(self, *args, **kwargs)
        # Leave room for the other request to run its own check
        time.sleep(0.2)
        return found

    monkeypatch.setattr(BookingRepository, "find_overlapping", slow_find_overlapping)

    start = threading.Barrier(2)
    outcomes = []

    def attempt(principal):
        # No session argument: each thread opens and releases its own
        start.wait()
        try:
            ReservationService.create_booking(principal, data, today=TODAY)
            outcomes.append("booked")
        except DateConflict:
            outcomes.append("conflict")
        except Exception as e:
            outcomes.append(repr(e))

    threads = [threading.Thread(target=attempt, args=(p,)) for p in principals]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["booked", "conflict"]
    assert db.query(Booking).count() == 1
