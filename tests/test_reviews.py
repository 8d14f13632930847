from datetime import date

import pytest

from conftest import as_principal
from database import Review
from exceptions import AuthorizationError, BusinessRuleViolation
from schemas import BookingCreate, BookingUpdate, ReviewCreate, ReviewUpdate
from services import ReservationService, ReviewService

TODAY = date(2024, 1, 1)


@pytest.fixture
def booking(db, customer, room):
    data = BookingCreate(room_id=room.id, check_in_date=date(2024, 1, 10), check_out_date=date(2024, 1, 12))
    return ReservationService.create_booking(db, as_principal(customer), data, today=TODAY)


def set_status(db, admin, booking, status):
    ReservationService.update_booking(db, as_principal(admin), booking.id, BookingUpdate(status=status))


def review(db, user, booking, rating=5):
    data = ReviewCreate(booking_id=booking.id, rating=rating, comment="Lovely stay")
    return ReviewService.create_review(db, as_principal(user), data, today=date(2024, 1, 12))


def test_review_requires_checked_out_booking(db, admin, customer, booking):
    set_status(db, admin, booking, "confirmed")

    with pytest.raises(BusinessRuleViolation):
        review(db, customer, booking)


def test_review_after_checkout_succeeds_exactly_once(db, admin, customer, booking):
    set_status(db, admin, booking, "checked_out")

    created = review(db, customer, booking, rating=4)
    assert created.rating == 4
    assert created.review_date == date(2024, 1, 12)

    with pytest.raises(BusinessRuleViolation):
        review(db, customer, booking)
    assert db.query(Review).count() == 1


def test_only_the_booking_customer_reviews(db, admin, other_customer, booking):
    set_status(db, admin, booking, "checked_out")

    with pytest.raises(AuthorizationError):
        review(db, other_customer, booking)


def test_rating_is_bounded():
    with pytest.raises(ValueError):
        ReviewCreate(booking_id=1, rating=6)
    with pytest.raises(ValueError):
        ReviewCreate(booking_id=1, rating=0)


def test_owner_updates_and_admin_deletes(db, admin, customer, other_customer, booking):
    set_status(db, admin, booking, "checked_out")
    created = review(db, customer, booking)

    with pytest.raises(AuthorizationError):
        ReviewService.update_review(db, as_principal(other_customer), created.id, ReviewUpdate(rating=1))

    updated = ReviewService.update_review(db, as_principal(customer), created.id, ReviewUpdate(rating=3))
    assert updated.rating == 3
    assert updated.comment == "Lovely stay"

    with pytest.raises(AuthorizationError):
        ReviewService.delete_review(db, as_principal(other_customer), created.id)

    ReviewService.delete_review(db, as_principal(admin), created.id)
    assert db.query(Review).count() == 0


def test_booking_detail_shows_review(db, admin, customer, booking):
    set_status(db, admin, booking, "checked_out")
    review(db, customer, booking)

    detail = ReservationService.get_booking(db, as_principal(customer), booking.id)
    assert detail.review.rating == 5
