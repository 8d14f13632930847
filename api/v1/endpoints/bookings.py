"""
Hotel API - Booking Endpoints
=============================

Thin HTTP layer over ReservationService. Ownership and role rules are
applied by the service using the request principal.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

# Import from API deps
from api.deps import get_current_user, get_db, require_admin, require_customer

# IMPORT FROM ROOT - Single Source of Truth
from services import ReservationService
from schemas import (
    BookingCreate,
    BookingDTO,
    BookingDetailDTO,
    BookingStatus,
    BookingUpdate,
    CurrentUser,
    MessageResponse,
)

router = APIRouter()

# Mounted at /api/v1 next to /bookings
my_bookings_router = APIRouter()


# ==========================================
# API-SPECIFIC SCHEMAS
# ==========================================

class BookingEnvelope(BaseModel):
    message: str
    booking: BookingDTO


# ==========================================
# ENDPOINTS
# ==========================================

@router.get(
    "",
    response_model=List[BookingDTO],
    summary="List Bookings",
    description="All bookings (admin). start_date and end_date together match bookings "
                "whose check-in or check-out falls in the window.",
    dependencies=[Depends(require_admin)],
)
def list_bookings(
    status: Optional[BookingStatus] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
):
    return ReservationService.list_bookings(db, status, start_date, end_date)


@router.post(
    "",
    response_model=BookingEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking",
    description="Book a room for [check_in_date, check_out_date). Fails with 400 when the "
                "room is under maintenance or already booked for any of those nights."
)
def create_booking(
    data: BookingCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = ReservationService.create_booking(db, user, data)
    return BookingEnvelope(message="Booking created successfully", booking=booking)


@router.get("/{booking_id}", response_model=BookingDetailDTO, summary="Get Booking")
def get_booking(
    booking_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReservationService.get_booking(db, user, booking_id)


@router.put(
    "/{booking_id}",
    response_model=BookingEnvelope,
    summary="Update Booking",
    description="Customers may edit special_requests or cancel. Admins may also move dates "
                "and set any status."
)
def update_booking(
    booking_id: int,
    data: BookingUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = ReservationService.update_booking(db, user, booking_id, data)
    return BookingEnvelope(message="Booking updated successfully", booking=booking)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete Booking",
    description="Only pending or cancelled bookings can be deleted."
)
def delete_booking(
    booking_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ReservationService.delete_booking(db, user, booking_id)
    return MessageResponse(message="Booking deleted successfully")


@my_bookings_router.get(
    "/my-bookings",
    response_model=List[BookingDTO],
    summary="My Bookings",
    description="Bookings of the logged-in customer."
)
def my_bookings(
    status: Optional[BookingStatus] = Query(default=None),
    user: CurrentUser = Depends(require_customer),
    db: Session = Depends(get_db),
):
    return ReservationService.get_customer_bookings(db, user, status)
