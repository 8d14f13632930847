"""
Hotel API - Booking Service Endpoints
=====================================

Services attached to a booking as priced line items.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.deps import get_current_user, get_db, require_admin

from services import ServiceAttachmentService
from schemas import (
    BookingServiceCreate,
    BookingServiceDTO,
    BookingServiceStatus,
    BookingServiceUpdate,
    CurrentUser,
    MessageResponse,
)

router = APIRouter()


class BookingServiceEnvelope(BaseModel):
    message: str
    booking_service: BookingServiceDTO


@router.get(
    "",
    response_model=List[BookingServiceDTO],
    summary="List Booking Services",
    dependencies=[Depends(require_admin)],
)
def list_booking_services(
    booking_id: Optional[int] = Query(default=None),
    service_id: Optional[int] = Query(default=None),
    status: Optional[BookingServiceStatus] = Query(default=None),
    db: Session = Depends(get_db),
):
    return ServiceAttachmentService.list_booking_services(db, booking_id, service_id, status)


@router.post(
    "",
    response_model=BookingServiceEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Add Service to Booking",
    description="The unit price is copied from the service at this moment."
)
def add_service(
    data: BookingServiceCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = ServiceAttachmentService.add_service(db, user, data)
    return BookingServiceEnvelope(message="Service added to booking successfully", booking_service=item)


@router.get("/{item_id}", response_model=BookingServiceDTO, summary="Get Booking Service")
def get_booking_service(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ServiceAttachmentService.get_booking_service(db, user, item_id)


@router.put("/{item_id}", response_model=BookingServiceEnvelope, summary="Update Booking Service")
def update_booking_service(
    item_id: int,
    data: BookingServiceUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = ServiceAttachmentService.update_booking_service(db, user, item_id, data)
    return BookingServiceEnvelope(message="Booking service updated successfully", booking_service=item)


@router.delete("/{item_id}", response_model=MessageResponse, summary="Remove Service from Booking")
def delete_booking_service(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ServiceAttachmentService.delete_booking_service(db, user, item_id)
    return MessageResponse(message="Service removed from booking successfully")
