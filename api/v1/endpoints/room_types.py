"""
Hotel API - Room Type Endpoints
===============================

Public read access, admin writes.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.deps import get_db, require_admin

from services import RoomTypeService
from schemas import MessageResponse, RoomTypeCreate, RoomTypeDTO, RoomTypeDetailDTO, RoomTypeUpdate

router = APIRouter()


class RoomTypeEnvelope(BaseModel):
    message: str
    room_type: RoomTypeDTO


@router.get("", response_model=List[RoomTypeDTO], summary="List Room Types")
def list_room_types(db: Session = Depends(get_db)):
    return RoomTypeService.list_room_types(db)


@router.get(
    "/{room_type_id}",
    response_model=RoomTypeDetailDTO,
    summary="Get Room Type",
    description="Room type with the rooms that belong to it."
)
def get_room_type(room_type_id: int, db: Session = Depends(get_db)):
    return RoomTypeService.get_room_type(db, room_type_id)


@router.post(
    "",
    response_model=RoomTypeEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Room Type",
    dependencies=[Depends(require_admin)],
)
def create_room_type(data: RoomTypeCreate, db: Session = Depends(get_db)):
    return RoomTypeEnvelope(
        message="Room type created successfully",
        room_type=RoomTypeService.create_room_type(db, data),
    )


@router.put(
    "/{room_type_id}",
    response_model=RoomTypeEnvelope,
    summary="Update Room Type",
    description="Existing bookings keep the amount computed when they were made.",
    dependencies=[Depends(require_admin)],
)
def update_room_type(room_type_id: int, data: RoomTypeUpdate, db: Session = Depends(get_db)):
    return RoomTypeEnvelope(
        message="Room type updated successfully",
        room_type=RoomTypeService.update_room_type(db, room_type_id, data),
    )


@router.delete(
    "/{room_type_id}",
    response_model=MessageResponse,
    summary="Delete Room Type",
    description="Rejected while rooms still use the type.",
    dependencies=[Depends(require_admin)],
)
def delete_room_type(room_type_id: int, db: Session = Depends(get_db)):
    RoomTypeService.delete_room_type(db, room_type_id)
    return MessageResponse(message="Room type deleted successfully")
