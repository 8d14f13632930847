"""
Hotel API - Room Endpoints
==========================

Any authenticated user can browse rooms; only admins change them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

# Import from API deps
from api.deps import get_current_user, get_db, require_admin

# IMPORT FROM ROOT - Single Source of Truth
from services import RoomService
from schemas import MessageResponse, RoomCreate, RoomDTO, RoomStatus, RoomUpdate

router = APIRouter()


# ==========================================
# API-SPECIFIC SCHEMAS
# ==========================================

class RoomEnvelope(BaseModel):
    message: str
    room: RoomDTO


# ==========================================
# ENDPOINTS
# ==========================================

@router.get(
    "",
    response_model=List[RoomDTO],
    summary="List Rooms",
    description="All rooms ordered by number, optionally filtered by status and room type.",
    dependencies=[Depends(get_current_user)],
)
def list_rooms(
    status: Optional[RoomStatus] = Query(default=None, description="Room status"),
    room_type_id: Optional[int] = Query(default=None, description="Room type ID"),
    db: Session = Depends(get_db),
):
    return RoomService.list_rooms(db, status, room_type_id)


@router.get(
    "/{room_id}",
    response_model=RoomDTO,
    summary="Get Room Details",
    dependencies=[Depends(get_current_user)],
)
def get_room(room_id: int, db: Session = Depends(get_db)):
    return RoomService.get_room(db, room_id)


@router.post(
    "",
    response_model=RoomEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Room",
    dependencies=[Depends(require_admin)],
)
def create_room(data: RoomCreate, db: Session = Depends(get_db)):
    return RoomEnvelope(message="Room created successfully", room=RoomService.create_room(db, data))


@router.put(
    "/{room_id}",
    response_model=RoomEnvelope,
    summary="Update Room",
    description="Setting status to maintenance takes the room out of service for new bookings.",
    dependencies=[Depends(require_admin)],
)
def update_room(room_id: int, data: RoomUpdate, db: Session = Depends(get_db)):
    return RoomEnvelope(message="Room updated successfully", room=RoomService.update_room(db, room_id, data))


@router.delete(
    "/{room_id}",
    response_model=MessageResponse,
    summary="Delete Room",
    dependencies=[Depends(require_admin)],
)
def delete_room(room_id: int, db: Session = Depends(get_db)):
    RoomService.delete_room(db, room_id)
    return MessageResponse(message="Room deleted successfully")
