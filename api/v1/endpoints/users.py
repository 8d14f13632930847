"""
Hotel API - User Endpoints
==========================

Admin-only user management.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.deps import get_db, require_admin

from services import UserService
from schemas import MessageResponse, UserCreate, UserDTO, UserUpdate

router = APIRouter(dependencies=[Depends(require_admin)])


class UserEnvelope(BaseModel):
    message: str
    user: UserDTO


@router.get("", response_model=List[UserDTO], summary="List Users")
def list_users(db: Session = Depends(get_db)):
    return UserService.list_users(db)


@router.post(
    "",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="Create an admin or customer account."
)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    return UserEnvelope(message="User created successfully", user=UserService.create_user(db, data))


@router.get("/{user_id}", response_model=UserDTO, summary="Get User")
def get_user(user_id: int, db: Session = Depends(get_db)):
    return UserService.get_user(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserEnvelope,
    summary="Update User",
    description="Partial update. The password is only changed when a non-empty one is sent."
)
def update_user(user_id: int, data: UserUpdate, db: Session = Depends(get_db)):
    return UserEnvelope(message="User updated successfully", user=UserService.update_user(db, user_id, data))


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete User")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    UserService.delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")
