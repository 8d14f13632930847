"""
Hotel API - Validation Schemas (Pydantic)
=========================================

Data Transfer Objects shared by the service layer and the API.

- Input schemas are allow-lists: unknown fields are rejected (extra="forbid")
  and only the fields a caller actually sent are applied on update
  (model_dump(exclude_unset=True)).
- Output DTOs are built from ORM rows (from_attributes=True) and are the
  only thing services hand back to callers.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import date, datetime
import re


UserRole = Literal["admin", "customer"]
RoomStatus = Literal["available", "occupied", "maintenance", "reserved"]
BookingStatus = Literal["pending", "confirmed", "checked_in", "checked_out", "cancelled"]
BookingServiceStatus = Literal["requested", "confirmed", "completed", "cancelled"]
ServiceCategory = Literal["food", "laundry", "spa", "transport", "other"]


# ==========================================
# SHARED VALIDATORS
# ==========================================

def validate_phone_format(phone: Optional[str]) -> Optional[str]:
    """Normalizes a phone number, keeping digits and a leading +."""
    if not phone:
        return None
    return re.sub(r'[^\d+]', '', phone)


def strip_required(value: str, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f'{field} must not be blank')
    return cleaned


class InputModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class OutputModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ==========================================
# AUTH & USERS
# ==========================================

class CurrentUser(BaseModel):
    """The authenticated principal a request acts as."""
    id: int
    role: UserRole
    token_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class UserDTO(OutputModel):
    id: int
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None


class UserBase(InputModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=255)

    @field_validator('username', 'full_name')
    @classmethod
    def validate_not_blank(cls, v: str, info) -> str:
        return strip_required(v, info.field_name)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone_format(v)


class RegisterRequest(UserBase):
    """
    Self-registration. Always creates a customer.

    bcrypt only looks at the first 72 bytes, hence the upper bound.
    """
    password: str = Field(..., min_length=8, max_length=72)
    password_confirmation: str

    @model_validator(mode='after')
    def validate_confirmation(self):
        if self.password != self.password_confirmation:
            raise ValueError('The password confirmation does not match')
        return self


class LoginRequest(InputModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(UserBase):
    """Admin-side user creation."""
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole


class UserUpdate(InputModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = Field(default=None, max_length=255)
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=255)
    role: Optional[UserRole] = None
    password: Optional[str] = Field(default=None, max_length=72)

    @field_validator('username', 'full_name')
    @classmethod
    def validate_not_blank(cls, v: Optional[str], info) -> Optional[str]:
        return strip_required(v, info.field_name) if v is not None else v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone_format(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        # Empty means "keep the current password"
        if v and len(v) < 8:
            raise ValueError('The password must be at least 8 characters')
        return v or None


class TokenResponse(BaseModel):
    message: str
    user: UserDTO
    token: str
    token_type: str = "bearer"


# ==========================================
# ROOM TYPES & ROOMS
# ==========================================

class RoomTypeCreate(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(...)
    base_price: float = Field(..., ge=0)
    max_occupancy: int = Field(..., ge=1)
    amenities: str = Field(...)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v, 'name')


class RoomTypeUpdate(InputModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[float] = Field(default=None, ge=0)
    max_occupancy: Optional[int] = Field(default=None, ge=1)
    amenities: Optional[str] = None


class RoomTypeDTO(OutputModel):
    id: int
    name: str
    description: str
    base_price: float
    max_occupancy: int
    amenities: str


class RoomCreate(InputModel):
    room_number: str = Field(..., min_length=1, max_length=10)
    room_type_id: int
    status: RoomStatus = "available"
    floor: int = Field(..., ge=1)

    @field_validator('room_number')
    @classmethod
    def validate_room_number(cls, v: str) -> str:
        return strip_required(v, 'room_number')


class RoomUpdate(InputModel):
    room_number: Optional[str] = Field(default=None, min_length=1, max_length=10)
    room_type_id: Optional[int] = None
    status: Optional[RoomStatus] = None
    floor: Optional[int] = Field(default=None, ge=1)


class RoomDTO(OutputModel):
    id: int
    room_number: str
    room_type_id: int
    status: str
    floor: int
    room_type: Optional[RoomTypeDTO] = None


class RoomSummaryDTO(OutputModel):
    id: int
    room_number: str
    status: str
    floor: int


class RoomTypeDetailDTO(RoomTypeDTO):
    rooms: List[RoomSummaryDTO] = []


# ==========================================
# SERVICES CATALOG
# ==========================================

class ServiceCreate(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str
    price: float = Field(..., ge=0)
    category: ServiceCategory
    is_active: bool = True


class ServiceUpdate(InputModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[ServiceCategory] = None
    is_active: Optional[bool] = None


class ServiceDTO(OutputModel):
    id: int
    name: str
    description: str
    price: float
    category: str
    is_active: bool


# ==========================================
# BOOKINGS
# ==========================================

class BookingCreate(InputModel):
    """
    New booking request.

    - check_out_date must be after check_in_date
    - customer_id is only honoured for admins booking on someone's behalf
    """
    room_id: int
    check_in_date: date
    check_out_date: date
    special_requests: Optional[str] = None
    customer_id: Optional[int] = None

    @model_validator(mode='after')
    def validate_date_order(self):
        if self.check_out_date <= self.check_in_date:
            raise ValueError('check_out_date must be after check_in_date')
        return self


class BookingUpdate(InputModel):
    """
    Booking changes. Which fields a caller may actually apply depends on the
    role and is enforced in ReservationService.update_booking.
    """
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    status: Optional[BookingStatus] = None
    special_requests: Optional[str] = None

    @model_validator(mode='after')
    def validate_date_order(self):
        if self.check_in_date and self.check_out_date and self.check_out_date <= self.check_in_date:
            raise ValueError('check_out_date must be after check_in_date')
        return self


class BookingDTO(OutputModel):
    id: int
    customer_id: int
    room_id: int
    check_in_date: date
    check_out_date: date
    total_nights: int
    total_amount: float
    status: str
    special_requests: Optional[str] = None
    booking_date: date
    room: Optional[RoomDTO] = None


class BookingServiceDTO(OutputModel):
    id: int
    booking_id: int
    service_id: int
    quantity: int
    unit_price: float
    total_price: float
    service_date: date
    status: str
    service: Optional[ServiceDTO] = None


class ReviewDTO(OutputModel):
    id: int
    customer_id: int
    booking_id: int
    rating: int
    comment: Optional[str] = None
    review_date: date


class BookingDetailDTO(BookingDTO):
    services: List[BookingServiceDTO] = []
    review: Optional[ReviewDTO] = None


# ==========================================
# BOOKING SERVICES
# ==========================================

class BookingServiceCreate(InputModel):
    booking_id: int
    service_id: int
    quantity: int = Field(..., ge=1)
    service_date: date


class BookingServiceUpdate(InputModel):
    quantity: Optional[int] = Field(default=None, ge=1)
    service_date: Optional[date] = None
    status: Optional[BookingServiceStatus] = None


# ==========================================
# REVIEWS
# ==========================================

class ReviewCreate(InputModel):
    booking_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewUpdate(InputModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None


# ==========================================
# GENERIC RESPONSES
# ==========================================

class MessageResponse(BaseModel):
    message: str
