"""
Hotel API - Data Access
=======================

One small repository per entity. Repositories only build and run queries;
they never commit and never apply business rules. Committing is the job of
the service method that owns the transaction.
"""

from datetime import date, datetime, timezone
from typing import Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import (
    AuthToken, Base, Booking, BookingService, Review, Room, RoomType, Service, User,
)

ModelT = TypeVar("ModelT", bound=Base)

# Bookings that still hold their room
LIVE_BOOKING_STATUSES = ("pending", "confirmed", "checked_in")


class BaseRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def get(self, entity_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def get_for_update(self, entity_id: int) -> Optional[ModelT]:
        """
        Loads the row and holds a write lock on it until the transaction ends.

        SQLite has no row locks and ignores FOR UPDATE, so there a no-op UPDATE
        of the row opens the transaction and takes the database write lock.
        Concurrent writers then wait (busy timeout) instead of reading stale data.
        """
        if self.db.get_bind().dialect.name == "sqlite":
            table = self.model.__table__
            self.db.execute(table.update().where(table.c.id == entity_id).values(id=table.c.id))
        return (
            self.db.query(self.model)
            .filter(self.model.id == entity_id)
            .with_for_update()
            .first()
        )

    def list(self, *criteria) -> List[ModelT]:
        return self.db.query(self.model).filter(*criteria).order_by(self.model.id).all()

    def exists(self, *criteria) -> bool:
        return self.db.query(self.model.id).filter(*criteria).first() is not None

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()


class UserRepository(BaseRepository[User]):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        criteria = [User.username == username]
        if exclude_id is not None:
            criteria.append(User.id != exclude_id)
        return self.exists(*criteria)

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        criteria = [User.email == email]
        if exclude_id is not None:
            criteria.append(User.id != exclude_id)
        return self.exists(*criteria)

    def has_bookings(self, user_id: int) -> bool:
        return self.db.query(Booking.id).filter(Booking.customer_id == user_id).first() is not None


class AuthTokenRepository(BaseRepository[AuthToken]):
    model = AuthToken

    def get_active(self, token_id: str, user_id: int) -> Optional[AuthToken]:
        return self.db.query(AuthToken).filter(
            AuthToken.id == token_id,
            AuthToken.user_id == user_id,
            AuthToken.revoked.is_(False),
            AuthToken.expires_at > datetime.now(timezone.utc).replace(tzinfo=None),
        ).first()

    def revoke_all_for_user(self, user_id: int) -> int:
        return self.db.query(AuthToken).filter(
            AuthToken.user_id == user_id,
            AuthToken.revoked.is_(False),
        ).update({AuthToken.revoked: True}, synchronize_session=False)


class RoomTypeRepository(BaseRepository[RoomType]):
    model = RoomType

    def name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        criteria = [RoomType.name == name]
        if exclude_id is not None:
            criteria.append(RoomType.id != exclude_id)
        return self.exists(*criteria)

    def has_rooms(self, room_type_id: int) -> bool:
        return self.db.query(Room.id).filter(Room.room_type_id == room_type_id).first() is not None


class RoomRepository(BaseRepository[Room]):
    model = Room

    def number_taken(self, room_number: str, exclude_id: Optional[int] = None) -> bool:
        criteria = [Room.room_number == room_number]
        if exclude_id is not None:
            criteria.append(Room.id != exclude_id)
        return self.exists(*criteria)

    def has_bookings(self, room_id: int) -> bool:
        return self.db.query(Booking.id).filter(Booking.room_id == room_id).first() is not None

    def search(self, status: Optional[str] = None, room_type_id: Optional[int] = None) -> List[Room]:
        query = self.db.query(Room)
        if status:
            query = query.filter(Room.status == status)
        if room_type_id:
            query = query.filter(Room.room_type_id == room_type_id)
        return query.order_by(Room.room_number).all()


class BookingRepository(BaseRepository[Booking]):
    model = Booking

    def find_overlapping(
        self,
        room_id: int,
        check_in: date,
        check_out: date,
        exclude_id: Optional[int] = None,
    ) -> List[Booking]:
        """
        Non-cancelled bookings on the room whose [check_in, check_out) range
        overlaps the given one. Touching ranges do not overlap.
        """
        query = self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status != "cancelled",
            Booking.check_in_date < check_out,
            Booking.check_out_date > check_in,
        )
        if exclude_id is not None:
            query = query.filter(Booking.id != exclude_id)
        return query.all()

    def live_statuses_for_room(self, room_id: int, exclude_id: Optional[int] = None) -> Sequence[str]:
        query = self.db.query(Booking.status).filter(
            Booking.room_id == room_id,
            Booking.status.in_(LIVE_BOOKING_STATUSES),
        )
        if exclude_id is not None:
            query = query.filter(Booking.id != exclude_id)
        return [row.status for row in query.all()]

    def search(
        self,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Booking]:
        query = self.db.query(Booking)
        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if status:
            query = query.filter(Booking.status == status)
        if start_date and end_date:
            query = query.filter(or_(
                Booking.check_in_date.between(start_date, end_date),
                Booking.check_out_date.between(start_date, end_date),
            ))
        return query.order_by(Booking.check_in_date, Booking.id).all()


class ServiceRepository(BaseRepository[Service]):
    model = Service

    def search(self, category: Optional[str] = None, is_active: Optional[bool] = None) -> List[Service]:
        query = self.db.query(Service)
        if category:
            query = query.filter(Service.category == category)
        if is_active is not None:
            query = query.filter(Service.is_active.is_(is_active))
        return query.order_by(Service.name).all()

    def is_referenced(self, service_id: int) -> bool:
        return self.db.query(BookingService.id).filter(BookingService.service_id == service_id).first() is not None


class BookingServiceRepository(BaseRepository[BookingService]):
    model = BookingService

    def search(
        self,
        booking_id: Optional[int] = None,
        service_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[BookingService]:
        criteria = []
        if booking_id is not None:
            criteria.append(BookingService.booking_id == booking_id)
        if service_id is not None:
            criteria.append(BookingService.service_id == service_id)
        if status:
            criteria.append(BookingService.status == status)
        return self.list(*criteria)


class ReviewRepository(BaseRepository[Review]):
    model = Review

    def get_by_booking(self, booking_id: int) -> Optional[Review]:
        return self.db.query(Review).filter(Review.booking_id == booking_id).first()

    def search(
        self,
        booking_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        rating: Optional[int] = None,
    ) -> List[Review]:
        criteria = []
        if booking_id is not None:
            criteria.append(Review.booking_id == booking_id)
        if customer_id is not None:
            criteria.append(Review.customer_id == customer_id)
        if rating is not None:
            criteria.append(Review.rating == rating)
        return self.list(*criteria)
