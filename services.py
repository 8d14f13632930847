from functools import wraps
from typing import List, Optional, Tuple
from datetime import date

from sqlalchemy.orm import Session

from database import SessionLocal, User, AuthToken, RoomType, Room, Booking, Service, BookingService, Review
from repositories import (
    UserRepository,
    AuthTokenRepository,
    RoomTypeRepository,
    RoomRepository,
    BookingRepository,
    ServiceRepository,
    BookingServiceRepository,
    ReviewRepository,
)
from exceptions import (
    HotelError,
    ValidationError,
    AuthError,
    AuthorizationError,
    NotFoundError,
    BusinessRuleViolation,
    RoomUnavailable,
    DateConflict,
    ServiceInactive,
    InvalidStatusTransition,
    EntityInUse,
)
import security

# Centralized logging
from logging_config import get_logger

from schemas import (
    CurrentUser,
    UserDTO,
    RegisterRequest,
    UserCreate,
    UserUpdate,
    RoomTypeCreate,
    RoomTypeUpdate,
    RoomTypeDTO,
    RoomTypeDetailDTO,
    RoomCreate,
    RoomUpdate,
    RoomDTO,
    ServiceCreate,
    ServiceUpdate,
    ServiceDTO,
    BookingCreate,
    BookingUpdate,
    BookingDTO,
    BookingDetailDTO,
    BookingServiceCreate,
    BookingServiceUpdate,
    BookingServiceDTO,
    ReviewCreate,
    ReviewUpdate,
    ReviewDTO,
)

logger = get_logger(__name__)

# ==========================================
# SESSION HANDLING
# ==========================================

def with_db(func):
    """
    Manages the session lifecycle around a service method.

    - If a Session is passed as first argument or as `db=`: use it (API mode,
      the session belongs to the request and is closed by api.deps.get_db)
    - Otherwise: open a session of our own and release it afterwards
      (scripts such as create_admin.py)

    In both modes a failing call rolls back whatever it had written, so a
    rejected booking never leaves a half-updated room behind.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif kwargs.get('db') is not None:
            db = kwargs['db']

        if db is not None:
            try:
                return func(*args, **kwargs)
            except Exception:
                db.rollback()
                raise

        db = SessionLocal()
        try:
            return func(db, *args, **kwargs)
        except HotelError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Error in {func.__name__}: {e}")
            raise
        finally:
            SessionLocal.remove()

    return wrapper


def _unique_user_errors(repo: UserRepository, username: Optional[str], email: Optional[str],
                        exclude_id: Optional[int] = None) -> dict:
    errors = {}
    if username is not None and repo.username_taken(username, exclude_id):
        errors["username"] = ["The username has already been taken."]
    if email is not None and repo.email_taken(email, exclude_id):
        errors["email"] = ["The email has already been taken."]
    return errors


# ==========================================
# AUTH & USERS
# ==========================================

class AuthService:
    """Registration, login/logout and token resolution."""

    @staticmethod
    def _issue_token(db: Session, user: User) -> str:
        token, jti, expires_at = security.create_access_token(user.id, user.role)
        AuthTokenRepository(db).add(AuthToken(id=jti, user_id=user.id, expires_at=expires_at))
        return token

    @staticmethod
    @with_db
    def register(db: Session, data: RegisterRequest) -> Tuple[UserDTO, str]:
        """Creates a customer account and logs it in."""
        users = UserRepository(db)
        errors = _unique_user_errors(users, data.username, str(data.email))
        if errors:
            raise ValidationError("The given data was invalid.", errors=errors)

        user = users.add(User(
            username=data.username,
            email=str(data.email),
            password=security.hash_password(data.password),
            full_name=data.full_name,
            phone=data.phone,
            address=data.address,
            role="customer",
        ))
        token = AuthService._issue_token(db, user)
        db.commit()
        logger.info(f"register: new customer {user.username} (id={user.id})")
        return UserDTO.model_validate(user), token

    @staticmethod
    @with_db
    def login(db: Session, email: str, password: str) -> Tuple[UserDTO, str]:
        """
        Verifies credentials and issues a fresh token.
        Tokens issued by previous logins are revoked.
        """
        user = UserRepository(db).get_by_email(email)
        if not user or not security.verify_password(password, user.password):
            logger.warning(f"login: rejected credentials for {email}")
            raise AuthError("The provided credentials are incorrect.")

        AuthTokenRepository(db).revoke_all_for_user(user.id)
        token = AuthService._issue_token(db, user)
        db.commit()
        return UserDTO.model_validate(user), token

    @staticmethod
    @with_db
    def logout(db: Session, principal: CurrentUser) -> None:
        tokens = AuthTokenRepository(db)
        record = tokens.get(principal.token_id) if principal.token_id else None
        if record:
            record.revoked = True
            db.commit()

    @staticmethod
    @with_db
    def resolve_token(db: Session, token: str) -> CurrentUser:
        """Turns a bearer token into the request principal."""
        payload = security.decode_access_token(token)
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise AuthError("Invalid token structure")

        if not AuthTokenRepository(db).get_active(payload["jti"], user_id):
            raise AuthError("Session has been logged out or has expired")

        user = UserRepository(db).get(user_id)
        if not user:
            raise AuthError("User not found")
        # The role is read from the DB, not the claim, so demotions apply at once
        return CurrentUser(id=user.id, role=user.role, token_id=payload["jti"])

    @staticmethod
    @with_db
    def current_user(db: Session, principal: CurrentUser) -> UserDTO:
        user = UserRepository(db).get(principal.id)
        if not user:
            raise NotFoundError.for_entity("User", principal.id)
        return UserDTO.model_validate(user)


class UserService:
    """Admin-side user management."""

    @staticmethod
    @with_db
    def list_users(db: Session) -> List[UserDTO]:
        return [UserDTO.model_validate(u) for u in UserRepository(db).list()]

    @staticmethod
    @with_db
    def get_user(db: Session, user_id: int) -> UserDTO:
        user = UserRepository(db).get(user_id)
        if not user:
            raise NotFoundError.for_entity("User", user_id)
        return UserDTO.model_validate(user)

    @staticmethod
    @with_db
    def create_user(db: Session, data: UserCreate) -> UserDTO:
        users = UserRepository(db)
        errors = _unique_user_errors(users, data.username, str(data.email))
        if errors:
            raise ValidationError("The given data was invalid.", errors=errors)

        user = users.add(User(
            username=data.username,
            email=str(data.email),
            password=security.hash_password(data.password),
            full_name=data.full_name,
            phone=data.phone,
            address=data.address,
            role=data.role,
        ))
        db.commit()
        logger.info(f"create_user: {user.username} ({user.role})")
        return UserDTO.model_validate(user)

    @staticmethod
    @with_db
    def update_user(db: Session, user_id: int, data: UserUpdate) -> UserDTO:
        users = UserRepository(db)
        user = users.get(user_id)
        if not user:
            raise NotFoundError.for_entity("User", user_id)

        changes = data.model_dump(exclude_unset=True)
        password = changes.pop("password", None)
        if "email" in changes and changes["email"] is not None:
            changes["email"] = str(changes["email"])

        errors = _unique_user_errors(users, changes.get("username"), changes.get("email"), exclude_id=user.id)
        if errors:
            raise ValidationError("The given data was invalid.", errors=errors)

        for field in ("username", "email", "full_name", "role"):
            if changes.get(field) is not None:
                setattr(user, field, changes[field])
        for field in ("phone", "address"):
            if field in changes:
                setattr(user, field, changes[field])
        if password:
            user.password = security.hash_password(password)

        db.commit()
        return UserDTO.model_validate(user)

    @staticmethod
    @with_db
    def delete_user(db: Session, user_id: int) -> None:
        users = UserRepository(db)
        user = users.get(user_id)
        if not user:
            raise NotFoundError.for_entity("User", user_id)
        if users.has_bookings(user.id):
            raise EntityInUse("Cannot delete user because they have bookings associated with them")
        users.delete(user)
        db.commit()
        logger.info(f"delete_user: {user_id}")


# ==========================================
# CATALOG
# ==========================================

class RoomTypeService:

    @staticmethod
    @with_db
    def list_room_types(db: Session) -> List[RoomTypeDTO]:
        return [RoomTypeDTO.model_validate(rt) for rt in RoomTypeRepository(db).list()]

    @staticmethod
    @with_db
    def get_room_type(db: Session, room_type_id: int) -> RoomTypeDetailDTO:
        room_type = RoomTypeRepository(db).get(room_type_id)
        if not room_type:
            raise NotFoundError.for_entity("Room type", room_type_id)
        return RoomTypeDetailDTO.model_validate(room_type)

    @staticmethod
    @with_db
    def create_room_type(db: Session, data: RoomTypeCreate) -> RoomTypeDTO:
        repo = RoomTypeRepository(db)
        if repo.name_taken(data.name):
            raise ValidationError.for_field("name", "The name has already been taken.")
        room_type = repo.add(RoomType(**data.model_dump()))
        db.commit()
        return RoomTypeDTO.model_validate(room_type)

    @staticmethod
    @with_db
    def update_room_type(db: Session, room_type_id: int, data: RoomTypeUpdate) -> RoomTypeDTO:
        repo = RoomTypeRepository(db)
        room_type = repo.get(room_type_id)
        if not room_type:
            raise NotFoundError.for_entity("Room type", room_type_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes and repo.name_taken(changes["name"], exclude_id=room_type.id):
            raise ValidationError.for_field("name", "The name has already been taken.")
        # Existing bookings keep the amount computed at booking time
        for field, value in changes.items():
            setattr(room_type, field, value)
        db.commit()
        return RoomTypeDTO.model_validate(room_type)

    @staticmethod
    @with_db
    def delete_room_type(db: Session, room_type_id: int) -> None:
        repo = RoomTypeRepository(db)
        room_type = repo.get(room_type_id)
        if not room_type:
            raise NotFoundError.for_entity("Room type", room_type_id)
        if repo.has_rooms(room_type.id):
            raise EntityInUse("Cannot delete room type because it has rooms associated with it")
        repo.delete(room_type)
        db.commit()


class RoomService:

    @staticmethod
    @with_db
    def list_rooms(db: Session, status: Optional[str] = None, room_type_id: Optional[int] = None) -> List[RoomDTO]:
        return [RoomDTO.model_validate(r) for r in RoomRepository(db).search(status, room_type_id)]

    @staticmethod
    @with_db
    def get_room(db: Session, room_id: int) -> RoomDTO:
        room = RoomRepository(db).get(room_id)
        if not room:
            raise NotFoundError.for_entity("Room", room_id)
        return RoomDTO.model_validate(room)

    @staticmethod
    @with_db
    def create_room(db: Session, data: RoomCreate) -> RoomDTO:
        rooms = RoomRepository(db)
        if not RoomTypeRepository(db).get(data.room_type_id):
            raise NotFoundError.for_entity("Room type", data.room_type_id)
        if rooms.number_taken(data.room_number):
            raise ValidationError.for_field("room_number", "The room number has already been taken.")
        room = rooms.add(Room(**data.model_dump()))
        db.commit()
        logger.info(f"create_room: {room.room_number} (type={room.room_type_id})")
        return RoomDTO.model_validate(room)

    @staticmethod
    @with_db
    def update_room(db: Session, room_id: int, data: RoomUpdate) -> RoomDTO:
        rooms = RoomRepository(db)
        room = rooms.get_for_update(room_id)
        if not room:
            raise NotFoundError.for_entity("Room", room_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "room_type_id" in changes and not RoomTypeRepository(db).get(changes["room_type_id"]):
            raise NotFoundError.for_entity("Room type", changes["room_type_id"])
        if "room_number" in changes and rooms.number_taken(changes["room_number"], exclude_id=room.id):
            raise ValidationError.for_field("room_number", "The room number has already been taken.")

        for field, value in changes.items():
            setattr(room, field, value)
        db.commit()
        return RoomDTO.model_validate(room)

    @staticmethod
    @with_db
    def delete_room(db: Session, room_id: int) -> None:
        rooms = RoomRepository(db)
        room = rooms.get(room_id)
        if not room:
            raise NotFoundError.for_entity("Room", room_id)
        if rooms.has_bookings(room.id):
            raise EntityInUse("Cannot delete room because it has bookings associated with it")
        rooms.delete(room)
        db.commit()


class ServiceCatalogService:
    """Ancillary services offered by the hotel (food, laundry, spa...)."""

    @staticmethod
    @with_db
    def list_services(db: Session, principal: Optional[CurrentUser] = None, category: Optional[str] = None,
                      is_active: Optional[bool] = None) -> List[ServiceDTO]:
        # Without an explicit filter the public only sees what can be ordered
        if is_active is None and not (principal and principal.is_admin):
            is_active = True
        return [ServiceDTO.model_validate(s) for s in ServiceRepository(db).search(category, is_active)]

    @staticmethod
    @with_db
    def get_service(db: Session, service_id: int, principal: Optional[CurrentUser] = None) -> ServiceDTO:
        service = ServiceRepository(db).get(service_id)
        if not service or (not service.is_active and not (principal and principal.is_admin)):
            raise NotFoundError("Service not found")
        return ServiceDTO.model_validate(service)

    @staticmethod
    @with_db
    def create_service(db: Session, data: ServiceCreate) -> ServiceDTO:
        service = ServiceRepository(db).add(Service(**data.model_dump()))
        db.commit()
        return ServiceDTO.model_validate(service)

    @staticmethod
    @with_db
    def update_service(db: Session, service_id: int, data: ServiceUpdate) -> ServiceDTO:
        service = ServiceRepository(db).get(service_id)
        if not service:
            raise NotFoundError.for_entity("Service", service_id)
        # Price changes do not touch line items already attached to bookings
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(service, field, value)
        db.commit()
        return ServiceDTO.model_validate(service)

    @staticmethod
    @with_db
    def delete_service(db: Session, service_id: int) -> None:
        repo = ServiceRepository(db)
        service = repo.get(service_id)
        if not service:
            raise NotFoundError.for_entity("Service", service_id)
        if repo.is_referenced(service.id):
            raise EntityInUse("Cannot delete service because it is used in bookings")
        repo.delete(service)
        db.commit()


# ==========================================
# BOOKINGS
# ==========================================

CUSTOMER_LOCKED_STATUSES = ("checked_in", "checked_out")
DELETABLE_STATUSES = ("pending", "cancelled")


def _refresh_room_status(db: Session, room: Room, keep_maintenance: bool = True) -> None:
    """
    Re-derives the room status from the bookings that still hold it:
    a checked-in guest makes it occupied, any pending/confirmed booking makes
    it reserved, nothing makes it available. Rooms under maintenance are left
    alone unless `keep_maintenance` is False, which is how an admin's explicit
    booking status change always lands on the mapped room status.
    """
    if keep_maintenance and room.status == "maintenance":
        return
    db.flush()
    live = BookingRepository(db).live_statuses_for_room(room.id)
    if "checked_in" in live:
        room.status = "occupied"
    elif live:
        room.status = "reserved"
    else:
        room.status = "available"


def _get_booking_for(db: Session, principal: CurrentUser, booking_id: int, lock: bool = False) -> Booking:
    """Loads a booking the principal may act on (admins: any, customers: their own)."""
    repo = BookingRepository(db)
    booking = repo.get_for_update(booking_id) if lock else repo.get(booking_id)
    if not booking:
        raise NotFoundError.for_entity("Booking", booking_id)
    if not principal.is_admin and booking.customer_id != principal.id:
        raise AuthorizationError()
    return booking


def _price_stay(room: Room, check_in: date, check_out: date) -> Tuple[int, float]:
    nights = (check_out - check_in).days
    return nights, round(nights * room.room_type.base_price, 2)


class ReservationService:
    """Booking engine: conflict checks, pricing and room status synchronization."""

    @staticmethod
    @with_db
    def create_booking(db: Session, principal: CurrentUser, data: BookingCreate,
                       today: Optional[date] = None) -> BookingDTO:
        """
        Books a room for [check_in_date, check_out_date).

        The room row is locked first, so the overlap check, the insert and the
        room status update happen in one transaction and two concurrent
        requests cannot both book the same nights.
        """
        today = today or date.today()
        if data.check_in_date < today:
            raise ValidationError.for_field("check_in_date", "The check-in date cannot be in the past")

        customer_id = principal.id
        if data.customer_id is not None and data.customer_id != principal.id:
            if not principal.is_admin:
                raise AuthorizationError("Customers can only book for themselves")
            if not UserRepository(db).get(data.customer_id):
                raise NotFoundError.for_entity("User", data.customer_id)
            customer_id = data.customer_id

        room = RoomRepository(db).get_for_update(data.room_id)
        if not room:
            raise NotFoundError.for_entity("Room", data.room_id)
        if room.status == "maintenance":
            logger.warning(f"create_booking: room {room.room_number} is under maintenance")
            raise RoomUnavailable("Room is not available for booking")

        bookings = BookingRepository(db)
        if bookings.find_overlapping(room.id, data.check_in_date, data.check_out_date):
            logger.warning(
                f"create_booking: conflict on room {room.room_number} "
                f"for {data.check_in_date}..{data.check_out_date}"
            )
            raise DateConflict("Room is already booked for the requested dates")

        nights, amount = _price_stay(room, data.check_in_date, data.check_out_date)
        booking = bookings.add(Booking(
            customer_id=customer_id,
            room_id=room.id,
            check_in_date=data.check_in_date,
            check_out_date=data.check_out_date,
            total_nights=nights,
            total_amount=amount,
            status="pending",
            special_requests=data.special_requests,
            booking_date=today,
        ))
        _refresh_room_status(db, room)
        db.commit()

        logger.info(f"create_booking: #{booking.id} room {room.room_number}, {nights} nights, {amount:.2f}")
        return BookingDTO.model_validate(booking)

    @staticmethod
    @with_db
    def get_booking(db: Session, principal: CurrentUser, booking_id: int) -> BookingDetailDTO:
        return BookingDetailDTO.model_validate(_get_booking_for(db, principal, booking_id))

    @staticmethod
    @with_db
    def list_bookings(db: Session, status: Optional[str] = None, start_date: Optional[date] = None,
                      end_date: Optional[date] = None) -> List[BookingDTO]:
        """All bookings (admin view)."""
        rows = BookingRepository(db).search(status=status, start_date=start_date, end_date=end_date)
        return [BookingDTO.model_validate(b) for b in rows]

    @staticmethod
    @with_db
    def get_customer_bookings(db: Session, principal: CurrentUser, status: Optional[str] = None) -> List[BookingDTO]:
        rows = BookingRepository(db).search(customer_id=principal.id, status=status)
        return [BookingDTO.model_validate(b) for b in rows]

    @staticmethod
    @with_db
    def update_booking(db: Session, principal: CurrentUser, booking_id: int, data: BookingUpdate) -> BookingDTO:
        booking = _get_booking_for(db, principal, booking_id, lock=True)
        changes = data.model_dump(exclude_unset=True)

        if principal.is_admin:
            ReservationService._apply_admin_changes(db, booking, changes)
        else:
            ReservationService._apply_customer_changes(db, booking, changes)

        db.commit()
        return BookingDTO.model_validate(booking)

    @staticmethod
    def _apply_customer_changes(db: Session, booking: Booking, changes: dict) -> None:
        """Customers may edit special requests and cancel, nothing else."""
        forbidden = set(changes) - {"special_requests", "status"}
        if forbidden:
            raise AuthorizationError(f"Customers cannot change: {', '.join(sorted(forbidden))}")

        if "special_requests" in changes:
            booking.special_requests = changes["special_requests"]

        if "status" in changes:
            if changes["status"] != "cancelled":
                raise ValidationError.for_field("status", "Customers can only cancel a booking")
            if booking.status in CUSTOMER_LOCKED_STATUSES:
                raise InvalidStatusTransition("Cannot cancel a booking that has already been checked in or out")
            if booking.status != "cancelled":
                booking.status = "cancelled"
                _refresh_room_status(db, booking.room)
                logger.info(f"update_booking: #{booking.id} cancelled by customer {booking.customer_id}")

    @staticmethod
    def _apply_admin_changes(db: Session, booking: Booking, changes: dict) -> None:
        """Admins may move dates and drive the status through the whole lifecycle."""
        check_in = changes.get("check_in_date") or booking.check_in_date
        check_out = changes.get("check_out_date") or booking.check_out_date
        new_status = changes.get("status") or booking.status

        if check_out <= check_in:
            raise ValidationError.for_field("check_out_date", "check_out_date must be after check_in_date")

        dates_changed = (check_in, check_out) != (booking.check_in_date, booking.check_out_date)
        reactivated = booking.status == "cancelled" and new_status != "cancelled"
        room = RoomRepository(db).get_for_update(booking.room_id)

        if new_status != "cancelled" and (dates_changed or reactivated):
            if BookingRepository(db).find_overlapping(room.id, check_in, check_out, exclude_id=booking.id):
                raise DateConflict("Room is already booked for the requested dates")

        if dates_changed:
            booking.check_in_date = check_in
            booking.check_out_date = check_out
            booking.total_nights, booking.total_amount = _price_stay(room, check_in, check_out)

        if "special_requests" in changes:
            booking.special_requests = changes["special_requests"]

        if new_status != booking.status:
            logger.info(f"update_booking: #{booking.id} {booking.status} -> {new_status}")
            booking.status = new_status
            _refresh_room_status(db, room, keep_maintenance=False)

    @staticmethod
    @with_db
    def delete_booking(db: Session, principal: CurrentUser, booking_id: int) -> None:
        """
        Removes a pending or cancelled booking together with its services and
        review. A pending booking releases its room first.
        """
        booking = _get_booking_for(db, principal, booking_id, lock=True)
        if booking.status not in DELETABLE_STATUSES:
            raise InvalidStatusTransition("Only pending or cancelled bookings can be deleted")

        room = booking.room
        was_cancelled = booking.status == "cancelled"
        BookingRepository(db).delete(booking)
        if not was_cancelled:
            _refresh_room_status(db, room)
        db.commit()
        logger.info(f"delete_booking: #{booking_id} removed")


# ==========================================
# SERVICE ATTACHMENTS
# ==========================================

CUSTOMER_EDITABLE_SERVICE_STATUSES = ("requested", "confirmed")


def _get_booking_service_for(db: Session, principal: CurrentUser, item_id: int) -> BookingService:
    item = BookingServiceRepository(db).get(item_id)
    if not item:
        raise NotFoundError.for_entity("Booking service", item_id)
    if not principal.is_admin and item.booking.customer_id != principal.id:
        raise AuthorizationError()
    return item


class ServiceAttachmentService:
    """Priced, quantified services attached to a booking."""

    @staticmethod
    @with_db
    def add_service(db: Session, principal: CurrentUser, data: BookingServiceCreate) -> BookingServiceDTO:
        booking = _get_booking_for(db, principal, data.booking_id)
        if booking.status == "cancelled":
            raise BusinessRuleViolation("Cannot add services to a cancelled booking")

        service = ServiceRepository(db).get(data.service_id)
        if not service:
            raise NotFoundError.for_entity("Service", data.service_id)
        if not service.is_active:
            raise ServiceInactive("Service is not available")

        item = BookingServiceRepository(db).add(BookingService(
            booking_id=booking.id,
            service_id=service.id,
            quantity=data.quantity,
            unit_price=service.price,
            total_price=round(service.price * data.quantity, 2),
            service_date=data.service_date,
            status="requested",
        ))
        db.commit()
        logger.info(f"add_service: {service.name} x{data.quantity} on booking #{booking.id}")
        return BookingServiceDTO.model_validate(item)

    @staticmethod
    @with_db
    def get_booking_service(db: Session, principal: CurrentUser, item_id: int) -> BookingServiceDTO:
        return BookingServiceDTO.model_validate(_get_booking_service_for(db, principal, item_id))

    @staticmethod
    @with_db
    def list_booking_services(db: Session, booking_id: Optional[int] = None, service_id: Optional[int] = None,
                              status: Optional[str] = None) -> List[BookingServiceDTO]:
        rows = BookingServiceRepository(db).search(booking_id, service_id, status)
        return [BookingServiceDTO.model_validate(i) for i in rows]

    @staticmethod
    @with_db
    def update_booking_service(db: Session, principal: CurrentUser, item_id: int,
                               data: BookingServiceUpdate) -> BookingServiceDTO:
        item = _get_booking_service_for(db, principal, item_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if not principal.is_admin:
            if "service_date" in changes:
                raise AuthorizationError("Customers cannot change: service_date")
            if changes.get("status", "cancelled") != "cancelled":
                raise ValidationError.for_field("status", "Customers can only cancel a service")
            if item.status not in CUSTOMER_EDITABLE_SERVICE_STATUSES:
                raise InvalidStatusTransition("Cannot update service that has been completed or cancelled")

        if "quantity" in changes:
            item.quantity = changes["quantity"]
            item.total_price = round(item.unit_price * item.quantity, 2)
        if "service_date" in changes:
            item.service_date = changes["service_date"]
        if "status" in changes:
            item.status = changes["status"]

        db.commit()
        return BookingServiceDTO.model_validate(item)

    @staticmethod
    @with_db
    def delete_booking_service(db: Session, principal: CurrentUser, item_id: int) -> None:
        item = _get_booking_service_for(db, principal, item_id)
        if item.status == "completed":
            raise InvalidStatusTransition("Cannot delete a service that has been completed")
        BookingServiceRepository(db).delete(item)
        db.commit()


# ==========================================
# REVIEWS
# ==========================================

class ReviewService:

    @staticmethod
    @with_db
    def create_review(db: Session, principal: CurrentUser, data: ReviewCreate,
                      today: Optional[date] = None) -> ReviewDTO:
        """One review per booking, by its customer, once the stay is over."""
        booking = BookingRepository(db).get(data.booking_id)
        if not booking:
            raise NotFoundError.for_entity("Booking", data.booking_id)
        if booking.customer_id != principal.id:
            raise AuthorizationError()
        if booking.status != "checked_out":
            raise BusinessRuleViolation("Can only review bookings that have been checked out")

        reviews = ReviewRepository(db)
        if reviews.get_by_booking(booking.id):
            raise BusinessRuleViolation("Review already exists for this booking")

        review = reviews.add(Review(
            customer_id=principal.id,
            booking_id=booking.id,
            rating=data.rating,
            comment=data.comment,
            review_date=today or date.today(),
        ))
        db.commit()
        return ReviewDTO.model_validate(review)

    @staticmethod
    @with_db
    def get_review(db: Session, review_id: int) -> ReviewDTO:
        review = ReviewRepository(db).get(review_id)
        if not review:
            raise NotFoundError.for_entity("Review", review_id)
        return ReviewDTO.model_validate(review)

    @staticmethod
    @with_db
    def list_reviews(db: Session, booking_id: Optional[int] = None, customer_id: Optional[int] = None,
                     rating: Optional[int] = None) -> List[ReviewDTO]:
        return [ReviewDTO.model_validate(r) for r in ReviewRepository(db).search(booking_id, customer_id, rating)]

    @staticmethod
    @with_db
    def update_review(db: Session, principal: CurrentUser, review_id: int, data: ReviewUpdate) -> ReviewDTO:
        review = ReviewRepository(db).get(review_id)
        if not review:
            raise NotFoundError.for_entity("Review", review_id)
        if review.customer_id != principal.id:
            raise AuthorizationError()

        changes = data.model_dump(exclude_unset=True)
        if changes.get("rating") is not None:
            review.rating = changes["rating"]
        if "comment" in changes:
            review.comment = changes["comment"]
        db.commit()
        return ReviewDTO.model_validate(review)

    @staticmethod
    @with_db
    def delete_review(db: Session, principal: CurrentUser, review_id: int) -> None:
        repo = ReviewRepository(db)
        review = repo.get(review_id)
        if not review:
            raise NotFoundError.for_entity("Review", review_id)
        if review.customer_id != principal.id and not principal.is_admin:
            raise AuthorizationError()
        repo.delete(review)
        db.commit()
