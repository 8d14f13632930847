from datetime import datetime, date

from sqlalchemy import (
    create_engine, Column, Integer, String, Text, Date, DateTime, Float, Boolean,
    ForeignKey, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session, relationship

from config import settings
from logging_config import get_logger

logger = get_logger(__name__)

# Database
# SQLite: writers queue on the database lock for up to `timeout` seconds
connect_args = {"check_same_thread": False, "timeout": 30} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=connect_args)
Base = declarative_base()
# Thread-safe: each thread (request) gets its own session, released with remove()
SessionLocal = scoped_session(sessionmaker(bind=engine, autoflush=False))

# ==========================================
# STATUS VALUES
# ==========================================

USER_ROLES = ("admin", "customer")
ROOM_STATUSES = ("available", "occupied", "maintenance", "reserved")
BOOKING_STATUSES = ("pending", "confirmed", "checked_in", "checked_out", "cancelled")
BOOKING_SERVICE_STATUSES = ("requested", "confirmed", "completed", "cancelled")
SERVICE_CATEGORIES = ("food", "laundry", "spa", "transport", "other")

# ==========================================
# MODELS (Tables)
# ==========================================

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="customer")
    created_at = Column(DateTime, default=datetime.now)

    bookings = relationship("Booking", back_populates="customer")
    tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")


class AuthToken(Base):
    """Issued access tokens. A JWT is honoured only while its row is live."""
    __tablename__ = "auth_tokens"
    id = Column(String(64), primary_key=True)  # jti claim
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now)
    expires_at = Column(DateTime, nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="tokens")


class RoomType(Base):
    __tablename__ = "room_types"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    base_price = Column(Float, nullable=False)
    max_occupancy = Column(Integer, nullable=False)
    amenities = Column(Text, nullable=False, default="")

    rooms = relationship("Room", back_populates="room_type", order_by="Room.room_number")


class Room(Base):
    __tablename__ = "rooms"
    id = Column(Integer, primary_key=True, autoincrement=True)
    room_number = Column(String(10), unique=True, nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    status = Column(String(20), nullable=False, default="available")
    floor = Column(Integer, nullable=False)

    room_type = relationship("RoomType", back_populates="rooms")
    bookings = relationship("Booking", back_populates="room")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_booking_dates"),
    )
    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)

    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    total_nights = Column(Integer, nullable=False)
    total_amount = Column(Float, nullable=False)

    status = Column(String(20), nullable=False, default="pending")  # pending, confirmed, checked_in, checked_out, cancelled
    special_requests = Column(Text, nullable=True)
    booking_date = Column(Date, default=date.today, nullable=False)

    customer = relationship("User", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")
    services = relationship("BookingService", back_populates="booking", cascade="all, delete-orphan")
    review = relationship("Review", back_populates="booking", uselist=False, cascade="all, delete-orphan")


class Service(Base):
    __tablename__ = "services"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    category = Column(String(20), nullable=False)  # food, laundry, spa, transport, other
    is_active = Column(Boolean, nullable=False, default=True)

    booking_services = relationship("BookingService", back_populates="service")


class BookingService(Base):
    """A service line item attached to a booking."""
    __tablename__ = "booking_services"
    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)  # snapshot of Service.price when added
    total_price = Column(Float, nullable=False)
    service_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="requested")

    booking = relationship("Booking", back_populates="services")
    service = relationship("Service", back_populates="booking_services")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_review_booking"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )
    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    review_date = Column(Date, default=date.today, nullable=False)

    booking = relationship("Booking", back_populates="review")
    customer = relationship("User")

# ==========================================
# INITIALIZATION
# ==========================================

def init_db():
    Base.metadata.create_all(engine)

    # Seed the first admin account (only on an empty users table)
    if not settings.ADMIN_PASSWORD:
        return

    from security import hash_password

    session = SessionLocal()
    try:
        if session.query(User).count() == 0:
            session.add(User(
                username=settings.ADMIN_USERNAME,
                email=settings.ADMIN_EMAIL,
                password=hash_password(settings.ADMIN_PASSWORD),
                full_name="Administrator",
                role="admin",
            ))
            session.commit()
            logger.info(f"Initial admin '{settings.ADMIN_USERNAME}' created")
    finally:
        SessionLocal.remove()


if __name__ == "__main__":
    init_db()
