"""
Hotel API - Main Application
============================

- FastAPI layer in /api/ folder
- Business logic in root services.py and reports.py
- Schemas in root schemas.py

Run with: python -m uvicorn api.main:app --reload --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import init_db
from logging_config import get_logger
from api.exception_handlers import setup_exception_handlers

# Import routers
from api.v1.endpoints import (
    auth,
    users,
    room_types,
    rooms,
    service_catalog,
    bookings,
    booking_services,
    reviews,
    reports,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"Hotel API started ({settings.ENVIRONMENT})")
    yield


# ==========================================
# APP CONFIGURATION
# ==========================================

app = FastAPI(
    title="Hotel Management API",
    version="1.0.0",
    description="""
## Hotel Management API

REST backend for a hotel: accounts, rooms, bookings, extra services,
reviews and reports.

### Architecture
- **Service layer**: all business rules in root `services.py` / `reports.py`
- **Repositories**: per-entity queries in root `repositories.py`
- **Smart Decorator**: `@with_db` detects if session is injected or needs creation

### Endpoints
- **Auth**: register, login, logout, current user (bearer token)
- **Catalog**: room types, rooms and services
- **Bookings**: date-conflict checked reservations with room status sync
- **Booking Services / Reviews**: extras and guest feedback per booking
- **Reports**: admin dashboards and CSV export
""",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# ==========================================
# MIDDLEWARE & ERRORS
# ==========================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


# ==========================================
# ROUTERS
# ==========================================

API_PREFIX = "/api/v1"

app.include_router(auth.router, prefix=API_PREFIX, tags=["Authentication"])
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["Users"])
app.include_router(room_types.router, prefix=f"{API_PREFIX}/room-types", tags=["Room Types"])
app.include_router(rooms.router, prefix=f"{API_PREFIX}/rooms", tags=["Rooms"])
app.include_router(service_catalog.router, prefix=f"{API_PREFIX}/services", tags=["Services"])
app.include_router(bookings.router, prefix=f"{API_PREFIX}/bookings", tags=["Bookings"])
app.include_router(bookings.my_bookings_router, prefix=API_PREFIX, tags=["Bookings"])
app.include_router(booking_services.router, prefix=f"{API_PREFIX}/booking-services", tags=["Booking Services"])
app.include_router(reviews.router, prefix=f"{API_PREFIX}/reviews", tags=["Reviews"])
app.include_router(reports.router, prefix=f"{API_PREFIX}/reports", tags=["Reports"])


# ==========================================
# HEALTH ENDPOINTS
# ==========================================

@app.get("/", tags=["Health"])
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "api": "Hotel Management API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": settings.DATABASE_URL.split(":", 1)[0],
        "environment": settings.ENVIRONMENT,
        "cors_origins": settings.CORS_ORIGINS,
    }
