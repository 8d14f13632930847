"""
Hotel API - Dependency Injection
================================

Database session and authenticated principal dependencies for FastAPI
endpoints.
"""

from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

# Import from ROOT - Single Source of Truth
from database import SessionLocal
from exceptions import AuthError, AuthorizationError
from schemas import CurrentUser
from services import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    The @with_db decorator in services.py detects this injected session and
    uses it instead of creating its own.

    Usage:
        @router.post("")
        def create_item(db: Session = Depends(get_db)):
            return SomeService.some_method(db, ...)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        SessionLocal.remove()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    if credentials is None:
        raise AuthError("Unauthenticated.")
    return AuthService.resolve_token(db, credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[CurrentUser]:
    """Principal for public routes that show more to admins. Bad tokens are still rejected."""
    if credentials is None:
        return None
    return AuthService.resolve_token(db, credentials.credentials)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise AuthorizationError()
    return user


def require_customer(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != "customer":
        raise AuthorizationError()
    return user
