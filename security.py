"""
Hotel API - Password hashing and access tokens
==============================================

- Passwords: bcrypt
- Tokens: JWT (HS256 by default) with claims sub, role, jti, exp.
  The jti is persisted in auth_tokens so logout can revoke it.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Tuple

import bcrypt
from jose import JWTError, jwt

from config import settings
from exceptions import AuthError


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash, or a password bcrypt refuses (> 72 bytes)
        return False


def create_access_token(user_id: int, role: str) -> Tuple[str, str, datetime]:
    """
    Issues a signed token for the user.

    Returns:
        (token, jti, expires_at) - expires_at is naive UTC, as stored in the DB
    """
    jti = secrets.token_urlsafe(24)
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "role": role,
        "jti": jti,
        "exp": expires,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, jti, expires.replace(tzinfo=None)


def decode_access_token(token: str) -> dict:
    """Verify and decode a token. Raises AuthError when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise AuthError("Invalid or expired token")

    if not payload.get("sub") or not payload.get("jti"):
        raise AuthError("Invalid token structure")
    return payload
