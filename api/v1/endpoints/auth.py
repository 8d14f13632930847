"""
Hotel API - Authentication Endpoints
====================================

Register, login, logout and the current user.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

# Import from API deps
from api.deps import get_current_user, get_db

# IMPORT FROM ROOT - Single Source of Truth
from services import AuthService
from schemas import CurrentUser, LoginRequest, MessageResponse, RegisterRequest, TokenResponse, UserDTO

router = APIRouter()


# ==========================================
# ENDPOINTS
# ==========================================

@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a customer account and return an access token."
)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    user, token = AuthService.register(db, data)
    return TokenResponse(message="User registered successfully", user=user, token=token)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="User Login",
    description="Authenticate with email and password. Previous sessions of the user are logged out."
)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user, token = AuthService.login(db, str(credentials.email), credentials.password)
    return TokenResponse(message="Login successful", user=user, token=token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Revoke the token used for this request."
)
def logout(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    AuthService.logout(db, user)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/user",
    response_model=UserDTO,
    summary="Current User",
)
def current_user(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return AuthService.current_user(db, user)
