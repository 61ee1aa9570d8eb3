"""
Authentication endpoints - user registration, login and token refresh.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models import User
from schemas import (
    APIResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    TokenResponse,
    RefreshRequest,
)
from services.auth_service import auth_service
from utils.dependencies import get_current_user

router = APIRouter()


@router.post("/register", response_model=APIResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new student or teacher account.

    - Creates user account with hashed password
    - Optionally assigns the user to an active region
    - Returns user data (without password)
    """
    user, error = auth_service.create_user(db, user_data)

    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error
        )

    return APIResponse(message="User registered successfully", data=UserResponse.model_validate(user))


@router.post("/login", response_model=APIResponse[TokenResponse])
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Login with email and password.

    - Validates credentials
    - Returns JWT access and refresh tokens
    """
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Create tokens
    tokens = auth_service.create_tokens(str(user.id))
    return APIResponse(message="Login successful", data=tokens)


@router.post("/refresh", response_model=APIResponse[TokenResponse])
async def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access/refresh token pair."""
    tokens = auth_service.refresh_tokens(db, request.refresh_token)

    if tokens is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return APIResponse(message="Token refreshed", data=tokens)


@router.get("/me", response_model=APIResponse[UserResponse])
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user."""
    return APIResponse(message="User retrieved successfully", data=UserResponse.model_validate(current_user))
