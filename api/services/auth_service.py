"""
Authentication service - business logic for user authentication.
"""
from sqlalchemy.orm import Session
from typing import Optional, Tuple
from uuid import UUID
import logging

from models import Region, User
from schemas import UserCreate, TokenResponse
from utils.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    validate_password_strength
)

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def create_user(db: Session, user_data: UserCreate) -> Tuple[Optional[User], Optional[str]]:
        """
        Create a new user account.

        Args:
            db: Database session
            user_data: User registration data

        Returns:
            Tuple of (User object, error message). If successful, error is None.
        """
        # Check if user already exists
        existing_user = db.query(User).filter(User.email == user_data.email).first()
        if existing_user:
            return None, "Email already registered"

        # Validate password strength
        is_valid, error_msg = validate_password_strength(user_data.password)
        if not is_valid:
            return None, error_msg

        if user_data.region_id is not None:
            region = db.query(Region).filter(Region.id == user_data.region_id).first()
            if region is None or not region.is_active:
                return None, "Region not found"

        user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            region_id=user_data.region_id,
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Registered {user.role} {user.id}")

        return user, None

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Args:
            db: Database session
            email: User's email
            password: User's password

        Returns:
            User object if authentication successful, None otherwise
        """
        user = db.query(User).filter(User.email == email).first()
        if not user or not user.is_active:
            return None

        if not verify_password(password, user.password_hash):
            return None

        user.touch()
        db.commit()

        return user

    @staticmethod
    def create_tokens(user_id: str) -> TokenResponse:
        """
        Create access and refresh tokens for a user.

        Args:
            user_id: User's UUID as string

        Returns:
            TokenResponse with access and refresh tokens
        """
        access_token = create_access_token(data={"sub": user_id})
        refresh_token = create_refresh_token(data={"sub": user_id})

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer"
        )

    @staticmethod
    def refresh_tokens(db: Session, refresh_token: str) -> Optional[TokenResponse]:
        """
        Exchange a refresh token for a new token pair.

        Returns:
            TokenResponse, or None if the token is invalid or the user is gone
        """
        payload = decode_token(refresh_token)
        if payload is None or payload.get("type") != "refresh":
            return None

        try:
            user_id = UUID(payload.get("sub") or "")
        except ValueError:
            return None

        user = db.query(User).filter(User.id == user_id).first()
        if user is None or not user.is_active:
            return None

        return AuthService.create_tokens(str(user.id))


# Global service instance
auth_service = AuthService()
