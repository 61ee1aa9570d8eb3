"""
Pydantic schemas for User model.
"""
from pydantic import EmailStr, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

from .common import CamelModel


class UserBase(CamelModel):
    """Base user schema with common fields."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    """Schema for user registration. Admin accounts are seeded, not registered."""
    password: str = Field(..., min_length=8, max_length=100)
    role: Literal["student", "teacher"] = "student"
    region_id: Optional[UUID] = None


class UserLogin(CamelModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    """Schema for exchanging a refresh token."""
    refresh_token: str


class UserResponse(UserBase):
    """Schema for user responses (without sensitive data)."""
    id: UUID
    role: str
    region_id: Optional[UUID]
    is_active: bool
    total_lectures_watched: int
    total_games_played: int
    total_communication_sessions: int
    last_active: datetime
    created_at: datetime


class TokenResponse(CamelModel):
    """Schema for authentication token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
