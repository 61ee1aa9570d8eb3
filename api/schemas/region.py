"""
Pydantic schemas for Region model.
"""
from pydantic import Field, field_validator
from uuid import UUID
from datetime import datetime
from typing import Optional

from .common import CamelModel


class RegionSummary(CamelModel):
    """Region reference embedded in leaderboard payloads."""
    id: UUID
    name: str
    code: str
    description: Optional[str] = None


class RegionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = None

    @field_validator("name", "code")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("code")
    @classmethod
    def uppercase_code(cls, value: str) -> str:
        return value.upper()


class RegionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class RegionResponse(RegionSummary):
    is_active: bool
    created_at: datetime
    updated_at: datetime
