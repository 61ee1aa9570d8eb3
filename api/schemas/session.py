"""
Pydantic schemas for activity sessions, game scores and lecture views.
"""
from pydantic import Field, model_validator
from uuid import UUID
from datetime import datetime
from typing import List, Optional
from enum import Enum

from .common import CamelModel, UTCDateTime


class SessionType(str, Enum):
    """Enum for session type values."""
    GAME = "game"
    VIDEO_CALL = "video_call"
    VOICE_CALL = "voice_call"
    GROUP_VIDEO_CALL = "group_video_call"
    GROUP_VOICE_CALL = "group_voice_call"
    CHAT = "chat"
    GROUP_CHAT = "group_chat"


class SessionStatus(str, Enum):
    """Enum for session status values."""
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GameType(str, Enum):
    """Enum for the games a student can score in."""
    GRAMMAR = "grammar"
    PRONUNCIATION = "pronunciation"
    IDENTIFICATION = "identification"
    STORYTELLING = "storytelling"


class SessionCreate(CamelModel):
    """Schema for starting a session. The caller is always a participant."""
    session_type: SessionType
    game_type: Optional[GameType] = None
    participant_ids: List[UUID] = Field(default_factory=list)
    started_at: Optional[UTCDateTime] = None

    @model_validator(mode="after")
    def check_game_type(self):
        if self.session_type == SessionType.GAME and self.game_type is None:
            raise ValueError("gameType is required for game sessions")
        if self.session_type != SessionType.GAME and self.game_type is not None:
            raise ValueError("gameType is only allowed for game sessions")
        return self


class SessionComplete(CamelModel):
    """Schema for completing a session."""
    ended_at: Optional[UTCDateTime] = None


class SessionResponse(CamelModel):
    """Schema for session responses."""
    id: UUID
    session_type: SessionType
    game_type: Optional[GameType]
    status: SessionStatus
    started_at: datetime
    ended_at: Optional[datetime]
    duration: int
    participant_ids: List[UUID]


class SessionListResponse(CamelModel):
    """Schema for paginated session list."""
    sessions: List[SessionResponse]
    total: int
    page: int
    page_size: int


class GameScoreCreate(CamelModel):
    game_type: GameType
    score: float = Field(..., ge=0, le=100)
    session_id: Optional[UUID] = None


class GameScoreResponse(CamelModel):
    id: UUID
    game_type: GameType
    score: float
    session_id: Optional[UUID]
    played_at: datetime


class LectureViewResponse(CamelModel):
    id: UUID
    lecture_id: str
    watched_at: datetime
    total_lectures_watched: int
