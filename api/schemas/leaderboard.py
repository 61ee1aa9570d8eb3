"""
Pydantic schemas for leaderboard requests and responses.
"""
from pydantic import model_validator
from uuid import UUID
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from enum import Enum

from .common import CamelModel, Pagination, UTCDateTime
from .region import RegionSummary
from .session import GameType


class LeaderboardType(str, Enum):
    """Enum for leaderboard scopes."""
    OVERALL = "overall"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    GAME_SPECIFIC = "game_specific"


class Period(CamelModel):
    """Inclusive ranking window."""
    start_date: UTCDateTime
    end_date: UTCDateTime

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class LeaderboardCreate(CamelModel):
    """Schema for creating (or refreshing) a leaderboard for an explicit period."""
    region_id: UUID
    leaderboard_type: LeaderboardType = LeaderboardType.OVERALL
    game_type: Optional[GameType] = None
    period: Period
    publish: Optional[bool] = None

    @model_validator(mode="after")
    def check_game_type(self):
        if self.leaderboard_type == LeaderboardType.GAME_SPECIFIC and self.game_type is None:
            raise ValueError("gameType is required for game_specific leaderboards")
        if self.leaderboard_type != LeaderboardType.GAME_SPECIFIC and self.game_type is not None:
            raise ValueError("gameType is only allowed for game_specific leaderboards")
        return self


class StudentSummary(CamelModel):
    id: UUID
    name: str
    email: str


class LeaderboardEntryResponse(CamelModel):
    """Single ranked student in a leaderboard."""
    rank: int
    student: StudentSummary
    score: float
    max_score: float
    percentage: int
    total_sessions: int
    total_games: int
    total_lectures: int
    average_session_duration: int
    last_active: Optional[datetime] = None


class LeaderboardResponse(CamelModel):
    """Materialized leaderboard snapshot."""
    id: UUID
    region: RegionSummary
    leaderboard_type: LeaderboardType
    game_type: Optional[GameType] = None
    period: Period
    top_students: List[LeaderboardEntryResponse]
    total_participants: int
    average_score: int
    total_sessions: int
    total_games: int
    is_active: bool
    is_published: bool
    last_updated: datetime


class Top3Data(CamelModel):
    region: RegionSummary
    leaderboard: Optional[LeaderboardResponse] = None
    top_students: List[LeaderboardEntryResponse]
    total_students: int


class FullLeaderboardData(CamelModel):
    region: RegionSummary
    leaderboard_id: Optional[UUID] = None
    leaderboard_type: LeaderboardType
    game_type: Optional[GameType] = None
    period: Optional[Period] = None
    leaderboard: List[LeaderboardEntryResponse]
    pagination: Pagination


class LeaderboardHistoryData(CamelModel):
    region: RegionSummary
    leaderboards: List[LeaderboardResponse]


class RegionTop3(CamelModel):
    region: RegionSummary
    leaderboard_id: Optional[UUID] = None
    top3: List[LeaderboardEntryResponse]
    total_students: int


class AllRegionsTop3Data(CamelModel):
    regional_leaderboards: List[RegionTop3]
    total_regions: int


class ActivityStatistics(CamelModel):
    """Live activity counters and the composite score derived from them."""
    lectures_watched: int
    game_sessions: int
    communication_sessions: int
    total_score: float


class MyRankData(CamelModel):
    rank: int
    total_score: float
    statistics: ActivityStatistics
    student: StudentSummary
    region: RegionSummary
    total_students: int
    scoring_method: Dict[str, Any]


class RegionAverages(CamelModel):
    average_lectures: float
    average_games: float
    average_communication: float


class RegionStatistics(CamelModel):
    region: RegionSummary
    total_students: int
    average_score: float
    top_score: float
    statistics: RegionAverages


class OverallStatistics(CamelModel):
    total_regions: int
    total_students: int
    average_score: float


class StatisticsData(CamelModel):
    overall: OverallStatistics
    region_statistics: List[RegionStatistics]
    scoring_method: Dict[str, Any]


class UpdateActivityRequest(CamelModel):
    activity_type: Literal["lectures", "games", "communication"]
    increment: int = 1


class UpdateActivityData(CamelModel):
    user_id: UUID
    activity_type: str
    increment: int
    updated_statistics: ActivityStatistics
