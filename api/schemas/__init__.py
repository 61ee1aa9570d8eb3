"""
Pydantic schemas for request/response validation.
"""
from .common import APIResponse, CamelModel, Pagination
from .user import (
    UserCreate,
    UserLogin,
    RefreshRequest,
    UserResponse,
    TokenResponse,
)
from .region import (
    RegionSummary,
    RegionCreate,
    RegionUpdate,
    RegionResponse,
)
from .session import (
    SessionType,
    SessionStatus,
    GameType,
    SessionCreate,
    SessionComplete,
    SessionResponse,
    SessionListResponse,
    GameScoreCreate,
    GameScoreResponse,
    LectureViewResponse,
)
from .leaderboard import (
    LeaderboardType,
    Period,
    LeaderboardCreate,
    StudentSummary,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    Top3Data,
    FullLeaderboardData,
    LeaderboardHistoryData,
    RegionTop3,
    AllRegionsTop3Data,
    ActivityStatistics,
    MyRankData,
    RegionAverages,
    RegionStatistics,
    OverallStatistics,
    StatisticsData,
    UpdateActivityRequest,
    UpdateActivityData,
)

__all__ = [
    # Shared
    "APIResponse",
    "CamelModel",
    "Pagination",
    # User schemas
    "UserCreate",
    "UserLogin",
    "RefreshRequest",
    "UserResponse",
    "TokenResponse",
    # Region schemas
    "RegionSummary",
    "RegionCreate",
    "RegionUpdate",
    "RegionResponse",
    # Activity schemas
    "SessionType",
    "SessionStatus",
    "GameType",
    "SessionCreate",
    "SessionComplete",
    "SessionResponse",
    "SessionListResponse",
    "GameScoreCreate",
    "GameScoreResponse",
    "LectureViewResponse",
    # Leaderboard schemas
    "LeaderboardType",
    "Period",
    "LeaderboardCreate",
    "StudentSummary",
    "LeaderboardEntryResponse",
    "LeaderboardResponse",
    "Top3Data",
    "FullLeaderboardData",
    "LeaderboardHistoryData",
    "RegionTop3",
    "AllRegionsTop3Data",
    "ActivityStatistics",
    "MyRankData",
    "RegionAverages",
    "RegionStatistics",
    "OverallStatistics",
    "StatisticsData",
    "UpdateActivityRequest",
    "UpdateActivityData",
]
