"""
SQLAlchemy database models.
"""
from .region import Region
from .user import User
from .session import ActivitySession, session_participants
from .activity import GameScore, LectureView
from .leaderboard import Leaderboard, LeaderboardEntry

__all__ = [
    "Region",
    "User",
    "ActivitySession",
    "session_participants",
    "GameScore",
    "LectureView",
    "Leaderboard",
    "LeaderboardEntry",
]
