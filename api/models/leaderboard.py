"""
Leaderboard models - materialized top-N ranking snapshots per region, scope and period.
"""
from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Float, Integer, Boolean, Index, CheckConstraint, Uuid,
)
from sqlalchemy.orm import relationship
from database import Base
import uuid
from datetime import datetime


class Leaderboard(Base):
    """Point-in-time ranking snapshot for one region."""
    __tablename__ = "leaderboards"

    TYPE_OVERALL = "overall"
    TYPE_WEEKLY = "weekly"
    TYPE_MONTHLY = "monthly"
    TYPE_GAME_SPECIFIC = "game_specific"
    TYPES = (TYPE_OVERALL, TYPE_WEEKLY, TYPE_MONTHLY, TYPE_GAME_SPECIFIC)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    region_id = Column(Uuid, ForeignKey("regions.id", ondelete="CASCADE"), nullable=False, index=True)

    # Scope: 'overall', 'weekly', 'monthly', 'game_specific'
    leaderboard_type = Column(String(20), nullable=False, default=TYPE_OVERALL, index=True)
    # Empty string unless leaderboard_type is 'game_specific'
    game_type = Column(String(30), nullable=False, default="", index=True)

    # Ranking period (inclusive on both ends)
    period_start = Column(DateTime, nullable=False, index=True)
    period_end = Column(DateTime, nullable=False, index=True)

    # Aggregates over every eligible student, not only the top entries
    total_participants = Column(Integer, nullable=False, default=0)
    average_score = Column(Integer, nullable=False, default=0)
    total_sessions = Column(Integer, nullable=False, default=0)
    total_games = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_published = Column(Boolean, nullable=False, default=False, index=True)

    # Timestamps
    last_updated = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    region = relationship("Region", back_populates="leaderboards")
    entries = relationship(
        "LeaderboardEntry",
        back_populates="leaderboard",
        cascade="all, delete-orphan",
        order_by="LeaderboardEntry.rank",
        lazy="selectin",
    )

    __table_args__ = (
        # One snapshot per region, scope and period
        Index(
            "idx_leaderboard_unique_period",
            "region_id", "leaderboard_type", "game_type", "period_start",
            unique=True,
        ),
        # Current-leaderboard lookups
        Index("idx_leaderboard_current", "region_id", "leaderboard_type", "is_published", "period_end"),
    )

    def publish(self):
        self.is_published = True

    def unpublish(self):
        self.is_published = False

    def __repr__(self):
        return (
            f"<Leaderboard(region_id={self.region_id}, type={self.leaderboard_type}, "
            f"game_type={self.game_type or None}, period_start={self.period_start})>"
        )


class LeaderboardEntry(Base):
    """One ranked student inside a leaderboard snapshot."""
    __tablename__ = "leaderboard_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    leaderboard_id = Column(Uuid, ForeignKey("leaderboards.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    rank = Column(Integer, nullable=False)

    # Frozen at computation time, not live-synced with the user
    score = Column(Float, nullable=False, default=0.0)
    max_score = Column(Float, nullable=False, default=0.0)
    percentage = Column(Integer, nullable=False, default=0)
    total_sessions = Column(Integer, nullable=False, default=0)
    total_games = Column(Integer, nullable=False, default=0)
    total_lectures = Column(Integer, nullable=False, default=0)
    average_session_duration = Column(Integer, nullable=False, default=0)  # minutes
    last_active = Column(DateTime, nullable=True)

    # Relationships
    leaderboard = relationship("Leaderboard", back_populates="entries")
    student = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_leaderboard_entry_rank", "leaderboard_id", "rank", unique=True),
        CheckConstraint("rank >= 1", name="ck_leaderboard_entry_rank_positive"),
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_leaderboard_entry_percentage"),
    )

    def __repr__(self):
        return f"<LeaderboardEntry(rank={self.rank}, student_id={self.student_id}, percentage={self.percentage})>"
