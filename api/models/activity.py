"""
Activity ledger models - per-game scores and lecture views.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Float, Uuid, Index
from sqlalchemy.orm import relationship
from database import Base
import uuid
from datetime import datetime


class GameScore(Base):
    """One scored play of a game by a student (0-100 points)."""
    __tablename__ = "game_scores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Game type: 'grammar', 'pronunciation', 'identification', 'storytelling'
    game_type = Column(String(30), nullable=False, index=True)
    score = Column(Float, nullable=False, default=0.0)
    session_id = Column(Uuid, ForeignKey("activity_sessions.id", ondelete="SET NULL"), nullable=True)
    played_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="game_scores")

    __table_args__ = (
        Index("idx_game_scores_user_played", "user_id", "played_at"),
    )

    def __repr__(self):
        return f"<GameScore(user_id={self.user_id}, game={self.game_type}, score={self.score})>"


class LectureView(Base):
    """A student watching a video lecture."""
    __tablename__ = "lecture_views"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    lecture_id = Column(String(64), nullable=False, index=True)
    watched_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="lecture_views")

    __table_args__ = (
        Index("idx_lecture_views_user_watched", "user_id", "watched_at"),
    )

    def __repr__(self):
        return f"<LectureView(user_id={self.user_id}, lecture_id={self.lecture_id})>"
