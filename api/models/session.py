"""
ActivitySession model - games, calls and chats a student took part in.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Table, Uuid
from sqlalchemy.orm import relationship
from database import Base
import uuid
from datetime import datetime


session_participants = Table(
    "session_participants",
    Base.metadata,
    Column("session_id", Uuid, ForeignKey("activity_sessions.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class ActivitySession(Base):
    """Activity session model. Only completed sessions count towards rankings."""
    __tablename__ = "activity_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Type options: 'game', 'video_call', 'voice_call', 'group_video_call',
    # 'group_voice_call', 'chat', 'group_chat'
    session_type = Column(String(30), nullable=False, index=True)
    # Only set for game sessions
    game_type = Column(String(30), nullable=True, index=True)

    # Status options: 'scheduled', 'active', 'completed', 'cancelled'
    status = Column(String(20), nullable=False, default="active", index=True)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    ended_at = Column(DateTime, nullable=True)
    duration = Column(Integer, default=0, nullable=False)  # seconds

    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    participants = relationship("User", secondary=session_participants, lazy="selectin")

    @property
    def participant_ids(self):
        return [user.id for user in self.participants]

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def __repr__(self):
        return f"<ActivitySession(id={self.id}, type={self.session_type}, status={self.status})>"
