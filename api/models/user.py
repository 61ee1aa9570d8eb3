"""
User model - stores authentication data, role, region and activity counters.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import relationship
from database import Base
import uuid
from datetime import datetime


class User(Base):
    """User model for admins, teachers and students."""
    __tablename__ = "users"

    ROLE_ADMIN = "admin"
    ROLE_TEACHER = "teacher"
    ROLE_STUDENT = "student"
    ROLES = (ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_STUDENT, index=True)
    region_id = Column(Uuid, ForeignKey("regions.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Cumulative activity counters (inputs of the live composite score)
    total_lectures_watched = Column(Integer, default=0, nullable=False)
    total_games_played = Column(Integer, default=0, nullable=False)
    total_communication_sessions = Column(Integer, default=0, nullable=False)

    last_active = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    region = relationship("Region", back_populates="users")
    game_scores = relationship("GameScore", back_populates="user", cascade="all, delete-orphan")
    lecture_views = relationship("LectureView", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_student(self) -> bool:
        return self.role == self.ROLE_STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    def touch(self):
        """Mark the user as active now."""
        self.last_active = datetime.utcnow()

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
