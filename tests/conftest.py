"""
Shared fixtures: in-memory SQLite database, API client and user factories.
"""
import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LEADERBOARD_AUTO_PUBLISH"] = "false"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models import ActivitySession, GameScore, LectureView, Region, User
from utils.security import create_access_token, get_password_hash

PASSWORD = "secret123"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def region(db):
    region = Region(name="North", code="NORTH", description="Northern schools")
    db.add(region)
    db.commit()
    db.refresh(region)
    return region


@pytest.fixture
def make_region(db):
    def _make(name, code, is_active=True):
        region = Region(name=name, code=code, is_active=is_active)
        db.add(region)
        db.commit()
        db.refresh(region)
        return region
    return _make


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=User.ROLE_STUDENT, region=None, name=None, **fields):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=f"{role}{counter['n']}@example.com",
            password_hash=get_password_hash(PASSWORD),
            role=role,
            region_id=region.id if region is not None else None,
            # Distinct registration times keep the candidate order predictable
            created_at=datetime.utcnow() - timedelta(days=30) + timedelta(seconds=counter["n"]),
            **fields
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(User.ROLE_ADMIN, name="Admin")


@pytest.fixture
def teacher(make_user, region):
    return make_user(User.ROLE_TEACHER, region=region, name="Teacher")


@pytest.fixture
def student(make_user, region):
    return make_user(User.ROLE_STUDENT, region=region, name="Student")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def record_activity(db):
    """Insert game scores and completed sessions for a student directly."""
    def _record(student, scores=(), sessions=0, lectures=0, game_type="grammar", at=None, session_type="chat"):
        moment = at or datetime.utcnow() - timedelta(hours=1)
        for score in scores:
            db.add(GameScore(user_id=student.id, game_type=game_type, score=score, played_at=moment))
        for _ in range(sessions):
            db.add(ActivitySession(
                session_type=session_type,
                game_type=game_type if session_type == "game" else None,
                status="completed",
                started_at=moment,
                ended_at=moment + timedelta(minutes=10),
                duration=600,
                participants=[student],
            ))
        for index in range(lectures):
            db.add(LectureView(user_id=student.id, lecture_id=f"lecture-{index}", watched_at=moment))
        db.commit()
    return _record


@pytest.fixture
def scenario(make_user, region, record_activity):
    """Four students: S1 90%/10 sessions, S2 90%/15, S3 70%/5, S4 40%/2."""
    students = {}
    for label, score, sessions in (("S1", 90, 10), ("S2", 90, 15), ("S3", 70, 5), ("S4", 40, 2)):
        students[label] = make_user(User.ROLE_STUDENT, region=region, name=label)
        record_activity(students[label], scores=[score], sessions=sessions)
    return students


@pytest.fixture
def current_period():
    now = datetime.utcnow()
    return now - timedelta(days=7), now + timedelta(days=7)
