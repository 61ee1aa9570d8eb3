"""
Activity service - the student activity feed and the live composite ranking built on it.

Activity flows (sessions, game scores, lecture views, admin corrections) are the
only writers of a student's cumulative counters. Rankings only read them.
"""
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from sqlalchemy.orm import Session
import logging
import uuid

from models import ActivitySession, GameScore, LectureView, Region, User
from services.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from services.leaderboard_service import LeaderboardService
from services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

# activityType -> User counter column
ACTIVITY_COUNTERS = {
    "lectures": "total_lectures_watched",
    "games": "total_games_played",
    "communication": "total_communication_sessions",
}

COMMUNICATION_SESSION_TYPES = (
    "video_call",
    "voice_call",
    "group_video_call",
    "group_voice_call",
    "chat",
    "group_chat",
)


class ActivityService:
    """Service for recording activity and ranking students by it."""

    @staticmethod
    def get_user_statistics(user: User) -> Dict[str, Any]:
        """Live activity counters of a student and their composite score."""
        lectures_watched = user.total_lectures_watched or 0
        game_sessions = user.total_games_played or 0
        communication_sessions = user.total_communication_sessions or 0

        return {
            "lectures_watched": lectures_watched,
            "game_sessions": game_sessions,
            "communication_sessions": communication_sessions,
            "total_score": ScoringService.composite_score(
                lectures_watched, game_sessions, communication_sessions
            ),
        }

    @staticmethod
    def rank_region_students(db: Session, region_id: uuid.UUID) -> List[Dict[str, Any]]:
        """
        Rank every active student of a region by composite score (highest first).

        Students with equal scores keep their registration order.
        """
        students = LeaderboardService.get_candidates(db, region_id)
        entries = [
            {"student": student, "statistics": ActivityService.get_user_statistics(student)}
            for student in students
        ]
        entries.sort(key=lambda entry: -entry["statistics"]["total_score"])
        for position, entry in enumerate(entries, start=1):
            entry["rank"] = position
        return entries

    @staticmethod
    def get_student_rank(db: Session, user: User) -> Dict[str, Any]:
        """
        Compute a student's live rank within their region.

        Does not need a published leaderboard: the rank comes straight from
        the current activity counters of every student in the region.

        Raises:
            InvalidInputError: If the user is not a student or has no region
            NotFoundError: If the region is missing or the student is not ranked
        """
        if not user.is_student:
            raise InvalidInputError("Only students can have leaderboard ranks")
        if user.region_id is None:
            raise InvalidInputError("User is not assigned to any region")

        region = db.query(Region).filter(Region.id == user.region_id).first()
        if region is None:
            raise NotFoundError("Region not found")

        ranking = ActivityService.rank_region_students(db, region.id)
        entry = next((item for item in ranking if item["student"].id == user.id), None)
        if entry is None:
            raise NotFoundError("User rank not found")

        return {
            "rank": entry["rank"],
            "total_score": entry["statistics"]["total_score"],
            "statistics": entry["statistics"],
            "student": user,
            "region": region,
            "total_students": len(ranking),
        }

    @staticmethod
    def region_statistics(db: Session) -> Dict[str, Any]:
        """Composite-score statistics for every active region plus overall totals."""
        regions = db.query(Region).filter(Region.is_active.is_(True)).order_by(Region.name.asc()).all()

        region_stats = []
        for region in regions:
            students = LeaderboardService.get_candidates(db, region.id)
            count = len(students)

            if count == 0:
                region_stats.append({
                    "region": region,
                    "total_students": 0,
                    "average_score": 0.0,
                    "top_score": 0.0,
                    "statistics": {
                        "average_lectures": 0.0,
                        "average_games": 0.0,
                        "average_communication": 0.0,
                    },
                })
                continue

            stats = [ActivityService.get_user_statistics(student) for student in students]
            region_stats.append({
                "region": region,
                "total_students": count,
                "average_score": ScoringService.round_half_up(sum(s["total_score"] for s in stats) / count, 2),
                "top_score": max(s["total_score"] for s in stats),
                "statistics": {
                    "average_lectures": ScoringService.round_half_up(
                        sum(s["lectures_watched"] for s in stats) / count, 2
                    ),
                    "average_games": ScoringService.round_half_up(
                        sum(s["game_sessions"] for s in stats) / count, 2
                    ),
                    "average_communication": ScoringService.round_half_up(
                        sum(s["communication_sessions"] for s in stats) / count, 2
                    ),
                },
            })

        total_students = sum(item["total_students"] for item in region_stats)
        overall_average = 0.0
        if total_students > 0:
            overall_average = ScoringService.round_half_up(
                sum(item["average_score"] * item["total_students"] for item in region_stats) / total_students,
                2
            )

        return {
            "overall": {
                "total_regions": len(regions),
                "total_students": total_students,
                "average_score": overall_average,
            },
            "region_statistics": region_stats,
        }

    @staticmethod
    def update_activity(db: Session, user_id: uuid.UUID, activity_type: str, increment: int = 1) -> Dict[str, Any]:
        """
        Adjust one of a student's activity counters (never below zero).

        Returns:
            Updated live statistics
        """
        counter = ACTIVITY_COUNTERS.get(activity_type)
        if counter is None:
            raise InvalidInputError("Invalid activity type. Must be: lectures, games, or communication")

        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_student:
            raise InvalidInputError("Activity tracking is only for students")

        setattr(user, counter, max(0, (getattr(user, counter) or 0) + increment))
        db.commit()
        db.refresh(user)

        logger.info(f"Updated {counter} for user {user.id} by {increment} (now {getattr(user, counter)})")

        return ActivityService.get_user_statistics(user)

    @staticmethod
    def create_session(
        db: Session,
        creator: User,
        session_type: str,
        game_type: Optional[str] = None,
        participant_ids: Optional[List[uuid.UUID]] = None,
        started_at: Optional[datetime] = None
    ) -> ActivitySession:
        """Start a session with the creator and the given users as participants."""
        wanted_ids = {creator.id, *(participant_ids or [])}
        participants = db.query(User).filter(User.id.in_(wanted_ids), User.is_active.is_(True)).all()
        if len(participants) != len(wanted_ids):
            raise NotFoundError("One or more participants not found")

        session = ActivitySession(
            session_type=session_type,
            game_type=game_type,
            status="active",
            started_at=started_at or datetime.utcnow(),
            created_by=creator.id,
            participants=participants,
        )
        db.add(session)
        db.commit()
        db.refresh(session)

        logger.info(f"Session {session.id} ({session_type}) started by {creator.id} with {len(participants)} participants")

        return session

    @staticmethod
    def complete_session(
        db: Session,
        session_id: uuid.UUID,
        actor: User,
        ended_at: Optional[datetime] = None
    ) -> ActivitySession:
        """
        Complete a session and credit every student participant.

        Game sessions increment games played, call and chat sessions increment
        communication sessions.
        """
        session = db.query(ActivitySession).filter(ActivitySession.id == session_id).first()
        if session is None:
            raise NotFoundError("Session not found")
        if not actor.is_admin and actor.id not in session.participant_ids:
            raise PermissionDeniedError("Only participants can complete this session")
        if session.status in ("completed", "cancelled"):
            raise ConflictError(f"Session is already {session.status}")

        ended_at = ended_at or datetime.utcnow()
        if ended_at < session.started_at:
            raise InvalidInputError("Session cannot end before it started")

        session.status = "completed"
        session.ended_at = ended_at
        session.duration = int((ended_at - session.started_at).total_seconds())

        if session.session_type == "game":
            counter = "total_games_played"
        elif session.session_type in COMMUNICATION_SESSION_TYPES:
            counter = "total_communication_sessions"
        else:
            counter = None

        for participant in session.participants:
            if not participant.is_student:
                continue
            if counter:
                setattr(participant, counter, (getattr(participant, counter) or 0) + 1)
            participant.touch()

        db.commit()
        db.refresh(session)

        logger.info(f"Session {session.id} completed after {session.duration}s")

        return session

    @staticmethod
    def list_sessions(db: Session, user: User, page: int, page_size: int) -> Tuple[List[ActivitySession], int]:
        """Sessions a user took part in, newest first."""
        query = db.query(ActivitySession).filter(ActivitySession.participants.any(User.id == user.id))
        total = query.count()
        sessions = (
            query.order_by(ActivitySession.started_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return sessions, total

    @staticmethod
    def record_game_score(
        db: Session,
        user: User,
        game_type: str,
        score: float,
        session_id: Optional[uuid.UUID] = None
    ) -> GameScore:
        """
        Append a score to the student's game ledger.

        Scores tied to a session are counted as games played when that session completes.
        Cancelled sessions take no scores.
        """
        if not user.is_student:
            raise InvalidInputError("Only students can submit game scores")

        if session_id is not None:
            session = db.query(ActivitySession).filter(ActivitySession.id == session_id).first()
            if session is None:
                raise NotFoundError("Session not found")
            if session.session_type != "game" or session.game_type != game_type:
                raise InvalidInputError("Session is not a session of this game")
            if session.status == "cancelled":
                raise ConflictError("Cannot add scores to a cancelled session")
            if user.id not in session.participant_ids:
                raise PermissionDeniedError("You did not take part in this session")
        else:
            user.total_games_played = (user.total_games_played or 0) + 1

        game_score = GameScore(user_id=user.id, game_type=game_type, score=score, session_id=session_id)
        user.touch()
        db.add(game_score)
        db.commit()
        db.refresh(game_score)

        logger.info(f"Recorded {game_type} score {score} for user {user.id}")

        return game_score

    @staticmethod
    def record_lecture_view(db: Session, user: User, lecture_id: str) -> LectureView:
        if not user.is_student:
            raise InvalidInputError("Only students can record lecture views")

        view = LectureView(user_id=user.id, lecture_id=lecture_id)
        user.total_lectures_watched = (user.total_lectures_watched or 0) + 1
        user.touch()
        db.add(view)
        db.commit()
        db.refresh(view)
        db.refresh(user)

        return view
