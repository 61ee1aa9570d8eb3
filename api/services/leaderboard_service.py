"""
Service for computing, materializing and querying regional leaderboards.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, and_, case
import logging
import uuid

from config import settings
from models import (
    ActivitySession,
    GameScore,
    Leaderboard,
    LeaderboardEntry,
    LectureView,
    Region,
    User,
    session_participants,
)
from schemas import GameType
from services.exceptions import ConflictError, InvalidInputError, NotFoundError
from services.scoring_service import ScoringService, StudentActivity, StudentScore

logger = logging.getLogger(__name__)

GAME_TYPES = tuple(game.value for game in GameType)


@dataclass(frozen=True)
class LeaderboardScope:
    """
    What a leaderboard ranks over: Overall, Weekly, Monthly or GameSpecific(game_type).

    A game type is carried by, and only by, the game-specific scope.
    """
    leaderboard_type: str
    game_type: Optional[str] = None

    def __post_init__(self):
        if self.leaderboard_type not in Leaderboard.TYPES:
            raise InvalidInputError(
                f"Invalid leaderboard type. Must be one of: {', '.join(Leaderboard.TYPES)}"
            )
        if self.is_game_specific:
            if self.game_type not in GAME_TYPES:
                raise InvalidInputError(
                    f"Game-specific leaderboards need a game type: {', '.join(GAME_TYPES)}"
                )
        elif self.game_type is not None:
            raise InvalidInputError("Game type is only allowed for game_specific leaderboards")

    @classmethod
    def overall(cls) -> "LeaderboardScope":
        return cls(Leaderboard.TYPE_OVERALL)

    @classmethod
    def weekly(cls) -> "LeaderboardScope":
        return cls(Leaderboard.TYPE_WEEKLY)

    @classmethod
    def monthly(cls) -> "LeaderboardScope":
        return cls(Leaderboard.TYPE_MONTHLY)

    @classmethod
    def game_specific(cls, game_type: str) -> "LeaderboardScope":
        return cls(Leaderboard.TYPE_GAME_SPECIFIC, game_type)

    @classmethod
    def of(cls, leaderboard: Leaderboard) -> "LeaderboardScope":
        return cls(leaderboard.leaderboard_type, leaderboard.game_type or None)

    @property
    def is_game_specific(self) -> bool:
        return self.leaderboard_type == Leaderboard.TYPE_GAME_SPECIFIC

    @property
    def storage_game_type(self) -> str:
        return self.game_type or ""


class LeaderboardService:
    """Service for leaderboard snapshots and live rankings."""

    @staticmethod
    def get_period_bounds(leaderboard_type: str, reference_date: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """
        Get the calendar-aligned period containing a reference date.

        Args:
            leaderboard_type: 'weekly' or 'monthly'
            reference_date: Date to calculate period from (defaults to now)

        Returns:
            Tuple of (period_start, period_end), both inclusive
        """
        if reference_date is None:
            reference_date = datetime.utcnow()

        day_start = reference_date.replace(hour=0, minute=0, second=0, microsecond=0)

        if leaderboard_type == Leaderboard.TYPE_WEEKLY:
            # Weeks start on Sunday (weekday() is 0 for Monday, 6 for Sunday)
            period_start = day_start - timedelta(days=(reference_date.weekday() + 1) % 7)
            next_start = period_start + timedelta(days=7)

        elif leaderboard_type == Leaderboard.TYPE_MONTHLY:
            period_start = day_start.replace(day=1)
            if period_start.month == 12:
                next_start = period_start.replace(year=period_start.year + 1, month=1)
            else:
                next_start = period_start.replace(month=period_start.month + 1)

        else:
            raise InvalidInputError(f"No calendar period for leaderboard type: {leaderboard_type}")

        return period_start, next_start - timedelta(microseconds=1)

    @staticmethod
    def get_active_region(db: Session, region_id: uuid.UUID) -> Region:
        region = db.query(Region).filter(Region.id == region_id).first()
        if region is None or not region.is_active:
            raise NotFoundError("Region not found")
        return region

    @staticmethod
    def get_candidates(db: Session, region_id: uuid.UUID) -> List[User]:
        """Active students of a region in a stable order."""
        return db.query(User).filter(
            and_(
                User.region_id == region_id,
                User.role == User.ROLE_STUDENT,
                User.is_active.is_(True)
            )
        ).order_by(User.created_at.asc(), User.id.asc()).all()

    @staticmethod
    def gather_activity(
        db: Session,
        students: List[User],
        scope: LeaderboardScope,
        period_start: datetime,
        period_end: datetime
    ) -> List[StudentActivity]:
        """
        Collect the ranking signals of every student inside the period.

        One grouped query per signal covers all students. Nothing is mutated.

        Args:
            db: Database session
            students: Candidates, in ranking input order
            scope: Leaderboard scope (game-specific scopes only see that game's scores and sessions)
            period_start: Inclusive start
            period_end: Inclusive end

        Returns:
            StudentActivity per student, same order as students
        """
        if not students:
            return []

        student_ids = [student.id for student in students]

        # Game score ledger
        score_query = db.query(
            GameScore.user_id,
            func.coalesce(func.sum(GameScore.score), 0.0),
            func.count(GameScore.id)
        ).filter(
            GameScore.user_id.in_(student_ids),
            GameScore.played_at >= period_start,
            GameScore.played_at <= period_end
        )
        if scope.is_game_specific:
            score_query = score_query.filter(GameScore.game_type == scope.game_type)
        game_scores = {
            user_id: (float(total), int(count))
            for user_id, total, count in score_query.group_by(GameScore.user_id).all()
        }

        # Completed sessions, only those of the scoped game for game-specific scopes
        is_game = ActivitySession.session_type == "game"
        has_duration = ActivitySession.duration > 0

        session_query = db.query(
            session_participants.c.user_id,
            func.count(ActivitySession.id),
            func.coalesce(func.sum(case((is_game, 1), else_=0)), 0),
            func.coalesce(func.sum(case((has_duration, ActivitySession.duration), else_=0)), 0),
            func.coalesce(func.sum(case((has_duration, 1), else_=0)), 0)
        ).select_from(ActivitySession).join(
            session_participants, session_participants.c.session_id == ActivitySession.id
        ).filter(
            session_participants.c.user_id.in_(student_ids),
            ActivitySession.status == "completed",
            ActivitySession.started_at >= period_start,
            ActivitySession.started_at <= period_end
        )
        if scope.is_game_specific:
            session_query = session_query.filter(is_game, ActivitySession.game_type == scope.game_type)
        session_rows = session_query.group_by(session_participants.c.user_id).all()
        sessions = {row[0]: tuple(int(value) for value in row[1:]) for row in session_rows}

        # Lecture views
        lecture_rows = db.query(
            LectureView.user_id,
            func.count(LectureView.id)
        ).filter(
            LectureView.user_id.in_(student_ids),
            LectureView.watched_at >= period_start,
            LectureView.watched_at <= period_end
        ).group_by(LectureView.user_id).all()
        lectures = {user_id: int(count) for user_id, count in lecture_rows}

        activities = []
        for student in students:
            score, games_scored = game_scores.get(student.id, (0.0, 0))
            total_sessions, total_games, total_duration, timed_sessions = sessions.get(student.id, (0, 0, 0, 0))
            activities.append(StudentActivity(
                student_id=student.id,
                score=score,
                games_scored=games_scored,
                total_sessions=total_sessions,
                total_games=total_games,
                total_lectures=lectures.get(student.id, 0),
                total_duration=total_duration,
                timed_sessions=timed_sessions,
                last_active=student.last_active,
            ))
        return activities

    @staticmethod
    def rank_region(
        db: Session,
        region_id: uuid.UUID,
        scope: LeaderboardScope,
        period_start: datetime,
        period_end: datetime
    ) -> Tuple[Dict[uuid.UUID, User], List[StudentScore]]:
        """
        Score and rank every eligible student of a region.

        Returns:
            Tuple of (students by id, full ranking with ranks 1..N)
        """
        students = LeaderboardService.get_candidates(db, region_id)
        activities = LeaderboardService.gather_activity(db, students, scope, period_start, period_end)
        scores = [ScoringService.score_student(activity) for activity in activities]
        return {student.id: student for student in students}, ScoringService.rank_students(scores)

    @staticmethod
    def refresh_leaderboard(db: Session, leaderboard: Leaderboard) -> Leaderboard:
        """
        Recompute a leaderboard and replace its entries and aggregates in one transaction.

        A failed recomputation rolls back and leaves the previous snapshot in place.
        Concurrent recomputations of the same leaderboard are last-write-wins.

        Args:
            db: Database session
            leaderboard: Leaderboard to recompute

        Returns:
            The refreshed leaderboard
        """
        try:
            _, ranking = LeaderboardService.rank_region(
                db,
                leaderboard.region_id,
                LeaderboardScope.of(leaderboard),
                leaderboard.period_start,
                leaderboard.period_end
            )
            summary = ScoringService.summarize(ranking)

            # Old rows go first so new ranks never collide with the unique (leaderboard, rank) index
            leaderboard.entries.clear()
            db.flush()

            leaderboard.entries = [
                LeaderboardEntry(
                    rank=student_score.rank,
                    student_id=student_score.student_id,
                    score=student_score.score,
                    max_score=student_score.max_score,
                    percentage=student_score.percentage,
                    total_sessions=student_score.total_sessions,
                    total_games=student_score.total_games,
                    total_lectures=student_score.total_lectures,
                    average_session_duration=student_score.average_session_duration,
                    last_active=student_score.last_active,
                )
                for student_score in ranking[:settings.LEADERBOARD_TOP_N]
            ]
            leaderboard.total_participants = summary["total_participants"]
            leaderboard.average_score = summary["average_score"]
            leaderboard.total_sessions = summary["total_sessions"]
            leaderboard.total_games = summary["total_games"]
            leaderboard.last_updated = datetime.utcnow()

            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Failed to refresh leaderboard {leaderboard.id}")
            raise

        db.refresh(leaderboard)

        logger.info(
            f"Refreshed leaderboard {leaderboard.id} (region={leaderboard.region_id}, "
            f"type={leaderboard.leaderboard_type}, game_type={leaderboard.game_type or None}, "
            f"period={leaderboard.period_start.isoformat()}..{leaderboard.period_end.isoformat()}): "
            f"participants={leaderboard.total_participants}, average={leaderboard.average_score}"
        )

        return leaderboard

    @staticmethod
    def find_leaderboard(
        db: Session,
        region_id: uuid.UUID,
        scope: LeaderboardScope,
        period_start: datetime
    ) -> Optional[Leaderboard]:
        return db.query(Leaderboard).filter(
            and_(
                Leaderboard.region_id == region_id,
                Leaderboard.leaderboard_type == scope.leaderboard_type,
                Leaderboard.game_type == scope.storage_game_type,
                Leaderboard.period_start == period_start
            )
        ).first()

    @staticmethod
    def create_or_refresh(
        db: Session,
        region_id: uuid.UUID,
        scope: LeaderboardScope,
        period_start: datetime,
        period_end: datetime,
        publish: Optional[bool] = None
    ) -> Leaderboard:
        """
        Find or create the leaderboard for (region, scope, period start), then recompute it.

        Re-invoking for the same key updates the existing leaderboard instead of duplicating it.

        Args:
            db: Database session
            region_id: Region UUID (must be active)
            scope: Leaderboard scope
            period_start: Inclusive start
            period_end: Inclusive end
            publish: Set the published flag when not None

        Returns:
            The refreshed leaderboard
        """
        if period_start > period_end:
            raise InvalidInputError("Period start date must not be after end date")

        LeaderboardService.get_active_region(db, region_id)

        leaderboard = LeaderboardService.find_leaderboard(db, region_id, scope, period_start)

        if leaderboard is None:
            leaderboard = Leaderboard(
                region_id=region_id,
                leaderboard_type=scope.leaderboard_type,
                game_type=scope.storage_game_type,
                period_start=period_start,
                period_end=period_end,
            )
            db.add(leaderboard)
            try:
                db.flush()
            except IntegrityError:
                # Another request created the same leaderboard first
                db.rollback()
                logger.info(
                    f"Leaderboard for region {region_id}, {scope.leaderboard_type}, "
                    f"starting {period_start} was created concurrently; reusing it"
                )
                leaderboard = LeaderboardService.find_leaderboard(db, region_id, scope, period_start)
                if leaderboard is None:
                    raise ConflictError("Leaderboard already exists for this region and period")
                leaderboard.period_end = period_end
        else:
            leaderboard.period_end = period_end

        if publish is not None:
            leaderboard.is_published = publish

        return LeaderboardService.refresh_leaderboard(db, leaderboard)

    @staticmethod
    def create_weekly(
        db: Session,
        region_id: uuid.UUID,
        reference_date: Optional[datetime] = None,
        publish: Optional[bool] = None
    ) -> Leaderboard:
        """Create or refresh the Sunday-to-Saturday leaderboard containing the reference date."""
        period_start, period_end = LeaderboardService.get_period_bounds(Leaderboard.TYPE_WEEKLY, reference_date)
        return LeaderboardService.create_or_refresh(
            db, region_id, LeaderboardScope.weekly(), period_start, period_end, publish
        )

    @staticmethod
    def create_monthly(
        db: Session,
        region_id: uuid.UUID,
        reference_date: Optional[datetime] = None,
        publish: Optional[bool] = None
    ) -> Leaderboard:
        """Create or refresh the calendar-month leaderboard containing the reference date."""
        period_start, period_end = LeaderboardService.get_period_bounds(Leaderboard.TYPE_MONTHLY, reference_date)
        return LeaderboardService.create_or_refresh(
            db, region_id, LeaderboardScope.monthly(), period_start, period_end, publish
        )

    @staticmethod
    def get_leaderboard(db: Session, leaderboard_id: uuid.UUID) -> Leaderboard:
        leaderboard = db.query(Leaderboard).filter(Leaderboard.id == leaderboard_id).first()
        if leaderboard is None:
            raise NotFoundError("Leaderboard not found")
        return leaderboard

    @staticmethod
    def recalculate(db: Session, leaderboard_id: uuid.UUID) -> Leaderboard:
        leaderboard = LeaderboardService.get_leaderboard(db, leaderboard_id)
        return LeaderboardService.refresh_leaderboard(db, leaderboard)

    @staticmethod
    def set_published(db: Session, leaderboard_id: uuid.UUID, published: bool) -> Leaderboard:
        """Publish or unpublish a leaderboard."""
        leaderboard = LeaderboardService.get_leaderboard(db, leaderboard_id)
        if published:
            leaderboard.publish()
        else:
            leaderboard.unpublish()
        db.commit()
        db.refresh(leaderboard)

        logger.info(f"Leaderboard {leaderboard.id} {'published' if published else 'unpublished'}")

        return leaderboard

    @staticmethod
    def get_current_leaderboard(
        db: Session,
        region_id: uuid.UUID,
        scope: Optional[LeaderboardScope] = None,
        now: Optional[datetime] = None
    ) -> Optional[Leaderboard]:
        """
        Get the published leaderboard whose period contains now.

        Unpublished and out-of-period snapshots are never returned.
        """
        if scope is None:
            scope = LeaderboardScope.overall()
        if now is None:
            now = datetime.utcnow()

        return db.query(Leaderboard).filter(
            and_(
                Leaderboard.region_id == region_id,
                Leaderboard.leaderboard_type == scope.leaderboard_type,
                Leaderboard.game_type == scope.storage_game_type,
                Leaderboard.is_active.is_(True),
                Leaderboard.is_published.is_(True),
                Leaderboard.period_start <= now,
                Leaderboard.period_end >= now
            )
        ).order_by(Leaderboard.last_updated.desc()).first()

    @staticmethod
    def get_history(
        db: Session,
        region_id: uuid.UUID,
        scope: Optional[LeaderboardScope] = None,
        limit: int = 10
    ) -> List[Leaderboard]:
        """Published leaderboards of a region, most recent period first."""
        if scope is None:
            scope = LeaderboardScope.overall()

        return db.query(Leaderboard).filter(
            and_(
                Leaderboard.region_id == region_id,
                Leaderboard.leaderboard_type == scope.leaderboard_type,
                Leaderboard.game_type == scope.storage_game_type,
                Leaderboard.is_published.is_(True)
            )
        ).order_by(Leaderboard.period_end.desc()).limit(limit).all()

    @staticmethod
    def full_ranking(db: Session, leaderboard: Leaderboard) -> List[Tuple[User, StudentScore]]:
        """
        Live ranking of every eligible student under a leaderboard's scope and period.

        Uses the same scoring and ordering as the snapshot, so its first entries
        match the snapshot as long as no activity happened since the last refresh.
        """
        students, ranking = LeaderboardService.rank_region(
            db,
            leaderboard.region_id,
            LeaderboardScope.of(leaderboard),
            leaderboard.period_start,
            leaderboard.period_end
        )
        return [(students[student_score.student_id], student_score) for student_score in ranking]
