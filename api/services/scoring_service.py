"""
Service for calculating student scores and leaderboard ordering.

Two scores exist side by side:

- The snapshot score used by materialized leaderboards: the raw points of the
  game score ledger, expressed as a percentage of the maximum reachable points
  (100 per scored game). Students are ordered by percentage, ties broken by
  number of completed sessions.
- The live composite score used by rank lookups and regional statistics:
  an equal-weight sum of lectures watched, games played and communication
  sessions.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence
import uuid

from config import settings


@dataclass(frozen=True)
class StudentActivity:
    """Raw activity signals of one student inside a ranking period."""
    student_id: uuid.UUID
    score: float = 0.0
    games_scored: int = 0
    total_sessions: int = 0
    total_games: int = 0
    total_lectures: int = 0
    total_duration: int = 0  # seconds, sessions with a positive duration only
    timed_sessions: int = 0
    last_active: Optional[datetime] = None


@dataclass(frozen=True)
class StudentScore:
    """Scored and (once ranked) positioned student."""
    student_id: uuid.UUID
    score: float
    max_score: float
    percentage: int
    total_sessions: int
    total_games: int
    total_lectures: int
    average_session_duration: int  # minutes
    last_active: Optional[datetime] = None
    rank: int = 0


class ScoringService:
    """Service for calculating student scores."""

    COMPOSITE_WEIGHTS = {
        "lectures": Decimal("0.3333"),
        "games": Decimal("0.3333"),
        "communication": Decimal("0.3334"),
    }

    @staticmethod
    def round_half_up(value: float, digits: int = 0):
        """
        Round halves away from zero (2.5 -> 3), unlike the builtin round().

        Returns an int when digits is 0, otherwise a float.
        """
        exponent = Decimal(1).scaleb(-digits)
        rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
        return int(rounded) if digits == 0 else float(rounded)

    @staticmethod
    def calculate_percentage(score: float, max_score: float) -> int:
        if max_score <= 0:
            return 0
        return ScoringService.round_half_up(score / max_score * 100)

    @staticmethod
    def average_session_minutes(total_duration: int, timed_sessions: int) -> int:
        if timed_sessions <= 0:
            return 0
        return ScoringService.round_half_up(total_duration / timed_sessions / 60)

    @staticmethod
    def score_student(activity: StudentActivity, max_game_score: Optional[int] = None) -> StudentScore:
        """
        Turn raw activity signals into a scored entry.

        Args:
            activity: Signals gathered for the student
            max_game_score: Points reachable per scored game (defaults to settings)

        Returns:
            Unranked StudentScore
        """
        if max_game_score is None:
            max_game_score = settings.MAX_GAME_SCORE

        max_score = float(activity.games_scored * max_game_score)
        return StudentScore(
            student_id=activity.student_id,
            score=float(activity.score),
            max_score=max_score,
            percentage=ScoringService.calculate_percentage(activity.score, max_score),
            total_sessions=activity.total_sessions,
            total_games=activity.total_games,
            total_lectures=activity.total_lectures,
            average_session_duration=ScoringService.average_session_minutes(
                activity.total_duration, activity.timed_sessions
            ),
            last_active=activity.last_active,
        )

    @staticmethod
    def rank_students(scores: Sequence[StudentScore]) -> List[StudentScore]:
        """
        Order students by percentage, then by completed sessions, and number them 1..N.

        The sort is stable: students equal on both keys keep their input order.
        """
        ordered = sorted(scores, key=lambda s: (-s.percentage, -s.total_sessions))
        return [replace(score, rank=position) for position, score in enumerate(ordered, start=1)]

    @staticmethod
    def summarize(scores: Sequence[StudentScore]) -> Dict[str, int]:
        """Aggregate statistics over every candidate (not only the top entries)."""
        if not scores:
            return {
                "total_participants": 0,
                "average_score": 0,
                "total_sessions": 0,
                "total_games": 0,
            }

        return {
            "total_participants": len(scores),
            "average_score": ScoringService.round_half_up(
                sum(s.percentage for s in scores) / len(scores)
            ),
            "total_sessions": sum(s.total_sessions for s in scores),
            "total_games": sum(s.total_games for s in scores),
        }

    @staticmethod
    def composite_score(lectures_watched: int, game_sessions: int, communication_sessions: int) -> float:
        """Equal-weight composite of the three activity counters, two decimals."""
        weights = ScoringService.COMPOSITE_WEIGHTS
        total = (
            Decimal(lectures_watched) * weights["lectures"]
            + Decimal(game_sessions) * weights["games"]
            + Decimal(communication_sessions) * weights["communication"]
        )
        return float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

    @staticmethod
    def scoring_method() -> Dict[str, Any]:
        """Human-readable description of the composite score."""
        return {
            "description": "Equal weightage scoring",
            "components": {
                "lecturesWatched": "33.33%",
                "gameSessions": "33.33%",
                "communicationSessions": "33.34%",
            },
            "formula": "Score = (lectures * 0.3333) + (games * 0.3333) + (communication * 0.3334)",
        }
