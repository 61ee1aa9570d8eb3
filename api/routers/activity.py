"""
Activity endpoints - sessions, game scores and lecture views that feed the leaderboards.
"""
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models import User
from schemas import (
    APIResponse,
    SessionCreate,
    SessionComplete,
    SessionResponse,
    SessionListResponse,
    GameScoreCreate,
    GameScoreResponse,
    LectureViewResponse,
)
from services.activity_service import ActivityService
from utils.dependencies import get_current_user, parse_uuid

router = APIRouter()


@router.post("/sessions", response_model=APIResponse[SessionResponse], status_code=status.HTTP_201_CREATED)
async def create_session(
    session_data: SessionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Start a game, call or chat session.

    - The caller is always a participant
    - Game sessions need a game type
    """
    session = ActivityService.create_session(
        db,
        creator=current_user,
        session_type=session_data.session_type.value,
        game_type=session_data.game_type.value if session_data.game_type else None,
        participant_ids=session_data.participant_ids,
        started_at=session_data.started_at,
    )
    return APIResponse(message="Session started", data=SessionResponse.model_validate(session))


@router.post("/sessions/{session_id}/complete", response_model=APIResponse[SessionResponse])
async def complete_session(
    session_id: str,
    body: Optional[SessionComplete] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Complete a session.

    - Participants or admins only
    - Records duration and credits student participants' activity counters
    """
    session = ActivityService.complete_session(
        db,
        parse_uuid(session_id, "session"),
        actor=current_user,
        ended_at=body.ended_at if body else None,
    )
    return APIResponse(message="Session completed", data=SessionResponse.model_validate(session))


@router.get("/sessions", response_model=APIResponse[SessionListResponse])
async def list_sessions(
    page: int = 1,
    page_size: int = 20,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List sessions the current user took part in.

    - Supports pagination
    - Returns sessions sorted by start time (newest first)
    """
    if page < 1:
        page = 1
    if page_size < 1 or page_size > 100:
        page_size = 20

    sessions, total = ActivityService.list_sessions(db, current_user, page, page_size)

    return APIResponse(
        message="Sessions retrieved successfully",
        data=SessionListResponse(
            sessions=[SessionResponse.model_validate(session) for session in sessions],
            total=total,
            page=page,
            page_size=page_size
        )
    )


@router.post("/games/score", response_model=APIResponse[GameScoreResponse], status_code=status.HTTP_201_CREATED)
async def submit_game_score(
    score_data: GameScoreCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record a game result (0-100 points) in the student's score ledger."""
    game_score = ActivityService.record_game_score(
        db,
        current_user,
        game_type=score_data.game_type.value,
        score=score_data.score,
        session_id=score_data.session_id,
    )
    return APIResponse(message="Game score recorded", data=GameScoreResponse.model_validate(game_score))


@router.post(
    "/lectures/{lecture_id}/view",
    response_model=APIResponse[LectureViewResponse],
    status_code=status.HTTP_201_CREATED
)
async def record_lecture_view(
    lecture_id: str = Path(..., min_length=1, max_length=64),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record that the student watched a lecture."""
    view = ActivityService.record_lecture_view(db, current_user, lecture_id)
    return APIResponse(
        message="Lecture view recorded",
        data=LectureViewResponse(
            id=view.id,
            lecture_id=view.lecture_id,
            watched_at=view.watched_at,
            total_lectures_watched=current_user.total_lectures_watched,
        )
    )
