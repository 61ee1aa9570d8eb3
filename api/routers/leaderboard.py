"""
Leaderboard endpoints - regional snapshots, live rankings and admin management.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging
import math

from config import settings
from database import get_db
from models import Leaderboard, LeaderboardEntry, Region, User
from schemas import (
    APIResponse,
    Pagination,
    GameType,
    LeaderboardType,
    LeaderboardCreate,
    Period,
    RegionSummary,
    StudentSummary,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    Top3Data,
    FullLeaderboardData,
    LeaderboardHistoryData,
    RegionTop3,
    AllRegionsTop3Data,
    ActivityStatistics,
    MyRankData,
    StatisticsData,
    UpdateActivityRequest,
    UpdateActivityData,
)
from services.activity_service import ActivityService
from services.leaderboard_service import LeaderboardService, LeaderboardScope
from services.scoring_service import ScoringService, StudentScore
from utils.dependencies import get_current_user, require_admin, parse_uuid

router = APIRouter()
logger = logging.getLogger(__name__)


def _scope(leaderboard_type: LeaderboardType, game_type: Optional[GameType]) -> LeaderboardScope:
    return LeaderboardScope(leaderboard_type.value, game_type.value if game_type else None)


def _entry_response(entry: LeaderboardEntry) -> LeaderboardEntryResponse:
    return LeaderboardEntryResponse(
        rank=entry.rank,
        student=StudentSummary.model_validate(entry.student),
        score=entry.score,
        max_score=entry.max_score,
        percentage=entry.percentage,
        total_sessions=entry.total_sessions,
        total_games=entry.total_games,
        total_lectures=entry.total_lectures,
        average_session_duration=entry.average_session_duration,
        last_active=entry.last_active,
    )


def _ranked_response(student: User, student_score: StudentScore) -> LeaderboardEntryResponse:
    return LeaderboardEntryResponse(
        rank=student_score.rank,
        student=StudentSummary.model_validate(student),
        score=student_score.score,
        max_score=student_score.max_score,
        percentage=student_score.percentage,
        total_sessions=student_score.total_sessions,
        total_games=student_score.total_games,
        total_lectures=student_score.total_lectures,
        average_session_duration=student_score.average_session_duration,
        last_active=student_score.last_active,
    )


def _leaderboard_response(leaderboard: Leaderboard) -> LeaderboardResponse:
    return LeaderboardResponse(
        id=leaderboard.id,
        region=RegionSummary.model_validate(leaderboard.region),
        leaderboard_type=leaderboard.leaderboard_type,
        game_type=leaderboard.game_type or None,
        period=Period(start_date=leaderboard.period_start, end_date=leaderboard.period_end),
        top_students=[_entry_response(entry) for entry in leaderboard.entries],
        total_participants=leaderboard.total_participants,
        average_score=leaderboard.average_score,
        total_sessions=leaderboard.total_sessions,
        total_games=leaderboard.total_games,
        is_active=leaderboard.is_active,
        is_published=leaderboard.is_published,
        last_updated=leaderboard.last_updated,
    )


def _region(db: Session, region_id: str) -> Region:
    return LeaderboardService.get_active_region(db, parse_uuid(region_id, "region"))


@router.get("/all-regions/top3", response_model=APIResponse[AllRegionsTop3Data])
async def get_all_regions_top3(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Get the published top 3 of the current overall leaderboard of every active region.

    - Admin only
    - Regions without a published current leaderboard have an empty top 3
    """
    regions = db.query(Region).filter(Region.is_active.is_(True)).order_by(Region.name.asc()).all()

    regional = []
    for region in regions:
        leaderboard = LeaderboardService.get_current_leaderboard(db, region.id)
        regional.append(RegionTop3(
            region=RegionSummary.model_validate(region),
            leaderboard_id=leaderboard.id if leaderboard else None,
            top3=[_entry_response(entry) for entry in leaderboard.entries] if leaderboard else [],
            total_students=len(LeaderboardService.get_candidates(db, region.id)),
        ))

    return APIResponse(
        message="All regional leaderboards retrieved successfully",
        data=AllRegionsTop3Data(regional_leaderboards=regional, total_regions=len(regions))
    )


@router.get("/my-rank", response_model=APIResponse[MyRankData])
async def get_my_rank(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the caller's live rank within their region.

    - Students only (400 for teachers and admins)
    - Computed from current activity counters, no published leaderboard needed
    """
    result = ActivityService.get_student_rank(db, current_user)

    return APIResponse(
        message="User rank retrieved successfully",
        data=MyRankData(
            rank=result["rank"],
            total_score=result["total_score"],
            statistics=ActivityStatistics(**result["statistics"]),
            student=StudentSummary.model_validate(result["student"]),
            region=RegionSummary.model_validate(result["region"]),
            total_students=result["total_students"],
            scoring_method=ScoringService.scoring_method(),
        )
    )


@router.get("/statistics", response_model=APIResponse[StatisticsData])
async def get_statistics(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Cross-region counts and composite-score averages (admin only)."""
    stats = ActivityService.region_statistics(db)

    return APIResponse(
        message="Leaderboard statistics retrieved successfully",
        data=StatisticsData(
            overall=stats["overall"],
            region_statistics=[
                {**item, "region": RegionSummary.model_validate(item["region"])}
                for item in stats["region_statistics"]
            ],
            scoring_method=ScoringService.scoring_method(),
        )
    )


@router.get("/region/{region_id}/top3", response_model=APIResponse[Top3Data])
async def get_region_top3(
    region_id: str,
    leaderboard_type: LeaderboardType = Query(LeaderboardType.OVERALL, alias="type"),
    game_type: Optional[GameType] = Query(None, alias="gameType"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the top 3 of the region's published current leaderboard.

    - Any authenticated user
    - Only published leaderboards whose period contains now are visible
    """
    region = _region(db, region_id)
    leaderboard = LeaderboardService.get_current_leaderboard(db, region.id, _scope(leaderboard_type, game_type))
    total_students = len(LeaderboardService.get_candidates(db, region.id))

    if leaderboard is None:
        return APIResponse(
            message="No published leaderboard for this region",
            data=Top3Data(
                region=RegionSummary.model_validate(region),
                top_students=[],
                total_students=total_students,
            )
        )

    snapshot = _leaderboard_response(leaderboard)
    return APIResponse(
        message="Top 3 leaderboard retrieved successfully",
        data=Top3Data(
            region=RegionSummary.model_validate(region),
            leaderboard=snapshot,
            top_students=snapshot.top_students,
            total_students=total_students,
        )
    )


@router.get("/region/{region_id}/history", response_model=APIResponse[LeaderboardHistoryData])
async def get_region_history(
    region_id: str,
    leaderboard_type: LeaderboardType = Query(LeaderboardType.OVERALL, alias="type"),
    game_type: Optional[GameType] = Query(None, alias="gameType"),
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Published leaderboards of a region, most recent period first."""
    region = _region(db, region_id)
    leaderboards = LeaderboardService.get_history(db, region.id, _scope(leaderboard_type, game_type), limit)

    return APIResponse(
        message="Leaderboard history retrieved successfully",
        data=LeaderboardHistoryData(
            region=RegionSummary.model_validate(region),
            leaderboards=[_leaderboard_response(leaderboard) for leaderboard in leaderboards],
        )
    )


@router.get("/region/{region_id}", response_model=APIResponse[FullLeaderboardData])
async def get_region_leaderboard(
    region_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.LEADERBOARD_DEFAULT_PAGE_SIZE, ge=1, le=settings.LEADERBOARD_MAX_PAGE_SIZE),
    leaderboard_type: LeaderboardType = Query(LeaderboardType.OVERALL, alias="type"),
    game_type: Optional[GameType] = Query(None, alias="gameType"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the full ranked list of a region, paginated.

    - Any authenticated user
    - Ranks every student under the scope and period of the published current leaderboard
    - Empty while no leaderboard is published
    """
    region = _region(db, region_id)
    leaderboard = LeaderboardService.get_current_leaderboard(db, region.id, _scope(leaderboard_type, game_type))

    if leaderboard is None:
        return APIResponse(
            message="No published leaderboard for this region",
            data=FullLeaderboardData(
                region=RegionSummary.model_validate(region),
                leaderboard_type=leaderboard_type,
                game_type=game_type,
                leaderboard=[],
                pagination=Pagination(page=page, limit=limit, total=0, pages=0),
            )
        )

    ranking = LeaderboardService.full_ranking(db, leaderboard)
    total = len(ranking)
    start = (page - 1) * limit
    page_entries = ranking[start:start + limit]

    return APIResponse(
        message="Regional leaderboard retrieved successfully",
        data=FullLeaderboardData(
            region=RegionSummary.model_validate(region),
            leaderboard_id=leaderboard.id,
            leaderboard_type=leaderboard.leaderboard_type,
            game_type=leaderboard.game_type or None,
            period=Period(start_date=leaderboard.period_start, end_date=leaderboard.period_end),
            leaderboard=[_ranked_response(student, student_score) for student, student_score in page_entries],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )
    )


@router.post("/update-activity/{user_id}", response_model=APIResponse[UpdateActivityData])
async def update_activity(
    user_id: str,
    body: UpdateActivityRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Adjust a student's activity counter.

    - Admin only
    - activityType: lectures, games or communication
    """
    student_id = parse_uuid(user_id, "user")
    statistics = ActivityService.update_activity(db, student_id, body.activity_type, body.increment)

    logger.info(f"Admin {admin.id} adjusted {body.activity_type} of {student_id} by {body.increment}")

    return APIResponse(
        message="User activity updated successfully",
        data=UpdateActivityData(
            user_id=student_id,
            activity_type=body.activity_type,
            increment=body.increment,
            updated_statistics=ActivityStatistics(**statistics),
        )
    )


@router.post("/", response_model=APIResponse[LeaderboardResponse])
async def create_leaderboard(
    body: LeaderboardCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create the leaderboard for a region, scope and period, or refresh it if it already exists.

    - Admin only
    - gameType is required exactly when leaderboardType is game_specific
    """
    leaderboard = LeaderboardService.create_or_refresh(
        db,
        body.region_id,
        _scope(body.leaderboard_type, body.game_type),
        body.period.start_date,
        body.period.end_date,
        publish=body.publish,
    )
    return APIResponse(message="Leaderboard computed successfully", data=_leaderboard_response(leaderboard))


@router.post("/weekly/{region_id}", response_model=APIResponse[LeaderboardResponse])
async def create_weekly_leaderboard(
    region_id: str,
    publish: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create or refresh the current week's leaderboard (Sunday to Saturday)."""
    leaderboard = LeaderboardService.create_weekly(db, parse_uuid(region_id, "region"), publish=publish)
    return APIResponse(message="Weekly leaderboard computed successfully", data=_leaderboard_response(leaderboard))


@router.post("/monthly/{region_id}", response_model=APIResponse[LeaderboardResponse])
async def create_monthly_leaderboard(
    region_id: str,
    publish: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create or refresh the current calendar month's leaderboard."""
    leaderboard = LeaderboardService.create_monthly(db, parse_uuid(region_id, "region"), publish=publish)
    return APIResponse(message="Monthly leaderboard computed successfully", data=_leaderboard_response(leaderboard))


@router.get("/{leaderboard_id}", response_model=APIResponse[LeaderboardResponse])
async def get_leaderboard(
    leaderboard_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get any leaderboard, published or not (admin only)."""
    leaderboard = LeaderboardService.get_leaderboard(db, parse_uuid(leaderboard_id, "leaderboard"))
    return APIResponse(message="Leaderboard retrieved successfully", data=_leaderboard_response(leaderboard))


@router.post("/{leaderboard_id}/recalculate", response_model=APIResponse[LeaderboardResponse])
async def recalculate_leaderboard(
    leaderboard_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Recompute a leaderboard from current activity data.

    - Admin only
    - Replaces the whole snapshot; concurrent recomputations are last-write-wins
    """
    leaderboard = LeaderboardService.recalculate(db, parse_uuid(leaderboard_id, "leaderboard"))
    return APIResponse(message="Leaderboard recalculated successfully", data=_leaderboard_response(leaderboard))


@router.post("/{leaderboard_id}/publish", response_model=APIResponse[LeaderboardResponse])
async def publish_leaderboard(
    leaderboard_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Make a leaderboard visible to students (admin only)."""
    leaderboard = LeaderboardService.set_published(db, parse_uuid(leaderboard_id, "leaderboard"), True)
    return APIResponse(message="Leaderboard published", data=_leaderboard_response(leaderboard))


@router.post("/{leaderboard_id}/unpublish", response_model=APIResponse[LeaderboardResponse])
async def unpublish_leaderboard(
    leaderboard_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Hide a leaderboard from students (admin only)."""
    leaderboard = LeaderboardService.set_published(db, parse_uuid(leaderboard_id, "leaderboard"), False)
    return APIResponse(message="Leaderboard unpublished", data=_leaderboard_response(leaderboard))
