"""
Celery tasks that keep the weekly and monthly leaderboards current.
"""
from datetime import datetime
from typing import Optional
import logging

from tasks.celery_app import celery_app
from config import settings
from database import SessionLocal
from models import Region
from services.leaderboard_service import LeaderboardService

logger = logging.getLogger(__name__)


def refresh_region_leaderboards(db, reference_date: Optional[datetime] = None) -> dict:
    """
    Create or refresh the weekly and monthly leaderboard of every active region.

    A failing region is logged and skipped; the others are still refreshed.
    """
    publish = True if settings.LEADERBOARD_AUTO_PUBLISH else None
    regions = db.query(Region).filter(Region.is_active.is_(True)).all()

    refreshed = []
    failed = []
    for region in regions:
        try:
            weekly = LeaderboardService.create_weekly(db, region.id, reference_date, publish=publish)
            monthly = LeaderboardService.create_monthly(db, region.id, reference_date, publish=publish)
            refreshed.append({
                "region_id": str(region.id),
                "weekly": str(weekly.id),
                "monthly": str(monthly.id),
            })
        except Exception:
            db.rollback()
            logger.exception(f"Failed to refresh leaderboards for region {region.id}")
            failed.append(str(region.id))

    return {"refreshed": refreshed, "failed": failed}


@celery_app.task(name="tasks.refresh_periodic_leaderboards")
def refresh_periodic_leaderboards():
    """
    Recompute the current weekly and monthly leaderboards of all regions.

    Scheduled hourly by Celery Beat.
    """
    db = SessionLocal()

    try:
        logger.info("Refreshing periodic leaderboards for all active regions")
        results = refresh_region_leaderboards(db)
        logger.info(
            f"Periodic leaderboards refreshed: {len(results['refreshed'])} regions ok, "
            f"{len(results['failed'])} failed"
        )
        return {
            "status": "success" if not results["failed"] else "partial",
            **results
        }

    finally:
        db.close()
