from models import Leaderboard
from services.leaderboard_service import LeaderboardService
from tasks import leaderboard_updates


def test_refresh_creates_weekly_and_monthly_per_active_region(db, region, make_region, scenario):
    make_region("Closed", "CLOSED", is_active=False)

    results = leaderboard_updates.refresh_region_leaderboards(db)

    assert len(results["refreshed"]) == 1
    assert results["failed"] == []
    types = sorted(leaderboard.leaderboard_type for leaderboard in db.query(Leaderboard).all())
    assert types == ["monthly", "weekly"]
    assert all(not leaderboard.is_published for leaderboard in db.query(Leaderboard).all())


def test_refresh_is_idempotent(db, region, scenario):
    leaderboard_updates.refresh_region_leaderboards(db)
    leaderboard_updates.refresh_region_leaderboards(db)

    assert db.query(Leaderboard).count() == 2


def test_auto_publish(db, region, scenario, monkeypatch):
    monkeypatch.setattr(leaderboard_updates.settings, "LEADERBOARD_AUTO_PUBLISH", True)

    leaderboard_updates.refresh_region_leaderboards(db)

    assert all(leaderboard.is_published for leaderboard in db.query(Leaderboard).all())
    assert LeaderboardService.get_current_leaderboard(db, region.id) is None


def test_failing_region_does_not_stop_others(db, region, make_region, monkeypatch):
    other = make_region("South", "SOUTH")
    original = LeaderboardService.create_weekly

    def create_weekly(session, region_id, *args, **kwargs):
        if region_id == region.id:
            raise RuntimeError("boom")
        return original(session, region_id, *args, **kwargs)

    monkeypatch.setattr(LeaderboardService, "create_weekly", staticmethod(create_weekly))

    results = leaderboard_updates.refresh_region_leaderboards(db)

    assert results["failed"] == [str(region.id)]
    assert [item["region_id"] for item in results["refreshed"]] == [str(other.id)]


def test_celery_task_uses_its_own_session(db, region, scenario, monkeypatch):
    monkeypatch.setattr(leaderboard_updates, "SessionLocal", lambda: db)

    result = leaderboard_updates.refresh_periodic_leaderboards.run()

    assert result["status"] == "success"
    assert len(result["refreshed"]) == 1
