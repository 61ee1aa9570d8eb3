from datetime import datetime, timedelta

from services.leaderboard_service import LeaderboardScope, LeaderboardService


def _publish_overall(db, region, start, end):
    return LeaderboardService.create_or_refresh(db, region.id, LeaderboardScope.overall(), start, end, publish=True)


def _period_body(start, end):
    return {"startDate": start.isoformat(), "endDate": end.isoformat()}


def test_admin_creates_leaderboard(client, db, admin, region, scenario, current_period, headers_for):
    response = client.post(
        "/api/leaderboard/",
        json={"regionId": str(region.id), "leaderboardType": "overall", "period": _period_body(*current_period)},
        headers=headers_for(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert [entry["student"]["name"] for entry in data["topStudents"]] == ["S2", "S1", "S3"]
    assert data["totalParticipants"] == 4
    assert data["averageScore"] == 73
    assert data["gameType"] is None
    assert data["isPublished"] is False


def test_creating_twice_updates_the_same_leaderboard(client, admin, region, scenario, current_period, headers_for):
    payload = {"regionId": str(region.id), "period": _period_body(*current_period)}

    first = client.post("/api/leaderboard/", json=payload, headers=headers_for(admin)).json()["data"]
    second = client.post("/api/leaderboard/", json=payload, headers=headers_for(admin)).json()["data"]

    assert first["id"] == second["id"]


def test_game_specific_leaderboard_needs_game_type(client, admin, region, current_period, headers_for):
    response = client.post(
        "/api/leaderboard/",
        json={
            "regionId": str(region.id),
            "leaderboardType": "game_specific",
            "period": _period_body(*current_period),
        },
        headers=headers_for(admin),
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_inverted_period_is_rejected(client, admin, region, headers_for):
    now = datetime.utcnow()
    response = client.post(
        "/api/leaderboard/",
        json={"regionId": str(region.id), "period": _period_body(now, now - timedelta(days=1))},
        headers=headers_for(admin),
    )

    assert response.status_code == 400


def test_students_cannot_create_leaderboards(client, student, region, current_period, headers_for):
    response = client.post(
        "/api/leaderboard/",
        json={"regionId": str(region.id), "period": _period_body(*current_period)},
        headers=headers_for(student),
    )

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Admin access required"}


def test_top3_hides_unpublished_leaderboards(client, db, student, region, scenario, current_period, headers_for):
    leaderboard = LeaderboardService.create_or_refresh(db, region.id, LeaderboardScope.overall(), *current_period)

    response = client.get(f"/api/leaderboard/region/{region.id}/top3", headers=headers_for(student))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["topStudents"] == []
    assert data["leaderboard"] is None
    # The scenario's four students plus the fixture student
    assert data["totalStudents"] == 5

    LeaderboardService.set_published(db, leaderboard.id, True)
    data = client.get(f"/api/leaderboard/region/{region.id}/top3", headers=headers_for(student)).json()["data"]

    assert [entry["rank"] for entry in data["topStudents"]] == [1, 2, 3]
    assert [entry["student"]["name"] for entry in data["topStudents"]] == ["S2", "S1", "S3"]
    assert data["leaderboard"]["id"] == str(leaderboard.id)


def test_top3_by_game_type(client, db, student, region, scenario, current_period, headers_for):
    LeaderboardService.create_or_refresh(
        db, region.id, LeaderboardScope.game_specific("grammar"), *current_period, publish=True
    )

    response = client.get(
        f"/api/leaderboard/region/{region.id}/top3",
        params={"type": "game_specific", "gameType": "grammar"},
        headers=headers_for(student),
    )
    assert response.status_code == 200
    assert response.json()["data"]["leaderboard"]["gameType"] == "grammar"

    overall = client.get(f"/api/leaderboard/region/{region.id}/top3", headers=headers_for(student))
    assert overall.json()["data"]["topStudents"] == []


def test_full_leaderboard_is_paginated(client, db, student, region, scenario, current_period, headers_for):
    _publish_overall(db, region, *current_period)

    response = client.get(
        f"/api/leaderboard/region/{region.id}",
        params={"page": 2, "limit": 2},
        headers=headers_for(student),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}
    assert [entry["student"]["name"] for entry in data["leaderboard"]] == ["S3", "S4"]
    assert [entry["rank"] for entry in data["leaderboard"]] == [3, 4]


def test_full_leaderboard_is_empty_when_unpublished(client, db, student, region, scenario, current_period, headers_for):
    LeaderboardService.create_or_refresh(db, region.id, LeaderboardScope.overall(), *current_period)

    data = client.get(f"/api/leaderboard/region/{region.id}", headers=headers_for(student)).json()["data"]

    assert data["leaderboard"] == []
    assert data["pagination"]["total"] == 0


def test_history_lists_published_leaderboards(client, db, student, region, scenario, headers_for):
    now = datetime.utcnow()
    _publish_overall(db, region, now - timedelta(days=40), now - timedelta(days=31))
    _publish_overall(db, region, now - timedelta(days=30), now + timedelta(days=1))
    LeaderboardService.create_or_refresh(
        db, region.id, LeaderboardScope.overall(), now - timedelta(days=60), now - timedelta(days=50)
    )

    data = client.get(f"/api/leaderboard/region/{region.id}/history", headers=headers_for(student)).json()["data"]

    assert len(data["leaderboards"]) == 2
    assert data["leaderboards"][0]["period"]["endDate"] > data["leaderboards"][1]["period"]["endDate"]


def test_invalid_region_id_is_400(client, student, headers_for):
    response = client.get("/api/leaderboard/region/not-a-uuid/top3", headers=headers_for(student))

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid region ID format"}


def test_unknown_region_is_404(client, student, headers_for):
    response = client.get(
        "/api/leaderboard/region/00000000-0000-0000-0000-000000000000/top3",
        headers=headers_for(student),
    )

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Region not found"}


def test_requests_without_token_are_rejected(client, region):
    response = client.get(f"/api/leaderboard/region/{region.id}/top3")

    assert response.status_code in (401, 403)
    assert response.json()["success"] is False


def test_my_rank_is_student_only(client, teacher, admin, headers_for):
    for user in (teacher, admin):
        response = client.get("/api/leaderboard/my-rank", headers=headers_for(user))
        assert response.status_code == 400
        assert response.json()["success"] is False


def test_my_rank_reflects_activity_updates_without_recompute(client, db, admin, region, make_user, headers_for):
    student = make_user(region=region, total_games_played=3)
    make_user(region=region, total_lectures_watched=6)

    response = client.post(
        f"/api/leaderboard/update-activity/{student.id}",
        json={"activityType": "games", "increment": 5},
        headers=headers_for(admin),
    )
    assert response.status_code == 200
    assert response.json()["data"]["updatedStatistics"]["gameSessions"] == 8

    data = client.get("/api/leaderboard/my-rank", headers=headers_for(student)).json()["data"]

    assert data["statistics"]["gameSessions"] == 8
    assert data["totalScore"] == 2.67
    assert data["rank"] == 1
    assert data["totalStudents"] == 2
    assert data["region"]["code"] == "NORTH"
    assert data["scoringMethod"]["description"] == "Equal weightage scoring"


def test_update_activity_never_goes_negative(client, admin, student, headers_for):
    response = client.post(
        f"/api/leaderboard/update-activity/{student.id}",
        json={"activityType": "lectures", "increment": -10},
        headers=headers_for(admin),
    )

    assert response.status_code == 200
    assert response.json()["data"]["updatedStatistics"]["lecturesWatched"] == 0


def test_update_activity_rejects_unknown_type(client, admin, student, headers_for):
    response = client.post(
        f"/api/leaderboard/update-activity/{student.id}",
        json={"activityType": "sleeping"},
        headers=headers_for(admin),
    )

    assert response.status_code == 400


def test_update_activity_for_unknown_user_is_404(client, admin, headers_for):
    response = client.post(
        "/api/leaderboard/update-activity/00000000-0000-0000-0000-000000000000",
        json={"activityType": "games"},
        headers=headers_for(admin),
    )

    assert response.status_code == 404


def test_statistics_is_admin_only(client, student, headers_for):
    response = client.get("/api/leaderboard/statistics", headers=headers_for(student))

    assert response.status_code == 403


def test_statistics(client, admin, region, make_region, make_user, headers_for):
    make_user(region=region, total_lectures_watched=3, total_games_played=3, total_communication_sessions=3)
    make_user(region=region)
    make_region("South", "SOUTH")

    response = client.get("/api/leaderboard/statistics", headers=headers_for(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["overall"] == {"totalRegions": 2, "totalStudents": 2, "averageScore": 1.5}
    north = next(item for item in data["regionStatistics"] if item["region"]["code"] == "NORTH")
    assert north["topScore"] == 3.0
    assert north["averageScore"] == 1.5
    assert north["statistics"]["averageLectures"] == 1.5
    south = next(item for item in data["regionStatistics"] if item["region"]["code"] == "SOUTH")
    assert south["totalStudents"] == 0


def test_all_regions_top3(client, db, admin, region, make_region, scenario, current_period, headers_for):
    _publish_overall(db, region, *current_period)
    make_region("South", "SOUTH")

    data = client.get("/api/leaderboard/all-regions/top3", headers=headers_for(admin)).json()["data"]

    assert data["totalRegions"] == 2
    by_code = {item["region"]["code"]: item for item in data["regionalLeaderboards"]}
    assert [entry["student"]["name"] for entry in by_code["NORTH"]["top3"]] == ["S2", "S1", "S3"]
    assert by_code["SOUTH"]["top3"] == []


def test_publish_and_unpublish(client, db, admin, student, region, scenario, current_period, headers_for):
    leaderboard = LeaderboardService.create_or_refresh(db, region.id, LeaderboardScope.overall(), *current_period)

    response = client.post(f"/api/leaderboard/{leaderboard.id}/publish", headers=headers_for(admin))
    assert response.status_code == 200
    assert response.json()["data"]["isPublished"] is True
    top3 = client.get(f"/api/leaderboard/region/{region.id}/top3", headers=headers_for(student)).json()["data"]
    assert len(top3["topStudents"]) == 3

    response = client.post(f"/api/leaderboard/{leaderboard.id}/unpublish", headers=headers_for(admin))
    assert response.json()["data"]["isPublished"] is False
    top3 = client.get(f"/api/leaderboard/region/{region.id}/top3", headers=headers_for(student)).json()["data"]
    assert top3["topStudents"] == []


def test_recalculate_and_get(client, db, admin, region, scenario, record_activity, current_period, headers_for):
    leaderboard = LeaderboardService.create_or_refresh(db, region.id, LeaderboardScope.overall(), *current_period)
    record_activity(scenario["S4"], scores=[100, 100])

    response = client.post(f"/api/leaderboard/{leaderboard.id}/recalculate", headers=headers_for(admin))
    assert response.status_code == 200
    assert [entry["student"]["name"] for entry in response.json()["data"]["topStudents"]] == ["S2", "S1", "S4"]

    fetched = client.get(f"/api/leaderboard/{leaderboard.id}", headers=headers_for(admin)).json()["data"]
    assert fetched["id"] == str(leaderboard.id)


def test_unknown_leaderboard_is_404(client, admin, headers_for):
    response = client.post(
        "/api/leaderboard/00000000-0000-0000-0000-000000000000/recalculate",
        headers=headers_for(admin),
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Leaderboard not found"


def test_weekly_and_monthly_shortcuts(client, admin, region, scenario, headers_for):
    weekly = client.post(
        f"/api/leaderboard/weekly/{region.id}", params={"publish": "true"}, headers=headers_for(admin)
    ).json()["data"]
    monthly = client.post(f"/api/leaderboard/monthly/{region.id}", headers=headers_for(admin)).json()["data"]

    assert weekly["leaderboardType"] == "weekly"
    assert weekly["isPublished"] is True
    assert monthly["leaderboardType"] == "monthly"
    assert monthly["isPublished"] is False
