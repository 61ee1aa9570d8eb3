from datetime import datetime, timedelta
from uuid import UUID

from models import ActivitySession, GameScore, User


def test_game_session_lifecycle_credits_students(client, db, student, teacher, headers_for):
    started = datetime.utcnow() - timedelta(minutes=30)
    response = client.post(
        "/api/activity/sessions",
        json={
            "sessionType": "game",
            "gameType": "grammar",
            "participantIds": [str(teacher.id)],
            "startedAt": started.isoformat(),
        },
        headers=headers_for(student),
    )
    assert response.status_code == 201
    session = response.json()["data"]
    assert session["status"] == "active"
    assert set(session["participantIds"]) == {str(student.id), str(teacher.id)}

    response = client.post(
        f"/api/activity/sessions/{session['id']}/complete",
        json={"endedAt": (started + timedelta(minutes=20)).isoformat()},
        headers=headers_for(student),
    )
    assert response.status_code == 200
    completed = response.json()["data"]
    assert completed["status"] == "completed"
    assert completed["duration"] == 1200

    db.expire_all()
    assert db.get(User, student.id).total_games_played == 1
    # Teachers take part but are not credited
    assert db.get(User, teacher.id).total_games_played == 0


def test_communication_session_credits_communication(client, db, student, headers_for):
    session = client.post(
        "/api/activity/sessions", json={"sessionType": "video_call"}, headers=headers_for(student)
    ).json()["data"]

    response = client.post(f"/api/activity/sessions/{session['id']}/complete", headers=headers_for(student))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, student.id).total_communication_sessions == 1


def test_game_session_requires_game_type(client, student, headers_for):
    response = client.post("/api/activity/sessions", json={"sessionType": "game"}, headers=headers_for(student))

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unknown_participant_is_404(client, student, headers_for):
    response = client.post(
        "/api/activity/sessions",
        json={"sessionType": "chat", "participantIds": ["00000000-0000-0000-0000-000000000000"]},
        headers=headers_for(student),
    )

    assert response.status_code == 404


def test_session_cannot_be_completed_twice(client, student, headers_for):
    session = client.post(
        "/api/activity/sessions", json={"sessionType": "chat"}, headers=headers_for(student)
    ).json()["data"]
    client.post(f"/api/activity/sessions/{session['id']}/complete", headers=headers_for(student))

    response = client.post(f"/api/activity/sessions/{session['id']}/complete", headers=headers_for(student))

    assert response.status_code == 409
    assert response.json()["message"] == "Session is already completed"


def test_only_participants_complete_sessions(client, student, region, make_user, headers_for):
    outsider = make_user(region=region)
    session = client.post(
        "/api/activity/sessions", json={"sessionType": "chat"}, headers=headers_for(student)
    ).json()["data"]

    response = client.post(f"/api/activity/sessions/{session['id']}/complete", headers=headers_for(outsider))

    assert response.status_code == 403


def test_session_cannot_end_before_it_started(client, student, headers_for):
    session = client.post(
        "/api/activity/sessions", json={"sessionType": "chat"}, headers=headers_for(student)
    ).json()["data"]

    response = client.post(
        f"/api/activity/sessions/{session['id']}/complete",
        json={"endedAt": (datetime.utcnow() - timedelta(days=1)).isoformat()},
        headers=headers_for(student),
    )

    assert response.status_code == 400


def test_list_sessions(client, student, headers_for):
    for _ in range(3):
        client.post("/api/activity/sessions", json={"sessionType": "chat"}, headers=headers_for(student))

    data = client.get("/api/activity/sessions", params={"page_size": 2}, headers=headers_for(student)).json()["data"]
    assert data["total"] == 3
    assert len(data["sessions"]) == 2
    assert data["pageSize"] == 2


def test_submit_game_score(client, db, student, headers_for):
    response = client.post(
        "/api/activity/games/score",
        json={"gameType": "pronunciation", "score": 85},
        headers=headers_for(student),
    )

    assert response.status_code == 201
    assert response.json()["data"]["score"] == 85.0
    db.expire_all()
    assert db.query(GameScore).filter(GameScore.user_id == student.id).count() == 1
    assert db.get(User, student.id).total_games_played == 1


def test_game_score_for_session_counts_once(client, db, student, headers_for):
    session = client.post(
        "/api/activity/sessions",
        json={"sessionType": "game", "gameType": "grammar"},
        headers=headers_for(student),
    ).json()["data"]
    client.post(
        "/api/activity/games/score",
        json={"gameType": "grammar", "score": 70, "sessionId": session["id"]},
        headers=headers_for(student),
    )
    client.post(f"/api/activity/sessions/{session['id']}/complete", headers=headers_for(student))

    db.expire_all()
    assert db.get(User, student.id).total_games_played == 1
    assert db.get(ActivitySession, UUID(session["id"])).is_completed


def test_cancelled_session_takes_no_scores(client, db, student, headers_for):
    session = client.post(
        "/api/activity/sessions",
        json={"sessionType": "game", "gameType": "grammar"},
        headers=headers_for(student),
    ).json()["data"]
    db.get(ActivitySession, UUID(session["id"])).status = "cancelled"
    db.commit()

    response = client.post(
        "/api/activity/games/score",
        json={"gameType": "grammar", "score": 70, "sessionId": session["id"]},
        headers=headers_for(student),
    )

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Cannot add scores to a cancelled session"}
    db.expire_all()
    assert db.query(GameScore).filter(GameScore.user_id == student.id).count() == 0


def test_game_score_out_of_range(client, student, headers_for):
    response = client.post(
        "/api/activity/games/score",
        json={"gameType": "grammar", "score": 140},
        headers=headers_for(student),
    )

    assert response.status_code == 400


def test_teachers_cannot_submit_scores(client, teacher, headers_for):
    response = client.post(
        "/api/activity/games/score",
        json={"gameType": "grammar", "score": 50},
        headers=headers_for(teacher),
    )

    assert response.status_code == 400


def test_record_lecture_view(client, student, headers_for):
    response = client.post("/api/activity/lectures/intro-101/view", headers=headers_for(student))
    response = client.post("/api/activity/lectures/intro-102/view", headers=headers_for(student))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["lectureId"] == "intro-102"
    assert data["totalLecturesWatched"] == 2
