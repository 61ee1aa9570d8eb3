def test_admin_creates_region(client, admin, headers_for):
    response = client.post(
        "/api/regions/",
        json={"name": " West ", "code": "west", "description": "Western schools"},
        headers=headers_for(admin),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "West"
    assert data["code"] == "WEST"
    assert data["isActive"] is True


def test_duplicate_region_code_conflicts(client, admin, region, headers_for):
    response = client.post("/api/regions/", json={"name": "Other", "code": "north"}, headers=headers_for(admin))

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_students_cannot_create_regions(client, student, headers_for):
    response = client.post("/api/regions/", json={"name": "West", "code": "WEST"}, headers=headers_for(student))

    assert response.status_code == 403


def test_list_regions_hides_inactive(client, admin, student, region, make_region, headers_for):
    make_region("Closed", "CLOSED", is_active=False)

    codes = [item["code"] for item in client.get("/api/regions/", headers=headers_for(student)).json()["data"]]
    assert codes == ["NORTH"]

    # Only admins can ask for inactive regions
    codes = [
        item["code"]
        for item in client.get(
            "/api/regions/", params={"include_inactive": True}, headers=headers_for(student)
        ).json()["data"]
    ]
    assert codes == ["NORTH"]

    codes = [
        item["code"]
        for item in client.get(
            "/api/regions/", params={"include_inactive": True}, headers=headers_for(admin)
        ).json()["data"]
    ]
    assert codes == ["CLOSED", "NORTH"]


def test_get_region(client, student, region, headers_for):
    response = client.get(f"/api/regions/{region.id}", headers=headers_for(student))

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "North"


def test_get_region_bad_id(client, student, headers_for):
    response = client.get("/api/regions/nope", headers=headers_for(student))

    assert response.status_code == 400


def test_update_region(client, admin, region, headers_for):
    response = client.patch(
        f"/api/regions/{region.id}",
        json={"description": "Renamed", "isActive": False},
        headers=headers_for(admin),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["description"] == "Renamed"
    assert data["isActive"] is False


def test_delete_region_with_users_conflicts(client, admin, student, region, headers_for):
    response = client.delete(f"/api/regions/{region.id}", headers=headers_for(admin))

    assert response.status_code == 409


def test_delete_empty_region(client, admin, make_region, headers_for):
    empty = make_region("Empty", "EMPTY")

    response = client.delete(f"/api/regions/{empty.id}", headers=headers_for(admin))

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Region deleted successfully", "data": None}
    assert client.get(f"/api/regions/{empty.id}", headers=headers_for(admin)).status_code == 404
