from __future__ import annotations

import json

import pytest

from frs_users.models import AdminLog, MediaAsset, Profile, db


def test_list_profiles_requires_auth(client):
    response = client.get("/api/profiles")

    assert response.status_code == 401


def test_list_profiles_requires_manage_permission(logged_in_user):
    client, _ = logged_in_user

    response = client.get("/api/profiles")

    assert response.status_code == 403


def test_list_profiles_filters(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    profile_factory(email="lo@x.com", last_name="Baker", person_type="loan_officer")
    profile_factory(email="agent@x.com", last_name="Adams", person_type="realtor_partner")
    profile_factory(email="gone@x.com", last_name="Cole", is_active=False)

    everyone = client.get("/api/profiles").get_json()
    agents = client.get("/api/profiles?type=realtor_partner").get_json()
    with_inactive = client.get("/api/profiles?include_inactive=1").get_json()

    assert [p["email"] for p in everyone["profiles"]] == ["agent@x.com", "lo@x.com"]
    assert everyone["total"] == 2
    assert [p["email"] for p in agents["profiles"]] == ["agent@x.com"]
    assert with_inactive["total"] == 3


def test_create_profile(logged_in_admin):
    client, _ = logged_in_admin

    response = client.post(
        "/api/profiles",
        json={
            "email": " Jane@X.com ",
            "first_name": "Jane",
            "person_type": "loan_officer",
            "service_areas": "TX|OK",
            "languages": ["English"],
        },
    )

    assert response.status_code == 201, response.get_json()
    payload = response.get_json()
    assert payload["email"] == "jane@x.com"
    assert payload["service_areas"] == ["TX", "OK"]
    assert payload["languages"] == ["English"]
    assert payload["full_name"] == "Jane"
    assert payload["specialties"] == []


@pytest.mark.parametrize(
    "body,message",
    [
        ({"first_name": "Jane"}, "Email is required."),
        ({"email": "a@x.com", "favorite_color": "blue"}, "Unknown profile field(s): favorite_color"),
        ({"email": "a@x.com", "person_type": "wizard"}, "Unknown profile type 'wizard'."),
        ({"email": "a@x.com", "user_id": "abc"}, "user_id must be an integer."),
        ({"email": "a@x.com", "user_id": 999}, "User 999 not found."),
    ],
)
def test_create_profile_validation(logged_in_admin, body, message):
    client, _ = logged_in_admin

    response = client.post("/api/profiles", json=body)

    assert response.status_code == 400
    assert response.get_json()["error"] == message


def test_create_profile_duplicate_email_conflicts(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    profile_factory(email="jane@x.com")

    response = client.post("/api/profiles", json={"email": "JANE@x.com"})

    assert response.status_code == 409


def test_get_and_update_profile(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    profile = profile_factory(email="jane@x.com", first_name="Jane", job_title="LO")

    assert client.get(f"/api/profiles/{profile.id}").get_json()["job_title"] == "LO"

    response = client.patch(f"/api/profiles/{profile.id}", json={"job_title": "Branch Manager", "is_active": "0"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["job_title"] == "Branch Manager"
    assert payload["is_active"] is False
    assert payload["first_name"] == "Jane"


def test_update_profile_email_conflict(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    profile_factory(email="taken@x.com")
    profile = profile_factory(email="jane@x.com")

    response = client.patch(f"/api/profiles/{profile.id}", json={"email": "taken@x.com"})

    assert response.status_code == 409


def test_email_of_inactive_profile_can_be_reused(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    gone = profile_factory(email="jane@x.com", is_active=False)

    response = client.post("/api/profiles", json={"email": "jane@x.com", "first_name": "Jane"})

    assert response.status_code == 201
    assert response.get_json()["id"] != gone.id
    assert Profile.query.filter_by(email="jane@x.com").count() == 2


def test_reactivating_profile_with_taken_email_conflicts(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    gone = profile_factory(email="jane@x.com", is_active=False)
    profile_factory(email="jane@x.com")

    response = client.patch(f"/api/profiles/{gone.id}", json={"is_active": True})

    assert response.status_code == 409
    assert db.session.get(Profile, gone.id).is_active is False


def test_missing_profile_returns_404(logged_in_admin):
    client, _ = logged_in_admin

    assert client.get("/api/profiles/999").status_code == 404
    assert client.patch("/api/profiles/999", json={"job_title": "x"}).status_code == 404
    assert client.delete("/api/profiles/999").status_code == 404


def test_delete_profile_soft_then_hard(logged_in_admin, profile_factory):
    client, admin = logged_in_admin
    profile = profile_factory(email="jane@x.com")
    profile_id = profile.id

    soft = client.delete(f"/api/profiles/{profile_id}")
    assert soft.get_json() == {"success": True, "id": profile_id, "hard": False}
    assert db.session.get(Profile, profile_id).is_active is False

    hard = client.delete(f"/api/profiles/{profile_id}?hard=1")
    assert hard.get_json()["hard"] is True
    assert db.session.get(Profile, profile_id) is None

    entries = AdminLog.query.filter_by(action="PROFILE_DELETED").all()
    assert len(entries) == 2
    assert all(entry.admin_user_id == admin.id for entry in entries)
    assert json.loads(entries[-1].details) == {"email": "jane@x.com", "hard": True}


def test_merge_profiles_endpoint(logged_in_admin, profile_factory):
    client, _ = logged_in_admin
    first = profile_factory(email="jane@x.com", first_name="Jane")
    second = profile_factory(email="janet@x.com", first_name="Janet", nmls="111")
    first_id, second_id = first.id, second.id

    response = client.post(
        "/api/profiles/merge",
        json={"profile_ids": [first_id, second_id], "fields": {"email": first_id, "nmls": second_id}},
    )

    assert response.status_code == 201, response.get_json()
    payload = response.get_json()
    assert payload["merged_count"] == 2
    assert payload["profile"]["email"] == "jane@x.com"
    assert payload["profile"]["nmls"] == "111"
    assert Profile.query.count() == 1
    assert AdminLog.query.filter_by(action="PROFILES_MERGED").count() == 1


@pytest.mark.parametrize(
    "body",
    [
        None,
        {"profile_ids": "1,2", "fields": {"email": 1}},
        {"profile_ids": [1], "fields": {"email": 1}},
        {"profile_ids": [1, 2], "fields": {}},
    ],
)
def test_merge_profiles_endpoint_rejects_bad_requests(logged_in_admin, profile_factory, body):
    client, _ = logged_in_admin
    profile_factory()
    profile_factory()

    response = client.post("/api/profiles/merge", json=body)

    assert response.status_code == 400
    assert Profile.query.count() == 2


def test_media_route_serves_stored_files(client, app, tmp_path):
    media_dir = tmp_path / "media"
    media_dir.mkdir(parents=True, exist_ok=True)
    (media_dir / "abc-jane.jpg").write_bytes(b"\xff\xd8\xff")
    asset = MediaAsset(filename="abc-jane.jpg")
    db.session.add(asset)
    db.session.commit()

    response = client.get(asset.public_url)

    assert response.status_code == 200
    assert response.data == b"\xff\xd8\xff"
    assert client.get("/media/missing.jpg").status_code == 404
