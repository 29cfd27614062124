import pytest
from fastapi.testclient import TestClient

from charlieverse.main import create_app
from conftest import ADMIN_EMAIL, bearer, login, make_settings, register


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "storage": "memory", "emailConfigured": False}


def test_register_login_me_logout(client):
    user, _ = register(client, "first@example.com", firstName="First")
    assert user["role"] == "admin"
    assert "passwordHash" not in user
    assert "password_hash" not in user

    client.cookies.clear()
    logged_in, token = login(client, "first@example.com")
    assert logged_in["id"] == user["id"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["firstName"] == "First"

    assert client.post("/api/auth/logout").json() == {"message": "Logged out successfully"}
    client.cookies.clear()
    assert client.get("/api/auth/me", headers=bearer(token)).status_code == 401
    assert client.post("/api/auth/logout").status_code == 200


def test_me_requires_session(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated"}


def test_duplicate_registration_and_bad_login(client):
    register(client, "dup@example.com")

    duplicate = client.post("/api/auth/register", json={"email": "dup@example.com", "password": "x"})
    assert duplicate.status_code == 400
    assert duplicate.json() == {"message": "User already exists"}

    bad = client.post("/api/auth/login", json={"email": "dup@example.com", "password": "wrong"})
    assert bad.status_code == 400
    assert bad.json() == {"message": "Invalid credentials"}


def test_request_validation_errors_use_message_shape(client):
    response = client.post("/api/auth/register", json={"password": "x"})

    assert response.status_code == 400
    assert "email" in response.json()["message"]


def test_sync_firebase_without_project_trusts_assertion(client):
    register(client, "founder@example.com")

    response = client.post(
        "/api/auth/sync-firebase",
        json={"firebaseUid": "uid-9", "email": "social@example.com", "displayName": "Social Person"},
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["firebaseUid"] == "uid-9"
    assert user["firstName"] == "Social"
    assert user["role"] == "user"
    assert response.cookies.get("charlieverse.sid")


def test_firebase_config(client):
    assert client.get("/api/auth/firebase-config").json()["configured"] is False


def test_update_profile(client):
    register(client, "me@example.com")

    response = client.put("/api/user/profile", json={"company": "Studio", "bio": "Hello"})

    assert response.status_code == 200
    assert response.json()["company"] == "Studio"
    assert client.get("/api/auth/me").json()["bio"] == "Hello"


def test_project_visibility(client):
    _, admin = register(client, ADMIN_EMAIL)
    _, owner = register(client, "owner@example.com")
    _, stranger = register(client, "stranger@example.com")

    created = client.post(
        "/api/projects",
        json={"title": "Bakery site", "projectType": "web_development", "budget": "$5k"},
        headers=bearer(owner),
    )
    assert created.status_code == 200
    project = created.json()
    assert project["status"] == "pending"

    assert client.get(f"/api/projects/{project['id']}", headers=bearer(owner)).status_code == 200
    assert client.get(f"/api/projects/{project['id']}", headers=bearer(admin)).status_code == 200
    denied = client.get(f"/api/projects/{project['id']}", headers=bearer(stranger))
    assert denied.status_code == 403
    assert denied.json() == {"message": "Access denied"}
    assert client.get("/api/projects/999", headers=bearer(owner)).status_code == 404
    assert client.get("/api/projects", headers=bearer(stranger)).json() == []
    assert [p["id"] for p in client.get("/api/projects", headers=bearer(owner)).json()] == [project["id"]]


def test_project_title_is_required(client):
    _, token = register(client, "owner@example.com")

    response = client.post("/api/projects", json={"title": ""}, headers=bearer(token))

    assert response.status_code == 400


@pytest.mark.parametrize("project_id", ["1", "999"])
def test_non_admin_status_change_is_forbidden(client, project_id):
    register(client, ADMIN_EMAIL)
    _, owner = register(client, "owner@example.com")
    client.post("/api/projects", json={"title": "Site"}, headers=bearer(owner))

    response = client.patch(
        f"/api/admin/projects/{project_id}/status",
        json={"status": "completed"},
        headers=bearer(owner),
    )

    assert response.status_code == 403
    assert response.json() == {"message": "Admin access required"}


@pytest.mark.parametrize(
    "path",
    [
        "/api/projects/99999999999999999999",
        "/api/projects/2147483648/updates",
        "/api/projects/0",
        "/api/analytics/projects/2147483648",
    ],
)
def test_out_of_range_ids_are_rejected_without_touching_storage(tmp_path, path):
    settings = make_settings(tmp_path, database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")

    with TestClient(create_app(settings)) as client:
        _, admin = register(client, ADMIN_EMAIL)

        response = client.get(path, headers=bearer(admin))

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid request")
        assert client.get("/api/health").json()["storage"] == "sql"


def test_non_admin_status_change_is_forbidden_even_with_bad_body(client):
    register(client, ADMIN_EMAIL)
    _, owner = register(client, "owner@example.com")

    response = client.patch(
        "/api/admin/projects/1/status", json={"status": "not-a-status"}, headers=bearer(owner)
    )

    assert response.status_code == 403


def test_admin_project_workflow(client):
    _, admin = register(client, ADMIN_EMAIL)
    _, owner = register(client, "owner@example.com", firstName="Olive")
    project = client.post("/api/projects", json={"title": "Site"}, headers=bearer(owner)).json()

    listing = client.get("/api/admin/projects", headers=bearer(admin))
    assert listing.status_code == 200
    assert listing.json()[0]["owner"]["email"] == "owner@example.com"

    updated = client.patch(
        f"/api/admin/projects/{project['id']}/status",
        json={"status": "completed", "message": "Shipped", "actualCost": 4200},
        headers=bearer(admin),
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["status"] == "completed"
    assert body["completedAt"] is not None
    assert body["actualCost"] == 4200

    missing = client.patch(
        "/api/admin/projects/999/status", json={"status": "approved"}, headers=bearer(admin)
    )
    assert missing.status_code == 404

    note = client.post(
        f"/api/admin/projects/{project['id']}/updates",
        json={"title": "Launched", "status": "completed"},
        headers=bearer(admin),
    )
    assert note.status_code == 200
    updates = client.get(f"/api/projects/{project['id']}/updates", headers=bearer(owner))
    assert [u["title"] for u in updates.json()] == ["Launched"]


def test_admin_user_management(client):
    _, admin = register(client, ADMIN_EMAIL)
    user, token = register(client, "user@example.com")

    assert client.get("/api/admin/users", headers=bearer(token)).status_code == 403
    users = client.get("/api/admin/users", headers=bearer(admin)).json()
    assert {u["email"] for u in users} == {ADMIN_EMAIL, "user@example.com"}

    response = client.patch(
        f"/api/admin/users/{user['id']}/status", json={"isActive": False}, headers=bearer(admin)
    )
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    refused = client.post("/api/auth/login", json={"email": "user@example.com", "password": "s3cret-pass"})
    assert refused.status_code == 403
    assert refused.json() == {"message": "Account is deactivated"}


def test_contact_flow(client):
    _, admin = register(client, ADMIN_EMAIL)
    client.cookies.clear()

    missing = client.post("/api/contact", json={"name": "Sam"})
    assert missing.status_code == 400
    assert missing.json() == {"message": "Missing required fields"}

    submitted = client.post(
        "/api/contact",
        json={"name": "Sam", "email": "sam@example.com", "projectType": "design", "message": "Logo please"},
    )
    assert submitted.json() == {"message": "Contact form submitted successfully"}

    inbox = client.get("/api/admin/contacts", headers=bearer(admin)).json()
    assert [m["name"] for m in inbox] == ["Sam"]
    read = client.patch(
        f"/api/admin/contacts/{inbox[0]['id']}/status",
        json={"status": "read", "adminNotes": "Will call"},
        headers=bearer(admin),
    )
    assert read.json()["status"] == "read"
    assert client.get("/api/admin/contacts").status_code == 401


def test_file_upload_and_download(client):
    _, token = register(client, "files@example.com")

    response = client.post(
        "/api/files/upload",
        files=[("files", ("notes.txt", b"hello world", "text/plain"))],
        data={"projectId": "3"},
        headers=bearer(token),
    )

    assert response.status_code == 200, response.text
    stored = response.json()["files"][0]
    assert stored["originalName"] == "notes.txt"
    assert stored["projectId"] == "3"
    assert stored["category"] == "other"

    download = client.get(f"/api/files/{stored['filename']}", headers=bearer(token))
    assert download.status_code == 200
    assert download.content == b"hello world"

    info = client.get(f"/api/files/{stored['filename']}/info", headers=bearer(token)).json()
    assert info["exists"] is True
    assert info["size"] == 11
    assert client.get("/api/files/missing.txt", headers=bearer(token)).status_code == 404


def test_file_upload_rejections(client):
    _, token = register(client, "files@example.com")

    too_many = client.post(
        "/api/files/upload",
        files=[("files", (f"f{i}.txt", b"x", "text/plain")) for i in range(6)],
        headers=bearer(token),
    )
    bad_type = client.post(
        "/api/files/upload",
        files=[("files", ("run.exe", b"MZ", "application/x-msdownload"))],
        headers=bearer(token),
    )
    empty = client.post(
        "/api/files/upload",
        files=[("files", ("empty.txt", b"", "text/plain"))],
        headers=bearer(token),
    )

    assert too_many.status_code == 400
    assert bad_type.status_code == 400
    assert empty.status_code == 400
    assert "empty" in empty.json()["message"]


def test_upload_requires_session(client):
    response = client.post("/api/files/upload", files=[("files", ("a.txt", b"a", "text/plain"))])
    assert response.status_code == 401


def test_admin_only_endpoints(client):
    _, admin = register(client, ADMIN_EMAIL)
    _, user = register(client, "user@example.com")

    for path in ("/api/analytics/dashboard", "/api/email/status", "/api/websocket/status"):
        assert client.get(path, headers=bearer(user)).status_code == 403
        assert client.get(path, headers=bearer(admin)).status_code == 200

    dashboard = client.get("/api/analytics/dashboard", headers=bearer(admin)).json()
    assert dashboard["userStats"]["totalUsers"] == 2
    assert dashboard["projectStats"]["totalProjects"] == 0

    status = client.get("/api/email/status", headers=bearer(admin)).json()
    assert status["configured"] is False

    test_email = client.post("/api/email/test", json={"to": "x@example.com"}, headers=bearer(admin))
    assert test_email.json() == {"success": False, "message": "Failed to send test email"}

    sent = client.post(
        "/api/notifications/send",
        json={"title": "Maintenance", "message": "Tonight", "broadcast": True},
        headers=bearer(admin),
    )
    assert sent.json() == {"success": True, "message": "Notification sent"}


def test_project_analytics_endpoint(client):
    _, admin = register(client, ADMIN_EMAIL)
    project = client.post("/api/projects", json={"title": "Site"}, headers=bearer(admin)).json()

    analytics = client.get(f"/api/analytics/projects/{project['id']}", headers=bearer(admin))

    assert analytics.status_code == 200
    assert analytics.json()["timelineEvents"] == 0
    assert client.get("/api/analytics/projects/999", headers=bearer(admin)).status_code == 404


def test_admin_is_seeded_on_startup(tmp_path):
    settings = make_settings(tmp_path, seed_admin=True, admin_password="seeded-pass")

    with TestClient(create_app(settings)) as client:
        user, _ = login(client, ADMIN_EMAIL, "seeded-pass")

    assert user["role"] == "admin"
    assert user["company"] == "Charlieverse"
