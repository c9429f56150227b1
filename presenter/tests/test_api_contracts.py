"""
presenter/tests/test_api_contracts.py
API Contract Verification Tests

These tests verify:
1. Error responses follow the standard envelope
2. HTTP status codes are correct
3. Authentication via cookie or Bearer header
4. Ownership boundaries: another instructor's data is not found
"""
from conftest import signup
from presenter.config.settings import settings
from presenter.errors import ErrorCode


def assert_error_envelope(data: dict, code: str):
    assert data["success"] is False
    assert isinstance(data["error"], str) and data["error"]
    assert data["message"] == data["error"]
    assert data["code"] == code


class TestHealthEndpoints:

    async def test_main_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_errors_health(self, client):
        response = await client.get("/api/errors/health")
        assert response.status_code == 200
        data = response.json()
        assert "status_codes" in data
        assert ErrorCode.RUBRIC_LOCKED in data["error_codes"]

    async def test_db_check(self, client):
        response = await client.get("/api/debug/db-check")
        assert response.status_code == 200
        data = response.json()
        assert data["connected"] is True
        assert "presentations" in data["tables"]
        assert data["userCount"] == 0


class TestAuth:

    async def test_signup_sets_http_only_cookie(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": "new@school.edu", "password": "secret123"},
        )
        assert response.status_code == 201
        assert response.json()["message"] == "User created successfully"
        assert isinstance(response.json()["userId"], int)
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{settings.AUTH_COOKIE_NAME}=")
        assert "httponly" in set_cookie.lower()

    async def test_short_password(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": "short@school.edu", "password": "12345"},
        )
        assert response.status_code == 400
        assert_error_envelope(response.json(), ErrorCode.VALIDATION_ERROR)
        assert response.json()["error"] == "Password must be at least 6 characters"

    async def test_duplicate_signup(self, client):
        await signup(client, "dup@school.edu")
        response = await client.post(
            "/api/auth/signup",
            json={"email": "dup@school.edu", "password": "secret123"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"

    async def test_invalid_email_is_422(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": "not-an-email", "password": "secret123"},
        )
        assert response.status_code == 422
        data = response.json()
        assert_error_envelope(data, ErrorCode.VALIDATION_ERROR)
        assert data["details"]["errors"]

    async def test_login(self, client):
        await signup(client, "login@school.edu")
        response = await client.post(
            "/api/auth/login",
            json={"email": "login@school.edu", "password": "secret123"},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.cookies.get(settings.AUTH_COOKIE_NAME)

    async def test_login_wrong_password(self, client):
        await signup(client, "wrong@school.edu")
        response = await client.post(
            "/api/auth/login",
            json={"email": "wrong@school.edu", "password": "nope-nope"},
        )
        assert response.status_code == 401
        assert_error_envelope(response.json(), ErrorCode.AUTH_INVALID)
        assert response.json()["error"] == "Invalid credentials"

    async def test_me_requires_auth(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert_error_envelope(response.json(), ErrorCode.AUTH_REQUIRED)

    async def test_me_with_cookie(self, client, auth_headers):
        token = auth_headers["Authorization"].split(" ", 1)[1]
        response = await client.get(
            "/api/auth/me",
            headers={"Cookie": f"{settings.AUTH_COOKIE_NAME}={token}"},
        )
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "teacher@school.edu"

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert_error_envelope(response.json(), ErrorCode.AUTH_INVALID)

    async def test_logout_clears_cookie(self, client, auth_headers):
        response = await client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"success": True}
        set_cookie = response.headers["set-cookie"].lower()
        assert set_cookie.startswith(f"{settings.AUTH_COOKIE_NAME}=")
        assert "max-age=0" in set_cookie


class TestErrorStatuses:

    async def test_no_session_yet(self, client, auth_headers):
        response = await client.get("/api/session", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"session": None}

    async def test_missing_session_is_404(self, client, auth_headers):
        response = await client.delete("/api/session?sessionId=999", headers=auth_headers)
        assert response.status_code == 404
        assert_error_envelope(response.json(), ErrorCode.NOT_FOUND)

    async def test_schema_violation_is_422(self, client, auth_headers):
        response = await client.post(
            "/api/session",
            json={"name": "Lab", "presentationDuration": "ten", "qaDuration": 5},
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_unknown_route_is_404_envelope(self, client):
        response = await client.get("/api/nothing-here")
        assert response.status_code == 404
        assert_error_envelope(response.json(), ErrorCode.NOT_FOUND)

    async def test_other_instructors_session_is_not_found(self, client):
        owner = await signup(client, "owner@school.edu")
        intruder = await signup(client, "intruder@school.edu")
        created = await client.post(
            "/api/session",
            json={"name": "Mine", "presentationDuration": 10, "qaDuration": 5},
            headers=owner,
        )
        session_id = created.json()["session"]["id"]

        for request in (
            client.delete(f"/api/session?sessionId={session_id}", headers=intruder),
            client.get(f"/api/export?sessionId={session_id}", headers=intruder),
            client.post(
                "/api/teams",
                json={"sessionId": session_id, "teams": [{"name": "X", "members": ["Y"]}]},
                headers=intruder,
            ),
        ):
            response = await request
            assert response.status_code == 404

        response = await client.get("/api/session", headers=owner)
        assert response.json()["session"]["id"] == session_id
        assert response.json()["teams"] == []

    async def test_unknown_action_is_422(self, client, auth_headers):
        response = await client.post("/api/presentations/1/dance", headers=auth_headers)
        assert response.status_code == 422
