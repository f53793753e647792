"""
Integration tests for Auth API and app-level endpoints
"""
import pytest

from student_dashboard.models import UserRole

pytestmark = pytest.mark.integration


class TestRegister:
    """POST /api/auth/register"""

    @pytest.mark.asyncio
    async def test_register_student(self, client):
        response = await client.post(
            "/api/auth/register",
            json={
                "name": "Jane Doe",
                "email": "Jane.Doe@University.edu",
                "password": "secret123",
                "student_id": "S555555",
                "department": "Physics",
                "semester": 3,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["token"].startswith("demo-token-")
        assert data["user"]["email"] == "jane.doe@university.edu"
        assert data["user"]["role"] == "student"

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["user"]["id"] == data["user"]["id"]

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, student):
        response = await client.post(
            "/api/auth/register",
            json={"name": "Copy", "email": student.email, "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_admin_self_registration_rejected(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"name": "Mallory", "email": "mallory@university.edu", "password": "secret123", "role": "admin"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_short_password(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"name": "Short", "email": "short@university.edu", "password": "123"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestLogin:
    """POST /api/auth/login"""

    @pytest.mark.asyncio
    async def test_login(self, client, make_user, password):
        user = await make_user(UserRole.INSTRUCTOR)

        response = await client.post("/api/auth/login", json={"email": user.email, "password": password})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(user.id)

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, student):
        response = await client.post("/api/auth/login", json={"email": student.email, "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "code": "AUTH_005", "message": "Invalid credentials"}

    @pytest.mark.asyncio
    async def test_inactive_account(self, client, make_user, password):
        user = await make_user(UserRole.STUDENT, is_active=False)

        response = await client.post("/api/auth/login", json={"email": user.email, "password": password})

        assert response.status_code == 403
        assert response.json()["code"] == "AUTH_004"


class TestTokens:
    """Bearer token handling"""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_001"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_002"


class TestAppEndpoints:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_root_index(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["courses"] == "/api/courses"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nope")

        assert response.status_code == 404
        assert response.json()["success"] is False
