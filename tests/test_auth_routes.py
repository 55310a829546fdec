"""
QuickNotes Backend — Auth Endpoint Tests
==========================================

What:  /api/auth/register, /api/auth/login and /api/auth/me over HTTP with
       UserService patched.
"""

from unittest.mock import AsyncMock, patch

import pytest

from quicknotes.exceptions import AuthenticationError, ConflictError, ValidationError
from quicknotes.schemas.user import AuthResponse, UserPublic


@pytest.fixture
def mock_user_service():
    with patch("quicknotes.routes.auth.user_service") as service:
        service.register = AsyncMock()
        service.login = AsyncMock()
        service.get_profile = AsyncMock()
        yield service


def _auth(user_id=1, email="ada@example.com"):
    return AuthResponse(token="signed.jwt.token", user=UserPublic(id=user_id, email=email))


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_201(self, test_client, mock_user_service):
        mock_user_service.register.return_value = _auth()

        response = await test_client.post(
            "/api/auth/register", json={"email": "ada@example.com", "password": "pw"}
        )

        assert response.status_code == 201
        assert response.json() == {
            "token": "signed.jwt.token",
            "user": {"id": 1, "email": "ada@example.com"},
        }
        mock_user_service.register.assert_awaited_once()
        assert mock_user_service.register.await_args.args[1:] == ("ada@example.com", "pw")

    @pytest.mark.asyncio
    async def test_missing_body_is_400(self, test_client, mock_user_service):
        mock_user_service.register.side_effect = ValidationError("email and password are required")

        response = await test_client.post("/api/auth/register")

        assert response.status_code == 400
        assert response.json()["message"] == "email and password are required"
        assert mock_user_service.register.await_args.args[1:] == (None, None)

    @pytest.mark.asyncio
    async def test_duplicate_is_409(self, test_client, mock_user_service):
        mock_user_service.register.side_effect = ConflictError("Email already registered")

        response = await test_client.post(
            "/api/auth/register", json={"email": "ada@example.com", "password": "pw"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "Email already registered"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_200(self, test_client, mock_user_service):
        mock_user_service.login.return_value = _auth(user_id=4)

        response = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "pw"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == 4

    @pytest.mark.asyncio
    async def test_bad_credentials_is_401(self, test_client, mock_user_service):
        mock_user_service.login.side_effect = AuthenticationError("Invalid credentials")

        response = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestMe:

    @pytest.mark.asyncio
    async def test_me(self, test_client, auth_headers, mock_user_service):
        mock_user_service.get_profile.return_value = UserPublic(id=1, email="ada@example.com")

        response = await test_client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"id": 1, "email": "ada@example.com"}
        assert mock_user_service.get_profile.await_args.args[1] == 1

    @pytest.mark.asyncio
    async def test_me_requires_token(self, test_client, mock_user_service):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        mock_user_service.get_profile.assert_not_awaited()
