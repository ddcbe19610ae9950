"""Request pipeline tests against the full application.

These run with the database mocked out: every request below is decided
by the middleware stack or the gate before a query would be issued.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from roster.config import settings
from roster.core.auth.backend import sign_access_token
from roster.core.auth.schemas import AccessClaims


ORIGIN = settings.allowed_origin_list[0]


class TestGateOnRealRoutes:
    async def test_admin_route_without_token(self, api_client: AsyncClient):
        response = await api_client.get("/api/v1/users")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Authorization header required",
            "details": {"code": "missing_token"},
        }

    async def test_garbage_token(self, api_client: AsyncClient):
        response = await api_client.get(
            "/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    async def test_validation_error_envelope(self, api_client: AsyncClient):
        response = await api_client.post("/api/v1/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["details"]["errors"]

    async def test_unknown_route(self, api_client: AsyncClient):
        response = await api_client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not Found"}


class TestCorsOnRealRoutes:
    async def test_preflight(self, api_client: AsyncClient):
        response = await api_client.options(
            "/api/v1/users",
            headers={"Origin": ORIGIN, "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == ORIGIN
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    async def test_error_responses_carry_cors_headers(self, api_client: AsyncClient):
        response = await api_client.get("/api/v1/users", headers={"Origin": ORIGIN})

        assert response.status_code == 401
        assert response.headers["Access-Control-Allow-Origin"] == ORIGIN

    @pytest.mark.parametrize("origin", ["https://evil.example", "null"])
    async def test_unlisted_origin_gets_no_allow_header(self, api_client: AsyncClient, origin):
        response = await api_client.get("/health/live", headers={"Origin": origin})

        assert response.status_code == 200
        assert "Access-Control-Allow-Origin" not in response.headers

    async def test_unhandled_error_carries_cors_headers(
        self, api_client: AsyncClient, mock_session: MagicMock
    ):
        mock_session.execute.side_effect = RuntimeError("connection reset")
        token = sign_access_token(
            AccessClaims(id=uuid4(), email="jane@example.com", name="Jane", company_id=uuid4())
        )

        response = await api_client.get(
            "/api/v1/users/me",
            headers={"Origin": ORIGIN, "Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "An unexpected error occurred"
        assert response.headers["Access-Control-Allow-Origin"] == ORIGIN
