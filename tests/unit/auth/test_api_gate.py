"""Unit tests for the API gate dependency (rate limit, auth, roles)."""

from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from roster.core.auth.backend import sign_access_token
from roster.core.auth.dependencies import (
    AdminClaims,
    ApiGate,
    AuthClaims,
    OptionalClaims,
    SuperAdminClaims,
)
from roster.core.auth.schemas import AccessClaims
from roster.core.errors import register_exception_handlers
from roster.core.rate_limit import FixedWindowRateLimiter, InMemoryRateLimitStore


def build_app(limit: int = 100) -> FastAPI:
    app = FastAPI()
    app.state.rate_limiter = FixedWindowRateLimiter(InMemoryRateLimitStore(), limit=limit, window=60)
    register_exception_handlers(app)

    @app.get("/public")
    async def public(claims: OptionalClaims) -> dict:
        return {"user": str(claims.id) if claims else None}

    @app.get("/private")
    async def private(claims: AuthClaims) -> dict:
        return {"user": str(claims.id)}

    @app.get("/admin")
    async def admin_only(claims: AdminClaims) -> dict:
        return {"user": str(claims.id)}

    @app.get("/super")
    async def super_only(claims: SuperAdminClaims) -> dict:
        return {"user": str(claims.id)}

    @app.get(
        "/unlimited",
        dependencies=[Depends(ApiGate(require_auth=False, skip_rate_limit=True))],
    )
    async def unlimited() -> dict:
        return {"ok": True}

    return app


def bearer(**overrides) -> dict[str, str]:
    data = {
        "id": uuid4(),
        "email": "jane@example.com",
        "name": "Jane Doe",
        "company_id": uuid4(),
    }
    data.update(overrides)
    return {"Authorization": f"Bearer {sign_access_token(AccessClaims(**data))}"}


@pytest.fixture
async def gate_client():
    async with AsyncClient(transport=ASGITransport(app=build_app()), base_url="http://test") as client:
        yield client


class TestAuthentication:
    """Tests for bearer token authentication."""

    async def test_missing_header_rejected(self, gate_client: AsyncClient):
        """A protected route without Authorization returns 401."""
        response = await gate_client.get("/private")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Authorization header required",
            "details": {"code": "missing_token"},
        }

    async def test_non_bearer_scheme_treated_as_missing(self, gate_client: AsyncClient):
        """Basic credentials count as no bearer header at all."""
        response = await gate_client.get("/private", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401
        assert response.json()["error"] == "Authorization header required"

    async def test_lowercase_scheme_treated_as_missing(self, gate_client: AsyncClient):
        """Only the exact ``Bearer`` prefix carries a token."""
        valid = bearer(isadmin=True)["Authorization"].removeprefix("Bearer ")

        response = await gate_client.get("/admin", headers={"Authorization": f"bearer {valid}"})

        assert response.status_code == 401
        assert response.json()["error"] == "Authorization header required"

    async def test_invalid_token_rejected(self, gate_client: AsyncClient):
        """A malformed or expired token returns 401."""
        response = await gate_client.get(
            "/private",
            headers={"Authorization": "Bearer not.a.token"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    async def test_valid_token_accepted(self, gate_client: AsyncClient):
        user_id = uuid4()

        response = await gate_client.get("/private", headers=bearer(id=user_id))

        assert response.status_code == 200
        assert response.json() == {"user": str(user_id)}

    async def test_optional_auth_without_token(self, gate_client: AsyncClient):
        """Public routes run without claims."""
        response = await gate_client.get("/public")

        assert response.status_code == 200
        assert response.json() == {"user": None}

    async def test_optional_auth_ignores_invalid_token(self, gate_client: AsyncClient):
        response = await gate_client.get("/public", headers={"Authorization": "Bearer junk"})

        assert response.status_code == 200
        assert response.json() == {"user": None}


class TestAuthorization:
    """Tests for admin and super admin requirements."""

    async def test_admin_route_rejects_regular_user(self, gate_client: AsyncClient):
        response = await gate_client.get("/admin", headers=bearer())

        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    async def test_admin_route_accepts_admin(self, gate_client: AsyncClient):
        response = await gate_client.get("/admin", headers=bearer(isadmin=True))

        assert response.status_code == 200

    async def test_admin_route_accepts_super_admin(self, gate_client: AsyncClient):
        """Super admins pass admin checks without the isadmin flag."""
        response = await gate_client.get("/admin", headers=bearer(is_super_admin=True))

        assert response.status_code == 200

    async def test_super_route_rejects_admin(self, gate_client: AsyncClient):
        response = await gate_client.get("/super", headers=bearer(isadmin=True))

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": "Super Admin access required",
            "details": {"code": "super_admin_required"},
        }

    async def test_super_route_requires_token_first(self, gate_client: AsyncClient):
        """Missing credentials are a 401, not a 403."""
        response = await gate_client.get("/super")

        assert response.status_code == 401


class TestRateLimiting:
    """Tests for the fixed window limit applied by the gate."""

    async def test_headers_on_allowed_request(self, gate_client: AsyncClient):
        response = await gate_client.get("/public")

        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"
        assert "X-RateLimit-Reset" in response.headers

    async def test_rejects_after_limit(self):
        """The third request in a window of two is rejected with 429."""
        async with AsyncClient(
            transport=ASGITransport(app=build_app(limit=2)),
            base_url="http://test",
        ) as client:
            await client.get("/public")
            await client.get("/public")
            response = await client.get("/public")

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Rate limit exceeded"
        assert body["details"]["code"] == "rate_limit_exceeded"
        assert body["retryAfter"] >= 1
        assert response.headers["Retry-After"] == str(body["retryAfter"])
        assert response.headers["X-RateLimit-Remaining"] == "0"

    async def test_rate_limit_runs_before_auth(self):
        """An exhausted client gets 429 even without credentials."""
        async with AsyncClient(
            transport=ASGITransport(app=build_app(limit=1)),
            base_url="http://test",
        ) as client:
            await client.get("/public")
            response = await client.get("/private")

        assert response.status_code == 429

    async def test_clients_counted_separately(self):
        """Each forwarded client address has its own window."""
        async with AsyncClient(
            transport=ASGITransport(app=build_app(limit=1)),
            base_url="http://test",
        ) as client:
            first = await client.get("/public", headers={"X-Forwarded-For": "10.0.0.1"})
            second = await client.get("/public", headers={"X-Forwarded-For": "10.0.0.2"})
            again = await client.get("/public", headers={"X-Forwarded-For": "10.0.0.1"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert again.status_code == 429

    async def test_skip_rate_limit(self):
        """Routes that skip the limit never count or reject."""
        async with AsyncClient(
            transport=ASGITransport(app=build_app(limit=1)),
            base_url="http://test",
        ) as client:
            responses = [await client.get("/unlimited") for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)
        assert "X-RateLimit-Limit" not in responses[-1].headers
