"""Tests for auth dependencies — bearer token validation and role checks."""

import uuid
from datetime import timedelta

from httpx import AsyncClient
from jose import jwt

from subscription_api.auth.jwt import create_access_token
from subscription_api.config import settings
from subscription_api.models.user import User


class TestGetCurrentUser:
    """Test get_current_user via the /api/subscription/me endpoint."""

    async def test_missing_token_rejected(self, client: AsyncClient):
        response = await client.get("/api/subscription/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization token required!"
        assert response.json()["error"] == "unauthenticated"

    async def test_expired_token_rejected(self, client: AsyncClient, test_user: User):
        token = create_access_token({"sub": str(test_user.id)}, expires_delta=timedelta(seconds=-1))
        response = await client.get(
            "/api/subscription/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token!"

    async def test_invalid_token_format(self, client: AsyncClient):
        headers = {"Authorization": "Bearer not.a.valid.jwt"}
        response = await client.get("/api/subscription/me", headers=headers)
        assert response.status_code == 401

    async def test_non_access_token_type_rejected(self, client: AsyncClient, test_user: User):
        token = jwt.encode(
            {"sub": str(test_user.id), "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        response = await client.get(
            "/api/subscription/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_malformed_subject_rejected(self, client: AsyncClient):
        token = create_access_token({"sub": "not-a-uuid"})
        response = await client.get(
            "/api/subscription/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_nonexistent_user_id_rejected(self, client: AsyncClient):
        token = create_access_token({"sub": str(uuid.uuid4())})
        response = await client.get(
            "/api/subscription/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


class TestRequireRole:
    """Test require_role(Role.ADMIN) via admin-only plan listing."""

    async def test_user_role_forbidden(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/plan/all", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Access denied: admin only!"
        assert response.json()["error"] == "unauthorized"

    async def test_admin_role_allowed(self, client: AsyncClient, admin_headers: dict):
        response = await client.get("/api/plan/all", headers=admin_headers)
        assert response.status_code == 200

    async def test_unauthenticated_is_401_not_403(self, client: AsyncClient):
        response = await client.get("/api/plan/all")
        assert response.status_code == 401
