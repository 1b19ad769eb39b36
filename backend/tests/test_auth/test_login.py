"""Tests for POST /api/auth/login."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from helpers import create_user
from subscription_api.auth.jwt import decode_token
from subscription_api.models.user import Role


class TestLogin:
    """Test email/password login."""

    @pytest.mark.asyncio
    async def test_login_returns_access_token(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, role=Role.ADMIN, email="admin@mail.com", password="admin123")

        response = await client.post(
            "/api/auth/login", json={"email": "admin@mail.com", "password": "admin123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        payload = decode_token(data["access_token"])
        assert payload["sub"] == str(user.id)
        assert payload["role"] == "admin"
        assert payload["name"] == user.name

    @pytest.mark.asyncio
    async def test_login_email_is_case_insensitive(self, client: AsyncClient, db_session: AsyncSession):
        await create_user(db_session, email="mixed@mail.com", password="secret99")
        response = await client.post(
            "/api/auth/login", json={"email": "Mixed@Mail.com", "password": "secret99"}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, client: AsyncClient, db_session: AsyncSession):
        await create_user(db_session, email="user@mail.com", password="right-pass")
        response = await client.post(
            "/api/auth/login", json={"email": "user@mail.com", "password": "wrong-pass"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_email_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login", json={"email": "nobody@mail.com", "password": "whatever"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_body_rejected(self, client: AsyncClient):
        response = await client.post("/api/auth/login", json={"email": "not-an-email"})
        assert response.status_code == 422
