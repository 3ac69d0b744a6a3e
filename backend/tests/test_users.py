"""
Storefront Backend — Account Tests
====================================

What:  Registration, login, profile and password endpoints, plus the admin
       user listing.
"""

from unittest.mock import AsyncMock, patch

import pytest

from conftest import ADMIN_EMAIL, DEFAULT_PASSWORD, bearer, register_user

from storefront.services.user_service import UserService


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_returns_token_and_user(self, client):
        body = await register_user(client, "New.Person@Example.com", name="New Person")

        assert body["token"]
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0
        assert body["user"]["email"] == "new.person@example.com"
        assert body["user"]["is_admin"] is False
        assert "password_hash" not in body["user"]

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, client):
        await register_user(client, "twice@example.com")
        response = await client.post(
            "/api/users/register",
            json={"name": "Again", "email": "TWICE@example.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_email_taken_after_lookup_conflicts(self, client):
        # The lookup misses a row another request inserted just before our flush
        await register_user(client, "race@example.com")
        with patch.object(UserService, "get_by_email", AsyncMock(return_value=None)):
            response = await client.post(
                "/api/users/register",
                json={"name": "Racer", "email": "race@example.com", "password": DEFAULT_PASSWORD},
            )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert response.json()["details"] == {"field": "email"}

    @pytest.mark.asyncio
    async def test_short_password_is_rejected(self, client):
        response = await client.post(
            "/api/users/register",
            json={"name": "Shorty", "email": "short@example.com", "password": "123"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_configured_admin_email_becomes_admin(self, client):
        body = await register_user(client, ADMIN_EMAIL)
        assert body["user"]["is_admin"] is True


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_with_correct_password(self, client):
        await register_user(client, "login@example.com")
        response = await client.post(
            "/api/users/login",
            json={"email": "LOGIN@example.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 200
        token = response.json()["token"]

        me = await client.get("/api/users/me", headers=bearer(token))
        assert me.status_code == 200
        assert me.json()["email"] == "login@example.com"

    @pytest.mark.asyncio
    async def test_login_with_wrong_password(self, client):
        await register_user(client, "login@example.com")
        response = await client.post(
            "/api/users/login",
            json={"email": "login@example.com", "password": "not-the-password"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


class TestProfile:

    @pytest.mark.asyncio
    async def test_update_name_and_email(self, client, user_headers):
        response = await client.put(
            "/api/users/me",
            json={"name": "Renamed", "email": "renamed@example.com"},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["email"] == "renamed@example.com"

    @pytest.mark.asyncio
    async def test_email_taken_by_someone_else_conflicts(self, client, user_headers, other_headers):
        response = await client.put(
            "/api/users/me",
            json={"email": "someone-else@example.com"},
            headers=user_headers,
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_change_password(self, client, user_headers):
        response = await client.put(
            "/api/users/me/password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "a-brand-new-secret"},
            headers=user_headers,
        )
        assert response.status_code == 204

        old = await client.post(
            "/api/users/login",
            json={"email": "customer@example.com", "password": DEFAULT_PASSWORD},
        )
        new = await client.post(
            "/api/users/login",
            json={"email": "customer@example.com", "password": "a-brand-new-secret"},
        )
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_needs_current_password(self, client, user_headers):
        response = await client.put(
            "/api/users/me/password",
            json={"current_password": "wrong-one", "new_password": "a-brand-new-secret"},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "current_password"


class TestAdminListing:

    @pytest.mark.asyncio
    async def test_admin_lists_users(self, client, admin_headers, user_headers):
        response = await client.get("/api/users", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        emails = {u["email"] for u in response.json()}
        assert emails == {ADMIN_EMAIL, "customer@example.com"}

    @pytest.mark.asyncio
    async def test_customer_cannot_list_users(self, client, user_headers):
        response = await client.get("/api/users", headers=user_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
