"""
Storefront Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every API test runs against a real app instance with its own SQLite
       file and uploads directory, so tests never share state.
How:   Settings are built explicitly (no environment, no .env) and handed to
       create_app(). httpx's ASGITransport does not run the lifespan, so the
       `app` fixture creates the schema and runs the bootstrap itself.

Fixture Hierarchy (all function-scoped):
    settings ──▶ app ──▶ client
                          ├── user_headers / other_headers   (customers)
                          ├── admin_headers                   (administrator)
                          ├── category                        (via admin API)
                          └── product                         (via admin API)
"""

from typing import AsyncGenerator, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from storefront.config import Settings
from storefront.main import create_app
from storefront.services.bootstrap import run_bootstrap

ADMIN_EMAIL = "admin@example.com"
DEFAULT_PASSWORD = "correct-horse-battery"


def make_settings(tmp_path, **overrides) -> Settings:
    """Test settings rooted in a temporary directory; keyword overrides win."""
    values = dict(
        environment="test",
        log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'storefront-test.db'}",
        uploads_root=str(tmp_path / "uploads"),
        secret_key="test-secret-key-not-for-production",
        admin_emails=ADMIN_EMAIL,
        rate_limit_enabled=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def build_app(settings: Settings) -> FastAPI:
    application = create_app(settings)
    database = application.state.database
    await database.create_all()
    await run_bootstrap(settings, database)
    return application


async def register_user(
    client: AsyncClient,
    email: str,
    password: str = DEFAULT_PASSWORD,
    name: str = "Test Customer",
) -> Dict:
    response = await client.post(
        "/api/users/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def place_order(
    client: AsyncClient,
    headers: Dict[str, str],
    lines: List[Tuple[str, int]],
    address_id: Optional[str] = None,
):
    """POST /api/orders for [(product_id, quantity), ...]; returns the raw response."""
    payload = {"items": [{"product_id": pid, "quantity": qty} for pid, qty in lines]}
    if address_id is not None:
        payload["address_id"] = address_id
    return await client.post("/api/orders", json=payload, headers=headers)


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def app(settings) -> AsyncGenerator[FastAPI, None]:
    application = await build_app(settings)
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_status(client):
            response = await client.get("/api/status")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def user_headers(client) -> Dict[str, str]:
    body = await register_user(client, "customer@example.com")
    return bearer(body["token"])


@pytest_asyncio.fixture
async def other_headers(client) -> Dict[str, str]:
    body = await register_user(client, "someone-else@example.com", name="Other Customer")
    return bearer(body["token"])


@pytest_asyncio.fixture
async def admin_headers(client) -> Dict[str, str]:
    body = await register_user(client, ADMIN_EMAIL, name="Shop Admin")
    assert body["user"]["is_admin"] is True
    return bearer(body["token"])


# ══════════════════════════════════════════════════════════════════════════
# Catalog
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def category(client, admin_headers) -> Dict:
    response = await client.post(
        "/api/categories",
        json={"name": "Garden Tools", "description": "Things for the garden"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def product(client, admin_headers, category) -> Dict:
    response = await client.post(
        "/api/products",
        json={
            "name": "Steel Trowel",
            "description": "Hand trowel with a wooden grip",
            "price": "19.99",
            "stock": 10,
            "category_id": category["id"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG bytes: SOI + JFIF header + EOI. Only the extension is checked."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
