"""
Storefront Backend — Status Reporter Tests
============================================

What:  Tests for GET /api/status, the HTML page at / and the formatting
       helpers behind them.
How:   psutil and the clock are patched for exact uptime/memory values;
       endpoint tests run against real apps in development and production.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from conftest import build_app, make_settings
from httpx import ASGITransport, AsyncClient

from storefront import __version__
from storefront.routes.status import render_status_page
from storefront.services.status_service import StatusReporter, format_megabytes, format_uptime

BASE_FIELDS = {"status", "version", "environment", "timestamp"}


class TestFormatting:

    def test_uptime_hours_and_minutes(self):
        assert format_uptime(3661) == "1h 1m"

    def test_uptime_floors_partial_minutes(self):
        assert format_uptime(7199.9) == "1h 59m"
        assert format_uptime(59) == "0h 0m"

    def test_uptime_over_a_day_keeps_counting_hours(self):
        assert format_uptime(90061) == "25h 1m"

    def test_uptime_never_negative(self):
        assert format_uptime(-5) == "0h 0m"

    def test_megabytes_two_decimals(self):
        assert format_megabytes(1572864) == "1.5 MB"
        assert format_megabytes(8 * 1024 ** 3) == "8192.0 MB"
        assert format_megabytes(1_000_000) == "0.95 MB"


class TestStatusReporter:

    @pytest.fixture
    def fake_psutil(self):
        with patch("storefront.services.status_service.psutil") as mock_psutil, \
             patch("storefront.services.status_service.time") as mock_time:
            mock_time.time.return_value = 100_000.0
            process = MagicMock()
            process.create_time.return_value = 100_000.0 - 3661
            process.memory_info.return_value.rss = 1572864
            mock_psutil.Process.return_value = process
            mock_psutil.virtual_memory.return_value.total = 8 * 1024 ** 3
            yield mock_psutil

    def test_development_snapshot_has_process_details(self, tmp_path, fake_psutil):
        reporter = StatusReporter(make_settings(tmp_path, environment="development"))
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)

        snapshot = reporter.snapshot(now=now)

        assert snapshot.status == "ok"
        assert snapshot.version == __version__
        assert snapshot.environment == "development"
        assert snapshot.timestamp == now
        assert snapshot.uptime == "1h 1m"
        assert snapshot.memory.used == "1.5 MB"
        assert snapshot.memory.total == "8192.0 MB"
        assert snapshot.platform
        assert snapshot.runtime_version

    def test_production_snapshot_has_base_fields_only(self, tmp_path, fake_psutil):
        reporter = StatusReporter(make_settings(tmp_path, environment="production"))

        snapshot = reporter.snapshot()

        assert set(snapshot.model_dump(exclude_none=True)) == BASE_FIELDS
        fake_psutil.Process.assert_not_called()

    def test_each_snapshot_is_fresh(self, tmp_path):
        reporter = StatusReporter(make_settings(tmp_path))
        first = reporter.snapshot()
        second = reporter.snapshot()
        assert first is not second
        assert second.timestamp >= first.timestamp


class TestStatusEndpoint:

    @pytest.mark.asyncio
    async def test_status_ok_with_details_outside_production(self, client):
        response = await client.get("/api/status")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert body["environment"] == "test"
        assert "timestamp" in body
        assert body["uptime"].endswith("m")
        assert body["memory"]["used"].endswith(" MB")
        assert body["memory"]["total"].endswith(" MB")
        assert "platform" in body
        assert "runtime_version" in body

    @pytest.mark.asyncio
    async def test_status_sets_permissive_cors_headers(self, client):
        response = await client.get("/api/status")
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert (
            response.headers["Access-Control-Allow-Headers"]
            == "Origin, X-Requested-With, Content-Type, Accept"
        )

    @pytest.mark.asyncio
    async def test_status_ignores_bad_credentials(self, client):
        response = await client.get("/api/status", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_status_carries_request_id(self, client):
        response = await client.get("/api/status", headers={"X-Request-ID": "status-req-1"})
        assert response.headers["X-Request-ID"] == "status-req-1"

    @pytest.mark.asyncio
    async def test_production_status_omits_details(self, tmp_path):
        app = await build_app(make_settings(tmp_path, environment="production"))
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
                response = await c.get("/api/status")
        finally:
            await app.state.database.dispose()

        assert response.status_code == 200
        assert set(response.json()) == BASE_FIELDS


class TestStatusCORS:
    """/api/status stays open to every origin even when CORS_ORIGINS is restricted."""

    @pytest.fixture
    def restricted_settings(self, tmp_path):
        return make_settings(tmp_path, cors_origins="https://shop.example")

    @pytest.mark.asyncio
    async def test_status_get_from_foreign_origin(self, restricted_settings):
        app = await build_app(restricted_settings)
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
                response = await c.get("/api/status", headers={"Origin": "https://elsewhere.example"})
        finally:
            await app.state.database.dispose()

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_status_preflight_from_foreign_origin(self, restricted_settings):
        app = await build_app(restricted_settings)
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
                response = await c.options(
                    "/api/status",
                    headers={
                        "Origin": "https://elsewhere.example",
                        "Access-Control-Request-Method": "GET",
                        "Access-Control-Request-Headers": "X-Requested-With",
                    },
                )
        finally:
            await app.state.database.dispose()

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "GET" in response.headers["Access-Control-Allow-Methods"]
        assert "x-requested-with" in response.headers["Access-Control-Allow-Headers"].lower()

    @pytest.mark.asyncio
    async def test_other_paths_keep_restricted_policy(self, restricted_settings):
        app = await build_app(restricted_settings)
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
                response = await c.options(
                    "/api/products",
                    headers={
                        "Origin": "https://elsewhere.example",
                        "Access-Control-Request-Method": "GET",
                    },
                )
        finally:
            await app.state.database.dispose()

        assert response.status_code == 400
        assert "Access-Control-Allow-Origin" not in response.headers


class TestStatusPage:

    @pytest.mark.asyncio
    async def test_page_outside_production(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        html = response.text
        assert "<title>Backend Status</title>" in html
        assert __version__ in html
        assert "test" in html
        assert "Started at:" in html
        assert "API Status endpoint: /api/status" in html

    def test_production_page_hides_start_time(self, tmp_path):
        page = render_status_page(
            make_settings(tmp_path, environment="production"),
            datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        assert "<title>API Server</title>" in page
        assert "Started at:" not in page
        assert "production" in page

    def test_environment_name_is_escaped(self, tmp_path):
        page = render_status_page(
            make_settings(tmp_path, environment="<script>"),
            datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        assert "<script>" not in page
        assert "&lt;script&gt;" in page
