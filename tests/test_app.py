"""
Tests for application wiring: pages, rate limiting, startup, settings.
"""
import asyncio
import logging

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shorturl_app.config import Settings
from shorturl_app.exceptions import StartupError
from shorturl_app.logging_config import LOGGER_NAME, setup_logging
from shorturl_app.storage.strategies import InMemoryLinkStore


class UnavailableStore(InMemoryLinkStore):
    def initialize(self, counter_name):
        raise StartupError("Could not initialize database: connection refused")


class ClosingStore(InMemoryLinkStore):
    closed = False

    def close(self):
        self.closed = True


class TestPages:

    def test_landing_page(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert 'action="/api/shorturl"' in response.text

    def test_public_assets(self, client: TestClient):
        response = client.get("/public/style.css")
        assert response.status_code == 200
        assert "text/css" in response.headers["content-type"]

    def test_health_check(self, client: TestClient):
        response = client.get("/health")
        assert response.json() == {"status": "healthy", "environment": "development"}

    def test_cors_headers(self, client: TestClient):
        response = client.get("/health", headers={"Origin": "https://elsewhere.example"})
        assert response.headers["access-control-allow-origin"] == "*"


class TestRateLimit:
    """Per-IP request throttling in front of every route"""

    def test_rejects_after_limit(self, tmp_path, validator):
        settings = Settings(
            database_url=f"sqlite:///{tmp_path / 'limited.db'}",
            rate_limit="2/minute",
            rate_limit_enabled=True,
        )
        app = create_app(settings=settings, link_store=InMemoryLinkStore(), validator=validator)

        with TestClient(app) as client:
            assert client.get("/api/shorturl/abc").status_code == 200
            assert client.get("/api/shorturl/abc").status_code == 200
            response = client.get("/api/shorturl/abc")

        assert response.status_code == 429
        assert response.text == settings.rate_limit_message

    def test_window_is_shared_by_all_routes(self, tmp_path, validator):
        """One window per client IP, whichever route the requests hit"""
        settings = Settings(
            database_url=f"sqlite:///{tmp_path / 'limited.db'}",
            rate_limit="3/minute",
            rate_limit_enabled=True,
        )
        store = InMemoryLinkStore()
        app = create_app(settings=settings, link_store=store, validator=validator)

        with TestClient(app) as client:
            created = client.post("/api/shorturl", json={"url": "https://www.example.com"})
            redirect = client.get("/api/shorturl/1", follow_redirects=False)
            assert client.get("/health").status_code == 200
            blocked = client.post("/api/shorturl", json={"url": "https://www.python.org"})

        assert created.json()["short_url"] == 1
        assert redirect.status_code == 302
        assert blocked.status_code == 429
        assert store.find_by_url("https://www.python.org") is None

    def test_disabled_limit(self, client: TestClient):
        for _ in range(150):
            assert client.get("/health").status_code == 200


class TestStartup:

    def test_store_failure_aborts_startup(self, settings, validator):
        app = create_app(settings=settings, link_store=UnavailableStore(), validator=validator)

        async def start():
            async with app.router.lifespan_context(app):
                pass

        with pytest.raises(StartupError):
            asyncio.run(start())

    def test_shutdown_closes_store(self, settings, validator):
        store = ClosingStore()
        app = create_app(settings=settings, link_store=store, validator=validator)

        with TestClient(app):
            assert store.closed is False

        assert store.closed is True

    def test_startup_seeds_counter(self, settings, validator):
        store = InMemoryLinkStore()
        app = create_app(settings=settings, link_store=store, validator=validator)

        with TestClient(app) as client:
            data = client.post("/api/shorturl", json={"url": "https://www.example.com"}).json()

        assert data["short_url"] == 1


class TestSettings:

    def test_uri_alias(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("URI", "sqlite:///./from-uri.db")

        assert Settings().database_url == "sqlite:///./from-uri.db"

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        assert Settings().port == 8080


class TestLogging:

    def test_setup_is_idempotent(self):
        setup_logging("DEBUG")
        logger = setup_logging("WARNING")

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
