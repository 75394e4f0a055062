"""
Test configuration and fixtures for the URL shortener.
This centralizes all test setup, making individual tests clean.

No test touches the network: the validator gets a fake resolver that knows
every hostname except those under the reserved .invalid TLD.
"""

import socket

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shorturl_app.config import Settings
from shorturl_app.database.connection import Database
from shorturl_app.services.url_validator import URLValidator
from shorturl_app.storage.strategies import InMemoryLinkStore, SQLLinkStore


async def fake_resolver(hostname: str):
    if hostname.endswith(".invalid"):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    return ["93.184.216.34"]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def resolver():
    return fake_resolver


@pytest.fixture
def validator(resolver):
    return URLValidator(resolver=resolver)


@pytest.fixture(scope="function")
def database(settings):
    """
    Fresh SQLite file database for each test.
    This ensures tests are isolated and don't affect each other.
    """
    db = Database(settings.database_url)
    try:
        yield db
    finally:
        db.drop_all()
        db.dispose()


@pytest.fixture
def sql_store(database):
    store = SQLLinkStore(database)
    store.initialize("urlid")
    return store


@pytest.fixture
def memory_store():
    store = InMemoryLinkStore()
    store.initialize("urlid")
    return store


@pytest.fixture(scope="function")
def client(settings, sql_store, validator):
    """
    Test client for an app wired to the test database and fake resolver.
    This is the main fixture that HTTP tests will use.
    """
    app = create_app(settings=settings, link_store=sql_store, validator=validator)

    with TestClient(app) as test_client:
        yield test_client
