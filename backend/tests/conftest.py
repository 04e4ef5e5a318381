"""
Guidepost Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── launch_secret / signed_blob: Launch parameters signed with the test secret
    ├── auth_config / gate: AuthenticationGate with strict and lenient variants
    ├── make_place / make_event / make_route: Row factories
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["APP_SECRET_TOKEN"] = "test-secret-not-real"
os.environ["PROD_FLAG"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from pydantic import SecretStr

from app.security.launch_params import build_launch_query
from app.services.auth_service import AuthConfig, AuthenticationGate

TEST_SECRET = os.environ["APP_SECRET_TOKEN"]
SIGNED_PREFIX = "vk_"


def launch_params(user_id: int = 494075, issued_at: datetime = None, **extra) -> dict:
    """A realistic launch-parameter map, as the platform would produce it."""
    issued_at = issued_at or datetime.now(timezone.utc)
    params = {
        "vk_user_id": str(user_id),
        "vk_app_id": "6736218",
        "vk_is_app_user": "1",
        "vk_are_notifications_enabled": "0",
        "vk_language": "ru",
        "vk_platform": "mobile_android",
        "vk_ts": str(int(issued_at.timestamp())),
    }
    params.update(extra)
    return params


def sign(params: dict, secret: str = TEST_SECRET) -> str:
    return build_launch_query(params, secret, signed_prefix=SIGNED_PREFIX)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_place(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = place
            result = await entity_lookup.get_place(mock_db_session, place_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def launch_secret():
    return TEST_SECRET


@pytest.fixture
def signed_blob():
    """Fresh launch parameters for user 494075, signed with the test secret."""
    return sign(launch_params())


@pytest.fixture
def stale_blob():
    """Correctly signed, but two hours old."""
    return sign(launch_params(issued_at=datetime.now(timezone.utc) - timedelta(hours=2)))


@pytest.fixture
def auth_config():
    return AuthConfig(
        secret=SecretStr(TEST_SECRET),
        strict=True,
        max_age_seconds=3600,
        signed_prefix=SIGNED_PREFIX,
        exempt_prefixes=("/docs", "/redoc", "/openapi.json", "/health"),
    )


@pytest.fixture
def gate(auth_config):
    return AuthenticationGate(auth_config)


@pytest.fixture
def lenient_gate(auth_config):
    return AuthenticationGate(auth_config.model_copy(update={"strict": False}))


@pytest.fixture
def make_place():
    """Factory for Place-like rows (attribute access only, as from_attributes reads them)."""
    def _make(**overrides):
        row = {
            "id": uuid4(),
            "name": "Hermitage Museum",
            "description": "One of the largest art museums in the world.",
            "carousel": ["https://cdn.example.org/hermitage.jpg"],
            "address_text": "Palace Square, 2",
            "address_lng": 30.3146,
            "address_lat": 59.9398,
            "is_deleted": False,
        }
        row.update(overrides)
        return SimpleNamespace(**row)
    return _make


@pytest.fixture
def make_event():
    def _make(**overrides):
        row = {
            "id": uuid4(),
            "company_id": None,
            "name": "White Nights Festival",
            "description": "Open-air concerts along the embankment.",
            "carousel": [],
            "tags": ["music", "outdoor"],
            "icon": "music",
            "start_time": datetime(2026, 6, 21, 18, 0, tzinfo=timezone.utc),
            "address_text": "Neva embankment",
            "address_lng": 30.31,
            "address_lat": 59.94,
            "is_deleted": False,
        }
        row.update(overrides)
        return SimpleNamespace(**row)
    return _make


@pytest.fixture
def make_route():
    def _make(**overrides):
        row = {
            "id": uuid4(),
            "company_id": None,
            "name": "Historic centre walk",
            "description": "Two hours through the old city.",
            "places": [],
            "events": [],
            "is_deleted": False,
        }
        row.update(overrides)
        return SimpleNamespace(**row)
    return _make


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    How:     Uses ASGITransport to route requests directly to the app.
             The database session dependency is replaced with a mock;
             tests reach it through `test_client.db`.
    """
    from app.database import get_db_session
    from app.main import app

    session = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()

    async def _override_session():
        yield session

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        client.db = session
        yield client
    app.dependency_overrides.clear()
