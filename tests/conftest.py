"""
Global pytest fixtures for the Short Link Platform test suite.

Responsibilities:
    - Provide a controllable UTC clock so expiry can be tested without sleeping
    - Provide isolated in-memory Storage and a LinkManager wired to it
    - Provide a fresh FastAPI TestClient via the app factory, with a static
      country lookup (no network) and rate limiting disabled

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_platform.manager.link_manager import LinkManager
from shortlink_platform.storage.storage import Storage

START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable UTC clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class StaticCountryLookup:
    """Country lookup double: fixed answers per IP, records every query."""

    def __init__(self, answers=None, default: str = "Unknown"):
        self.answers = dict(answers or {})
        self.default = default
        self.calls = []

    def lookup(self, ip: str) -> str:
        self.calls.append(ip)
        return self.answers.get(ip, self.default)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory storage backend."""
    return Storage()


@pytest.fixture
def manager(storage: Storage, clock: FakeClock) -> LinkManager:
    """LinkManager wired to the storage fixture and the fake clock."""
    return LinkManager(storage=storage, clock=clock, base_url="http://sho.rt")


@pytest.fixture
def countries() -> StaticCountryLookup:
    return StaticCountryLookup({"1.2.3.4": "US", "5.6.7.8": "DE"})


@pytest.fixture
def client(manager: LinkManager, countries: StaticCountryLookup) -> TestClient:
    """
    Fresh TestClient around a new app instance.

    Shares `manager` (and therefore `storage` and `clock`) with the test, so tests
    can move time or inspect storage directly.
    """
    app = create_app(manager=manager, country_lookup=countries, rate_limit="")
    return TestClient(app)
