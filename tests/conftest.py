"""Shared test fixtures."""

import os

# Set env vars before any pulse imports so Settings picks them up
os.environ.setdefault("PULSE_OPENROUTER_API_KEY", "")
os.environ.setdefault("PULSE_API_KEY_AUTH_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from pulse.config import Settings
from pulse.main import create_app
from pulse.middleware.rate_limiter import SlidingWindowRateLimiter

API_KEY = "sk-test-0123456789abcdef0123456789abcdef0123456789abcdef"
API_KEY_HEADER = {"X-API-Key": API_KEY}


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: int = 0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000_000)


@pytest.fixture
def limiter(clock: FakeClock):
    lim = SlidingWindowRateLimiter(60_000, 2, max_requests_per_key=5, clock=clock)
    yield lim
    lim.close()


@pytest.fixture
def make_app():
    """Build isolated apps from explicit settings; tears down every limiter afterwards."""
    apps = []

    def _make(**overrides):
        app = create_app(Settings(**overrides))
        apps.append(app)
        return app

    yield _make
    for app in apps:
        app.state.limiters.shutdown()


@pytest.fixture
def make_client(make_app):
    def _make(**overrides) -> TestClient:
        return TestClient(make_app(**overrides))

    return _make


@pytest.fixture
def auth_client(make_client) -> TestClient:
    """Key auth enabled with a single valid key."""
    return make_client(api_key_auth_enabled=True, api_keys=API_KEY)
