"""Tests for rate limiting through the HTTP middleware chain."""

from datetime import datetime

from fastapi.testclient import TestClient

from tests.conftest import API_KEY, API_KEY_HEADER


class TestRateLimiting:
    def test_under_limit_succeeds(self, make_client):
        client = make_client(rate_limit_max=3)
        for expected_remaining in (2, 1, 0):
            resp = client.get("/api")
            assert resp.status_code == 200
            assert resp.headers["X-RateLimit-Limit"] == "3"
            assert resp.headers["X-RateLimit-Remaining"] == str(expected_remaining)

    def test_reset_header_is_iso8601(self, make_client):
        client = make_client(rate_limit_max=3)
        resp = client.get("/api")
        reset = resp.headers["X-RateLimit-Reset"]
        assert reset.endswith("Z")
        assert datetime.fromisoformat(reset.replace("Z", "+00:00"))

    def test_over_limit_returns_429(self, make_client):
        client = make_client(rate_limit_max=3, rate_limit_max_per_key=3)
        for _ in range(3):
            client.get("/api")

        resp = client.get("/api")
        assert resp.status_code == 429
        body = resp.json()
        assert body["success"] is False
        assert "Limit is 3 requests per 15 minutes" in body["error"]
        assert isinstance(body["retryAfter"], int)
        assert 0 < body["retryAfter"] <= 15 * 60

    def test_retry_after_header_present(self, make_client):
        client = make_client(rate_limit_max=1)
        client.get("/api")
        resp = client.get("/api")
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) == resp.json()["retryAfter"]

    def test_window_minutes_rounded(self, make_client):
        client = make_client(rate_limit_max=1, rate_limit_window_ms=90_000)
        client.get("/")
        resp = client.get("/")
        assert "per 2 minutes" in resp.json()["error"]

    def test_applies_outside_api_prefix(self, make_client):
        client = make_client(rate_limit_max=2)
        client.get("/")
        client.get("/api")
        assert client.get("/").status_code == 429

    def test_health_exempt_from_rate_limit(self, make_client):
        client = make_client(rate_limit_max=1)
        for _ in range(5):
            resp = client.get("/health")
            assert resp.status_code == 200
            assert "x-ratelimit-limit" not in resp.headers

    def test_ready_exempt_from_rate_limit(self, make_client):
        client = make_client(rate_limit_max=1)
        for _ in range(5):
            assert client.get("/ready").status_code == 200

    def test_disabled_auth_ignores_presented_key(self, make_client):
        """Without key auth, a presented key earns no elevated quota."""
        client = make_client(rate_limit_max=1, rate_limit_max_per_key=100)
        assert client.get("/api", headers=API_KEY_HEADER).status_code == 200
        resp = client.get("/api", headers=API_KEY_HEADER)
        assert resp.status_code == 429


class TestDifferentiatedQuota:
    def test_key_gets_elevated_limit(self, make_client):
        """150 keyed requests succeed; the same address without a key stops at 100."""
        client = make_client(
            api_key_auth_enabled=True,
            api_keys=API_KEY,
            rate_limit_max=100,
            rate_limit_max_per_key=1000,
        )
        for _ in range(150):
            resp = client.get("/api", headers=API_KEY_HEADER)
            assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Limit"] == "1000"
        assert resp.headers["X-RateLimit-Remaining"] == "850"

        # Anonymous traffic lands on the root path, which needs no key
        for _ in range(100):
            assert client.get("/").status_code == 200
        resp = client.get("/")
        assert resp.status_code == 429
        assert "Limit is 100 requests" in resp.json()["error"]

        # Key holder unaffected by the exhausted address quota
        assert client.get("/api", params={"api_key": API_KEY}).status_code == 200

    def test_exhausted_key_does_not_block_address(self, make_client):
        client = make_client(
            api_key_auth_enabled=True,
            api_keys=API_KEY,
            rate_limit_max=2,
            rate_limit_max_per_key=2,
        )
        for _ in range(2):
            client.get("/api", headers=API_KEY_HEADER)
        assert client.get("/api", headers=API_KEY_HEADER).status_code == 429
        assert client.get("/").status_code == 200


class TestLifespan:
    def test_janitors_run_for_app_lifetime(self, make_app):
        app = make_app()
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            assert all(lim.janitor.running for lim in app.state.limiters)
        assert not any(lim.janitor.running for lim in app.state.limiters)
