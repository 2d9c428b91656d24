"""Tests for the shared error body on framework-level failures."""

from fastapi.testclient import TestClient


class TestNotFound:
    def test_unknown_route(self, make_client):
        resp = make_client().get("/nonexistent")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Route not found"}

    def test_unknown_api_route_still_requires_key(self, auth_client):
        resp = auth_client.get("/api/nonexistent")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    def test_method_not_allowed(self, make_client):
        resp = make_client().post("/health")
        assert resp.status_code == 405
        assert resp.json() == {"success": False, "error": "Method Not Allowed"}


class TestValidation:
    def test_empty_message(self, make_client):
        resp = make_client().post("/api/ai/chat", json={"message": ""})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("message:")
        assert "detail" not in body

    def test_missing_body(self, make_client):
        resp = make_client().post("/api/ai/chat")
        assert resp.status_code == 422
        assert resp.json()["success"] is False


class TestUnhandled:
    def test_unexpected_exception_returns_500(self, make_app, caplog):
        app = make_app()

        async def explode():
            raise RuntimeError("kaboom")

        app.add_api_route("/api/explode", explode)
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/api/explode")
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error"}
        assert any("Unhandled error on GET /api/explode" in r.getMessage() for r in caplog.records)
