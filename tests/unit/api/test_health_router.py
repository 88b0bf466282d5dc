"""Tests for the health endpoints."""


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness_reports_checks(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["chat"]["type"] == "in-memory"
        assert body["checks"]["review_guard"] == {"backend": "database"}

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "X-Request-ID" in response.headers


class TestServe:
    def test_run_uses_configured_host_and_port(self, monkeypatch, test_config):
        import uvicorn

        from src.portal.api.http import app as app_module

        calls = []
        monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))

        app_module.run()

        ((args, kwargs),) = calls
        assert args == (app_module.app,)
        assert kwargs["host"] == test_config.app.host
        assert kwargs["port"] == test_config.app.port
