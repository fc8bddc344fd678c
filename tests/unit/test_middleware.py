"""
Test the HTTP middleware stack: security headers, input validation,
rate limiting and request logging.
"""
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pswdocs.middleware import rate_limiter
from pswdocs.middleware import (
    InputValidationMiddleware,
    RateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)


def make_app(*middleware) -> FastAPI:
    app = FastAPI()

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.get("/api/items")
    def items(q: str = ""):
        return {"q": q}

    @app.post("/api/echo")
    def echo(payload: dict):
        return payload

    @app.post("/api/generate-ai-report")
    def report():
        return {"success": True}

    for cls, kwargs in middleware:
        app.add_middleware(cls, **kwargs)
    return app


class TestSecurityHeaders:
    """Every response carries the hardening headers."""

    def test_headers_present(self):
        client = TestClient(make_app((SecurityHeadersMiddleware, {})))
        response = client.get("/api/items")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
        assert response.headers["Cache-Control"] == "no-store"
        assert "Strict-Transport-Security" not in response.headers

    def test_hsts_only_behind_https(self):
        client = TestClient(make_app((SecurityHeadersMiddleware, {"enable_hsts": True})))

        plain = client.get("/api/items")
        proxied = client.get("/api/items", headers={"x-forwarded-proto": "https"})

        assert "Strict-Transport-Security" not in plain.headers
        assert proxied.headers["Strict-Transport-Security"].startswith("max-age=31536000")


class TestInputValidation:
    """Oversized bodies and traversal strings are rejected before routing."""

    def test_oversized_body_rejected(self):
        client = TestClient(make_app((InputValidationMiddleware, {"max_body_size": 64})))
        response = client.post("/api/echo", content=b"{" + b" " * 100 + b"}", headers={"content-type": "application/json"})

        assert response.status_code == 413
        assert response.json()["error_code"] == "PAYLOAD_TOO_LARGE"

    def test_small_body_passes(self):
        client = TestClient(make_app((InputValidationMiddleware, {"max_body_size": 1024})))
        response = client.post("/api/echo", json={"a": 1})
        assert response.status_code == 200
        assert response.json() == {"a": 1}

    @pytest.mark.parametrize("value", ["../../etc/passwd", "%2e%2e/secret", "..\\windows"])
    def test_path_traversal_blocked(self, value):
        client = TestClient(make_app((InputValidationMiddleware, {})))
        response = client.get("/api/items", params={"q": value})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_long_query_parameter_rejected(self):
        client = TestClient(make_app((InputValidationMiddleware, {"max_query_length": 10})))
        response = client.get("/api/items", params={"q": "x" * 11})

        assert response.status_code == 400
        assert "too long" in response.json()["error"]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Sliding-window limits, stricter on AI routes."""

    def test_ai_routes_use_ai_limit(self):
        limiter = RateLimiter(ai_limit=2, default_limit=5, window_seconds=60)

        assert limiter.check("10.0.0.1", "/api/generate-ai-report").allowed
        assert limiter.check("10.0.0.1", "/api/transcribe-whisper").allowed
        decision = limiter.check("10.0.0.1", "/api/xtts/synthesize")

        assert not decision.allowed
        assert decision.rule.name == "ai"
        assert decision.remaining == 0
        assert decision.retry_after >= 1

    def test_default_limit_for_other_routes(self):
        limiter = RateLimiter(ai_limit=1, default_limit=3, window_seconds=60)
        results = [limiter.check("10.0.0.1", "/api/reports/abc").allowed for _ in range(4)]
        assert results == [True, True, True, False]

    def test_clients_tracked_independently(self):
        limiter = RateLimiter(ai_limit=1, default_limit=1, window_seconds=60)
        assert limiter.check("10.0.0.1", "/api/items").allowed
        assert limiter.check("10.0.0.2", "/api/items").allowed

    def test_window_slides(self):
        clock = FakeClock()
        limiter = RateLimiter(ai_limit=1, default_limit=1, window_seconds=60, clock=clock)

        assert limiter.check("10.0.0.1", "/api/items").allowed
        clock.now += 30
        blocked = limiter.check("10.0.0.1", "/api/items")
        assert not blocked.allowed
        assert blocked.retry_after == 31

        clock.now += 30
        assert limiter.check("10.0.0.1", "/api/items").allowed

    def test_idle_clients_pruned(self, monkeypatch):
        monkeypatch.setattr(rate_limiter, "PRUNE_EVERY", 2)
        clock = FakeClock()
        limiter = RateLimiter(window_seconds=60, clock=clock)

        limiter.check("10.0.0.1", "/api/items")
        clock.now += 120
        limiter.check("10.0.0.2", "/api/items")

        assert limiter.tracked_clients() == 1

    def test_middleware_returns_429_envelope(self):
        limiter = RateLimiter(ai_limit=1, default_limit=1, window_seconds=60)
        client = TestClient(make_app((RateLimitMiddleware, {"limiter": limiter})))

        first = client.post("/api/generate-ai-report")
        second = client.post("/api/generate-ai-report")

        assert first.status_code == 200
        assert first.headers["X-RateLimit-Remaining"] == "0"
        assert second.status_code == 429
        assert second.json()["error_code"] == "RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in second.headers

    def test_health_is_exempt(self):
        limiter = RateLimiter(ai_limit=1, default_limit=1, window_seconds=60)
        client = TestClient(make_app((RateLimitMiddleware, {"limiter": limiter})))
        assert all(client.get("/health").status_code == 200 for _ in range(3))


class TestRequestLogging:
    """One log line per request, tagged with a request id."""

    def test_request_id_generated(self, caplog):
        client = TestClient(make_app((RequestLoggingMiddleware, {})))
        with caplog.at_level(logging.INFO, logger="pswdocs.requests"):
            response = client.get("/api/items")

        assert response.headers["X-Request-ID"].startswith("req_")
        record = next(r for r in caplog.records if r.name == "pswdocs.requests")
        assert record.path == "/api/items"
        assert record.status == 200

    def test_request_id_propagated(self):
        client = TestClient(make_app((RequestLoggingMiddleware, {})))
        response = client.get("/api/items", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"
