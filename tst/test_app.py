"""Tests for application assembly: lifespan, stores and error rendering."""

import httpx
from fastapi.testclient import TestClient

from src.app import build_rate_limiter, create_app
from src.shared.security.rate_limit import MemoryRateLimitStore, RateLimiter
from src.shared.security.rate_limit_database import SqlRateLimitStore


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_unknown_route(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_lifespan_owns_http_client(settings):
    app = create_app(settings=settings, rate_limiter=RateLimiter(MemoryRateLimitStore()))

    with TestClient(app):
        assert isinstance(app.state.http_client, httpx.AsyncClient)
    assert app.state.http_client is None


def test_memory_store_by_default(settings):
    assert isinstance(build_rate_limiter(settings).store, MemoryRateLimitStore)


def test_database_store_when_configured(make_settings):
    limiter = build_rate_limiter(make_settings(rate_limit_database_url="sqlite://"))

    assert isinstance(limiter.store, SqlRateLimitStore)
    assert limiter.check("1.2.3.4", 1, 60).allowed


def test_unhandled_error_is_generic_500(app):
    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/boom")

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_unhandled_error_hides_details_in_production(app, settings):
    settings.environment = "production"

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "hunter2" not in response.text


def test_login_body_errors_keep_rate_limit_headers(client):
    response = client.post("/api/auth-login", json={"password": "  "})

    assert response.status_code == 400
    assert response.headers["X-RateLimit-Limit"] == "5"


def test_cors_preflight(client):
    response = client.options(
        "/api/submit-form",
        headers={"Origin": "https://epcla.com", "Access-Control-Request-Method": "POST"}
    )

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "https://epcla.com"
