"""Shared fixtures: fully overridden settings and a fake upstream for outbound HTTP."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.shared.config.settings import Settings, get_settings
from src.shared.security.rate_limit import MemoryRateLimitStore, RateLimiter

TEST_SETTINGS = {
    "airtable_base_id": "appTESTBASE123456",
    "airtable_api_key": "pat-test-key",
    "resend_api_key": "re_test_key",
    "notify_from": "Elite Performance Clinic <noreply@epcla.com>",
    "notify_recipients": ["info@epcla.com", "staff@epcla.com"],
    "square_application_id": "",
    "square_location_id": "",
    "square_access_token": "",
    "square_use_sandbox": False,
    "admin_password_hash": None,
    "secret_key": None,
    "environment": "development",
    "allowed_origin_hosts": ["epcla.com", "www.epcla.com", "localhost"],
    "preview_origin_suffixes": [".vercel.app"],
    "cors_allowed_origins": ["https://epcla.com"],
    "rate_limit_database_url": None,
    "http_timeout_seconds": 5.0,
    "log_level": "WARNING",
}


class FakeUpstream:
    """Records outbound requests and answers them per host."""

    def __init__(self):
        self.requests = []
        self.airtable_status = 200
        self.airtable_body = {"id": "recTEST0001", "fields": {}}
        self.tables_status = 200
        self.tables_body = {"tables": []}
        self.resend_status = 200
        self.resend_error = None
        self.square_status = 200
        self.square_body = {"payment": {"id": "pay_1", "status": "COMPLETED"}}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "api.airtable.com":
            if request.method == "GET":
                return httpx.Response(self.tables_status, json=self.tables_body)
            return httpx.Response(self.airtable_status, json=self.airtable_body)
        if host == "api.resend.com":
            if self.resend_error is not None:
                raise self.resend_error
            return httpx.Response(self.resend_status, json={"id": "email_1"})
        if host.startswith("connect.squareup"):
            return httpx.Response(self.square_status, json=self.square_body)
        return httpx.Response(404, json={"message": "unexpected host"})

    def sent_to(self, host: str) -> list:
        return [r for r in self.requests if r.url.host == host]

    @property
    def airtable_posts(self) -> list:
        return [r for r in self.sent_to("api.airtable.com") if r.method == "POST"]

    @property
    def emails(self) -> list:
        return self.sent_to("api.resend.com")


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.fixture
def make_settings():
    def factory(**overrides) -> Settings:
        values = dict(TEST_SETTINGS)
        values.update(overrides)
        return Settings(**values)
    return factory


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def app(settings, http_client):
    application = create_app(
        settings=settings,
        rate_limiter=RateLimiter(MemoryRateLimitStore()),
        http_client=http_client
    )
    # Settings are read per request; the same object lets tests flip values
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def json_of():
    return request_json
