"""Tests for the fixed-window rate limiter and its stores."""

import pytest
from sqlalchemy.pool import StaticPool

from src.shared.security.rate_limit import (
    MemoryRateLimitStore,
    RateLimiter,
    RateWindow,
    rate_limit_headers,
)
from src.shared.security.rate_limit_database import SqlRateLimitStore, create_rate_limit_engine


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sqlite_store() -> SqlRateLimitStore:
    engine = create_rate_limit_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    store = SqlRateLimitStore(engine)
    store.create_tables()
    return store


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryRateLimitStore()
    return sqlite_store()


class TestRateLimiter:

    def test_allows_up_to_limit_then_denies(self, store):
        limiter = RateLimiter(store, clock=FakeClock())

        remaining = [limiter.check("1.2.3.4", 5, 60).remaining for _ in range(5)]
        assert remaining == [4, 3, 2, 1, 0]

        denied = limiter.check("1.2.3.4", 5, 60)
        assert not denied.allowed
        assert denied.remaining == 0

    def test_window_resets_after_expiry(self, store):
        clock = FakeClock()
        limiter = RateLimiter(store, clock=clock)
        first = limiter.check("1.2.3.4", 2, 60)
        limiter.check("1.2.3.4", 2, 60)

        clock.advance(60)
        # The window is still open at exactly its length
        assert not limiter.check("1.2.3.4", 2, 60).allowed

        clock.advance(1)
        result = limiter.check("1.2.3.4", 2, 60)
        assert result.allowed
        assert result.remaining == 1
        assert result.reset_at == clock.now + 60
        assert first.reset_at == clock.now - 1

    def test_identifiers_are_independent(self, store):
        limiter = RateLimiter(store, clock=FakeClock())
        limiter.check("1.1.1.1", 1, 60)

        assert not limiter.check("1.1.1.1", 1, 60).allowed
        assert limiter.check("2.2.2.2", 1, 60).allowed

    def test_sweeps_expired_windows(self, store):
        clock = FakeClock()
        limiter = RateLimiter(store, clock=clock)
        limiter.check("stale", 10, 60)

        clock.advance(120)
        limiter.check("fresh", 10, 60)

        assert store.get("stale") is None
        assert store.get("fresh").count == 1


class TestMemoryRateLimitStore:

    def test_sweep_returns_removed_count(self):
        store = MemoryRateLimitStore()
        store.put("a", RateWindow(count=3, window_start=0, window_seconds=60))
        store.put("b", RateWindow(count=1, window_start=100, window_seconds=60))

        assert store.sweep(120) == 1
        assert len(store) == 1


class TestSqlRateLimitStore:

    def test_put_updates_existing_row(self):
        store = sqlite_store()
        store.put("a", RateWindow(count=1, window_start=10, window_seconds=60))
        store.put("a", RateWindow(count=4, window_start=10, window_seconds=60))

        window = store.get("a")
        assert window.count == 4
        assert window.reset_at == 70

    def test_missing_identifier(self):
        assert sqlite_store().get("nobody") is None


def test_rate_limit_headers():
    headers = rate_limit_headers(10, RateLimiter(MemoryRateLimitStore(), clock=lambda: 0).check("x", 10, 60))
    assert headers == {
        "X-RateLimit-Limit": "10",
        "X-RateLimit-Remaining": "9",
        "X-RateLimit-Reset": "1970-01-01T00:01:00Z",
    }
