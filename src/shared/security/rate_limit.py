"""
Fixed-window rate limiting for public endpoints.

The limiter owns the algorithm; where the counters live is up to the
injected store. The in-memory store only limits within one process, so a
SQL-backed store is available for deployments running several instances.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol

from fastapi import HTTPException, Request, Response, status

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please try again later."

# Submission and login limits
FORM_RATE_LIMIT_MAX_REQUESTS = 10
FORM_RATE_LIMIT_WINDOW_SECONDS = 60
LOGIN_RATE_LIMIT_MAX_REQUESTS = 5
LOGIN_RATE_LIMIT_WINDOW_SECONDS = 60


@dataclass
class RateWindow:
    """Counter for one client identifier."""
    count: int
    window_start: float
    window_seconds: float

    @property
    def reset_at(self) -> float:
        return self.window_start + self.window_seconds

    def expired(self, now: float) -> bool:
        return now - self.window_start > self.window_seconds


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


class RateLimitStore(Protocol):
    """Storage for rate windows, keyed by client identifier."""

    def get(self, identifier: str) -> Optional[RateWindow]:
        ...

    def put(self, identifier: str, window: RateWindow) -> None:
        ...

    def sweep(self, now: float) -> int:
        """Remove expired windows, returning how many were dropped."""
        ...


class MemoryRateLimitStore:
    """Process-local store. Resets whenever the process restarts."""

    def __init__(self):
        self._windows: Dict[str, RateWindow] = {}

    def get(self, identifier: str) -> Optional[RateWindow]:
        return self._windows.get(identifier)

    def put(self, identifier: str, window: RateWindow) -> None:
        self._windows[identifier] = window

    def sweep(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if window.expired(now)]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


class RateLimiter:
    """Fixed-window counter over an injected RateLimitStore."""

    def __init__(self, store: RateLimitStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    def check(self, identifier: str, max_requests: int = 10, window_seconds: float = 60) -> RateLimitResult:
        """
        Count a request from identifier and decide whether it is allowed.

        Args:
            identifier: Client identifier (usually the client IP)
            max_requests: Requests allowed per window
            window_seconds: Window length in seconds

        Returns:
            RateLimitResult with the remaining budget and the window reset time
        """
        now = self.clock()

        # Lazy global cleanup of stale windows
        self.store.sweep(now)

        window = self.store.get(identifier)
        if window is None or window.expired(now):
            window = RateWindow(count=1, window_start=now, window_seconds=window_seconds)
            self.store.put(identifier, window)
            return RateLimitResult(allowed=True, remaining=max_requests - 1, reset_at=window.reset_at)

        window.count += 1
        self.store.put(identifier, window)

        if window.count > max_requests:
            return RateLimitResult(allowed=False, remaining=0, reset_at=window.reset_at)

        return RateLimitResult(
            allowed=True,
            remaining=max_requests - window.count,
            reset_at=window.reset_at
        )


def get_client_identifier(request: Request) -> str:
    """Get client identifier for rate limiting."""
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    # Fallback to direct connection
    return request.client.host if request.client else "unknown"


def get_rate_limiter(request: Request) -> RateLimiter:
    """FastAPI dependency returning the limiter owned by the application."""
    return request.app.state.rate_limiter


def rate_limit_headers(max_requests: int, result: RateLimitResult) -> Dict[str, str]:
    reset = datetime.fromtimestamp(result.reset_at, tz=timezone.utc)
    return {
        "X-RateLimit-Limit": str(max_requests),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": reset.isoformat().replace("+00:00", "Z"),
    }


def rate_limit(max_requests: int, window_seconds: float):
    """
    Build a dependency that enforces the given limit for the calling client.

    The X-RateLimit-* headers are set on every response; a denied request
    is rejected with 429 before the route body runs.
    """
    def dependency(request: Request, response: Response) -> RateLimitResult:
        limiter = get_rate_limiter(request)
        identifier = get_client_identifier(request)
        result = limiter.check(identifier, max_requests, window_seconds)

        headers = rate_limit_headers(max_requests, result)
        response.headers.update(headers)
        # Error responses are rendered by the app's exception handlers, which read these back
        request.state.rate_limit_headers = headers

        if not result.allowed:
            retry_after = max(0, math.ceil(result.reset_at - limiter.clock()))
            logging.warning(f"Rate limit exceeded for {identifier} on {request.url.path}")
            headers["Retry-After"] = str(retry_after)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"error": TOO_MANY_REQUESTS_MESSAGE, "retryAfter": retry_after},
                headers=headers
            )
        return result

    return dependency
