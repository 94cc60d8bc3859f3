"""Shared outbound HTTP client."""

import httpx
from fastapi import Request


def create_http_client(timeout_seconds: float = 15) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_seconds)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """FastAPI dependency returning the client opened for the app's lifespan."""
    return request.app.state.http_client
