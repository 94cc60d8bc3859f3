"""Origin/Referer filtering for browser-submitted forms."""

import logging
from typing import Iterable, Optional
from urllib.parse import urlsplit

from fastapi import Depends, HTTPException, Request, status

from src.shared.config.settings import Settings, get_settings

INVALID_ORIGIN_MESSAGE = "Invalid request origin"


def _hostname(header_value: str) -> Optional[str]:
    try:
        hostname = urlsplit(header_value.strip()).hostname
    except ValueError:
        return None
    return hostname or None


def is_allowed_origin(
    header_value: Optional[str],
    allowed_hosts: Iterable[str],
    preview_suffixes: Iterable[str] = ()
) -> bool:
    """
    Decide whether a declared Origin/Referer is acceptable.

    This is an advisory check on what the client declares, not CSRF token
    verification.

    Args:
        header_value: Raw Origin (or Referer) header, may be None
        allowed_hosts: Hostnames accepted along with their subdomains
        preview_suffixes: Hostname suffixes of hosting preview deployments

    Returns:
        True if the request may proceed
    """
    if not header_value or not header_value.strip():
        # Same-origin and non-browser callers send no origin
        return True

    hostname = _hostname(header_value)
    if hostname is None:
        return False
    hostname = hostname.lower()

    for allowed in allowed_hosts:
        allowed = allowed.lower()
        if hostname == allowed or hostname.endswith("." + allowed):
            return True

    for suffix in preview_suffixes:
        suffix = suffix.lower()
        if not suffix.startswith("."):
            suffix = "." + suffix
        if hostname.endswith(suffix):
            return True

    return False


def request_origin(request: Request) -> Optional[str]:
    return request.headers.get("origin") or request.headers.get("referer")


def check_request_origin(request: Request, settings: Settings) -> None:
    """Raise 403 when the request's declared origin is not allowed."""
    origin = request_origin(request)
    if not is_allowed_origin(origin, settings.allowed_origin_hosts, settings.preview_origin_suffixes):
        logging.warning(f"Rejected request origin {origin!r} on {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": INVALID_ORIGIN_MESSAGE}
        )


def verify_origin(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Dependency form of check_request_origin."""
    check_request_origin(request, settings)
