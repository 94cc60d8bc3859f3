"""Error and success payloads shared by every endpoint."""

from typing import Any, Dict, Optional

from fastapi import HTTPException


def error_body(message: str, details: Any = None, production: bool = False) -> Dict[str, Any]:
    """
    Build the ``{"error", "details"}`` payload.

    ``details`` is left out when empty or when running in production.
    """
    body: Dict[str, Any] = {"error": message}
    if details is not None and not production:
        body["details"] = details
    return body


def api_error(
    status_code: int,
    message: str,
    details: Any = None,
    production: bool = False,
    headers: Optional[Dict[str, str]] = None
) -> HTTPException:
    """Create an HTTPException whose detail is rendered as the response body."""
    return HTTPException(
        status_code=status_code,
        detail=error_body(message, details, production),
        headers=headers
    )


def sanitize_error(message: str, production: bool) -> Dict[str, str]:
    """Client-safe description of an internal error."""
    if production:
        # In production, don't expose internal errors
        if "environment variables" in message:
            return {"error": "Server configuration error. Please contact support."}
        if "Airtable" in message:
            return {"error": "Failed to save data. Please try again."}
        return {"error": "An error occurred. Please try again later."}
    return {"error": message or "An error occurred"}


def success_body(**extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    body.update(extra)
    return body
