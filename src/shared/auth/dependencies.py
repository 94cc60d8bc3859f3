"""Authentication dependencies for staff-only routes."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.shared.auth.auth import verify_session_token
from src.shared.config.settings import Settings, get_settings

# auto_error=False so a missing header yields our own 401 body
security = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings)
) -> dict:
    """Decoded session token of the caller, or 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_session_token(credentials.credentials, settings.secret_key)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid or expired session"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload
