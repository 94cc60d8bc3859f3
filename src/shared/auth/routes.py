"""Staff login routes for the client management pages."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.shared.auth.auth import (
    DEFAULT_SESSION_TYPE,
    create_session_token,
    to_epoch_millis,
    verify_password,
)
from src.shared.auth.dependencies import get_current_session
from src.shared.auth.schemas import LoginRequest, SessionResponse, SessionStatusResponse
from src.shared.config.settings import Settings, get_settings
from src.shared.security.origin import verify_origin
from src.shared.security.rate_limit import (
    LOGIN_RATE_LIMIT_MAX_REQUESTS,
    LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    get_client_identifier,
    rate_limit,
)
from src.shared.security.responses import api_error

router = APIRouter(prefix="/api", tags=["auth"])

# Stricter rate limiting for login attempts
login_rate_limit = rate_limit(LOGIN_RATE_LIMIT_MAX_REQUESTS, LOGIN_RATE_LIMIT_WINDOW_SECONDS)


@router.post(
    "/auth-login",
    response_model=SessionResponse,
    dependencies=[Depends(login_rate_limit), Depends(verify_origin)]
)
async def login(
    request: Request,
    login_data: LoginRequest,
    settings: Settings = Depends(get_settings)
):
    """
    Exchange the staff password for a session token.

    The password is checked against the bcrypt hash in ADMIN_PASSWORD_HASH;
    there is no built-in fallback password.
    """
    if not settings.admin_password_hash or not settings.secret_key:
        logging.error("Staff login is not configured: ADMIN_PASSWORD_HASH and SECRET_KEY are required")
        raise api_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server configuration error",
            details={"missingEnv": [
                name for name, value in (
                    ("ADMIN_PASSWORD_HASH", settings.admin_password_hash),
                    ("SECRET_KEY", settings.secret_key),
                ) if not value
            ]},
            production=settings.is_production
        )

    if not verify_password(login_data.password, settings.admin_password_hash):
        logging.warning(f"Failed staff login from {get_client_identifier(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid password"}
        )

    session_type = login_data.loginType or DEFAULT_SESSION_TYPE
    token, expires_at = create_session_token(settings.secret_key, session_type)
    logging.info(f"Issued {session_type} session")

    return SessionResponse(token=token, type=session_type, expiresAt=to_epoch_millis(expires_at))


@router.get("/auth-session", response_model=SessionStatusResponse)
async def session_status(session: dict = Depends(get_current_session)):
    """Check a session token issued by /api/auth-login."""
    return SessionStatusResponse(
        valid=True,
        type=session["type"],
        expiresAt=int(session["exp"]) * 1000
    )
