"""Staff authentication utilities: bcrypt password checks and signed session tokens."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

ALGORITHM = "HS256"
# Staff sessions last one working day
SESSION_EXPIRE_HOURS = 24
SESSION_TYPES = ("staff", "parent")
DEFAULT_SESSION_TYPE = "staff"


def _password_bytes(password: str) -> bytes:
    # Bcrypt has a 72-byte limit, so we truncate if necessary
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        # Truncate to 72 bytes, handling multi-byte characters
        truncated = password_bytes[:72]
        # Remove any incomplete trailing bytes
        while truncated and truncated[-1] & 0x80 and not (truncated[-1] & 0x40):
            truncated = truncated[:-1]
        password_bytes = truncated
    return password_bytes


def hash_password(password: str) -> str:
    """Hash a password using bcrypt (used to produce ADMIN_PASSWORD_HASH)."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash; a malformed hash never matches."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        logging.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def create_session_token(secret_key: str, session_type: str = DEFAULT_SESSION_TYPE,
                         expires_delta: Optional[timedelta] = None) -> tuple:
    """
    Create a signed session token.

    Returns:
        Tuple of (token, expiry datetime in UTC)
    """
    if not secret_key:
        raise ValueError("SECRET_KEY environment variable is required for token creation.")
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=SESSION_EXPIRE_HOURS))
    payload = {
        "sub": session_type,
        "type": session_type,
        "jti": str(uuid.uuid4()),
        "exp": expire,
    }
    token = jwt.encode(payload, secret_key, algorithm=ALGORITHM)
    return token, expire


def verify_session_token(token: str, secret_key: str) -> Optional[dict]:
    """
    Verify and decode a session token.

    Returns:
        Decoded payload or None if invalid or expired
    """
    if not secret_key:
        logging.error("SECRET_KEY is not set. Cannot verify token.")
        return None
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") not in SESSION_TYPES:
        return None
    return payload


def to_epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
