"""Pydantic schemas for staff login requests and responses."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    """Login request schema."""
    password: str = Field(..., max_length=10000)
    loginType: Optional[Literal["staff", "parent"]] = None

    @field_validator('password')
    @classmethod
    def password_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator('loginType', mode='before')
    @classmethod
    def blank_login_type(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v


class SessionResponse(BaseModel):
    """Issued staff session."""
    success: bool = True
    token: str
    type: str
    expiresAt: int  # epoch milliseconds


class SessionStatusResponse(BaseModel):
    valid: bool
    type: str
    expiresAt: int
