"""Pydantic schemas for the Square payment API."""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator


class CreatePaymentRequest(BaseModel):
    """Card payment for a session package, as posted by the client pages."""
    sourceId: str = Field(..., min_length=1, description="Card token from the Web Payments SDK")
    amount: int = Field(..., ge=0, description="Amount in cents")
    idempotencyKey: str = Field(..., min_length=1)
    clientId: Optional[Union[str, int]] = None
    clientName: Optional[str] = None
    packageName: Optional[str] = None
    sessionCount: Optional[int] = None

    @field_validator('sourceId', 'idempotencyKey')
    @classmethod
    def strip_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class CreatePaymentResponse(BaseModel):
    success: bool
    payment: Dict[str, Any]


class SquareConfigResponse(BaseModel):
    """Public configuration for the browser payment form."""
    configured: bool
    useSandbox: bool
    applicationId: Optional[str] = None
    locationId: Optional[str] = None
    debug: Optional[Dict[str, bool]] = None
