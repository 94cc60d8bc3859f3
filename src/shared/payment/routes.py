"""Square payment routes: public config for the card form and payment creation."""

import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import ValidationError

from src.shared.config.settings import Settings, get_settings
from src.shared.forms.pipeline import read_json_body
from src.shared.integrations.http import get_http_client
from src.shared.payment.schemas import CreatePaymentRequest, CreatePaymentResponse, SquareConfigResponse
from src.shared.payment.square import PaymentError, SquareClient, payment_note
from src.shared.security.responses import api_error, sanitize_error

router = APIRouter(prefix="/api", tags=["payment"])


@router.get("/square", response_model=SquareConfigResponse, response_model_exclude_none=True)
async def get_square_config(response: Response, settings: Settings = Depends(get_settings)):
    """
    Return the Square application and location ids for the Web Payments SDK.
    The access token itself is never returned.
    """
    has_app_id = bool(settings.square_application_id)
    has_location_id = bool(settings.square_location_id)
    has_access_token = bool(settings.square_access_token)
    configured = has_app_id and has_location_id and has_access_token

    logging.info(
        f"Square config check: configured={configured} hasAppId={has_app_id} "
        f"hasLocationId={has_location_id} hasAccessToken={has_access_token}"
    )

    response.headers["Cache-Control"] = "public, max-age=300"
    config = SquareConfigResponse(configured=configured, useSandbox=settings.square_use_sandbox)
    if configured:
        config.applicationId = settings.square_application_id
        config.locationId = settings.square_location_id
    if not settings.is_production:
        config.debug = {
            "hasAppId": has_app_id,
            "hasLocationId": has_location_id,
            "hasAccessToken": has_access_token,
        }
    return config


@router.post("/square", response_model=CreatePaymentResponse)
async def create_square_payment(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    """
    Charge a session package.

    Status mapping: 503 when Square is not configured, 400 for a bad body
    or a payment Square declines, 502 when Square itself fails.
    """
    if not settings.square_access_token or not settings.square_location_id:
        raise api_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Square not configured. Add SQUARE_ACCESS_TOKEN and SQUARE_LOCATION_ID to the environment."
        )

    body = await read_json_body(request)
    try:
        payment_request = CreatePaymentRequest.model_validate(body)
    except ValidationError as e:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            "Missing sourceId, amount, or idempotencyKey",
            details=e.errors(include_url=False, include_context=False),
            production=settings.is_production
        )

    client = SquareClient(
        settings.square_access_token,
        settings.square_location_id,
        http_client,
        use_sandbox=settings.square_use_sandbox
    )

    try:
        payment = await client.create_payment(
            source_id=payment_request.sourceId,
            amount=payment_request.amount,
            idempotency_key=payment_request.idempotencyKey,
            note=payment_note(payment_request.clientName, payment_request.clientId, payment_request.packageName)
        )
    except PaymentError as e:
        raise api_error(
            status.HTTP_502_BAD_GATEWAY if e.is_upstream_error else status.HTTP_400_BAD_REQUEST,
            e.message
        )
    except httpx.HTTPError as e:
        logging.error(f"create-square-payment error: {str(e)}", exc_info=True)
        message = sanitize_error(str(e) or "Payment request failed", settings.is_production)["error"]
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    return CreatePaymentResponse(success=True, payment=payment)
