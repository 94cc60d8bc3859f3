"""Form submission routes for the public website."""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.shared.config.settings import Settings, get_settings
from src.shared.forms.pipeline import handle_submission, read_json_body
from src.shared.integrations.airtable import AirtableClient, RecordStoreError
from src.shared.integrations.http import get_http_client
from src.shared.security.rate_limit import (
    FORM_RATE_LIMIT_MAX_REQUESTS,
    FORM_RATE_LIMIT_WINDOW_SECONDS,
    rate_limit,
)

router = APIRouter(prefix="/api", tags=["forms"])

# Applies to all forms
form_rate_limit = rate_limit(FORM_RATE_LIMIT_MAX_REQUESTS, FORM_RATE_LIMIT_WINDOW_SECONDS)


@router.post("/submit-form", dependencies=[Depends(form_rate_limit)])
async def submit_form(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    """
    Unified submission endpoint.

    The body carries a ``formType`` tag selecting the form; records are
    written with Airtable ``typecast`` so single-select fields accept the
    submitted option.
    """
    body = await read_json_body(request)
    return await handle_submission(
        request, body, body.get("formType"), settings, http_client, typecast=True
    )


# Single-form endpoints still used by older pages. They share the pipeline
# but write without typecast, as they always have.

@router.post("/submit-contact", dependencies=[Depends(form_rate_limit)])
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    body = await read_json_body(request)
    return await handle_submission(request, body, "contact", settings, http_client)


@router.post("/submit-booking-request", dependencies=[Depends(form_rate_limit)])
async def submit_booking_request(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    body = await read_json_body(request)
    return await handle_submission(request, body, "booking", settings, http_client)


@router.post("/submit-email-signup", dependencies=[Depends(form_rate_limit)])
async def submit_email_signup(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    body = await read_json_body(request)
    return await handle_submission(request, body, "email-signup", settings, http_client)


@router.post("/submit-quiz", dependencies=[Depends(form_rate_limit)])
async def submit_quiz(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    body = await read_json_body(request)
    return await handle_submission(request, body, "quiz", settings, http_client)


@router.post("/submit-fulltime-academy", dependencies=[Depends(form_rate_limit)])
async def submit_fulltime_academy(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    body = await read_json_body(request)
    return await handle_submission(request, body, "fulltime-academy", settings, http_client)


@router.post("/submit-winter-ball", dependencies=[Depends(form_rate_limit)])
async def submit_winter_ball(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    body = await read_json_body(request)
    return await handle_submission(request, body, "winter-ball", settings, http_client)


@router.get("/test-airtable")
async def test_airtable(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    """Connectivity check: list the base's tables with their field names and types."""
    base_id = settings.airtable_base_id
    api_key = settings.airtable_api_key

    if not base_id or not api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Missing environment variables",
                "hasBaseId": bool(base_id),
                "hasApiKey": bool(api_key)
            }
        )

    # Show first 10 chars only
    masked_base_id = base_id[:10] + "..."
    client = AirtableClient(base_id, api_key, http_client)

    try:
        tables = await client.list_tables()
    except RecordStoreError as e:
        logging.error(f"Airtable connectivity check failed: {e.status_code} {e.payload}")
        detail = {"error": "Failed to connect to Airtable", "status": e.status_code, "baseId": masked_base_id}
        if not settings.is_production:
            detail["details"] = e.payload
        raise HTTPException(status_code=e.status_code, detail=detail)
    except httpx.HTTPError as e:
        logging.error(f"Error connecting to Airtable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Error connecting to Airtable", "message": str(e)}
        )

    return {"success": True, "tables": tables, "baseId": masked_base_id}
