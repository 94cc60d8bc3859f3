"""Submission pipeline: validate, map, store in Airtable, then notify."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from fastapi import Request, status

from src.shared.config.settings import Settings
from src.shared.forms.models import FormDescriptor, MissingFieldsError, Submission, UnknownFormTypeError
from src.shared.forms.registry import VALID_FORM_TYPES, get_form_descriptor
from src.shared.integrations.airtable import AirtableClient, RecordStoreError
from src.shared.integrations.resend import ResendNotifier
from src.shared.security.origin import check_request_origin
from src.shared.security.responses import api_error, success_body
from src.shared.security.validation import validate_request_body


def submission_date() -> str:
    """Date-only UTC timestamp; Airtable date fields accept it regardless of settings."""
    return datetime.now(timezone.utc).date().isoformat()


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Decode the request body, rejecting anything but a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")
    if not isinstance(body, dict):
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")
    return body


def require_airtable_settings(settings: Settings) -> None:
    """Fail with 500 when the record store is not configured."""
    missing = settings.missing_airtable_settings()
    if missing:
        logging.error(f"Server configuration missing environment variables: {', '.join(missing)}")
        raise api_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server configuration error",
            details={"missingEnv": missing},
            production=settings.is_production
        )


async def process_submission(
    descriptor: FormDescriptor,
    body: Dict[str, Any],
    settings: Settings,
    http_client: httpx.AsyncClient,
    typecast: bool = False,
    submitted_at: Optional[str] = None
) -> Dict[str, Any]:
    """
    Validate and deliver one submission.

    The Airtable write is mandatory; the notification email is best-effort
    and never changes the outcome once the record is stored.

    Returns:
        Response body for a successful submission
    """
    validation = validate_request_body(body, descriptor.rules)
    if not validation.valid:
        # Field errors only echo the caller's input, so they are returned in every environment
        raise api_error(status.HTTP_400_BAD_REQUEST, "Validation failed", details=validation.errors)

    submission = Submission(
        form_type=descriptor.form_type,
        raw=body,
        values=validation.sanitized,
        submitted_at=submitted_at or submission_date()
    )

    try:
        outcome = descriptor.build(submission, settings.notify_recipients)
    except MissingFieldsError as e:
        raise api_error(status.HTTP_400_BAD_REQUEST, str(e), details={"missingFields": e.fields})

    store = AirtableClient(settings.airtable_base_id, settings.airtable_api_key, http_client)
    try:
        await store.create_record(descriptor.table_name, outcome.record, typecast=typecast)
    except RecordStoreError as e:
        kind = "rejected by Airtable" if e.is_client_error else "Airtable unavailable"
        logging.error(f"Failed to save {descriptor.form_type} submission ({kind}, status {e.status_code}): {e.message}")
        raise api_error(
            status.HTTP_502_BAD_GATEWAY,
            e.message,
            details={"tableName": descriptor.table_name, "airtable": e.payload},
            production=settings.is_production
        )

    logging.info(f"Saved {descriptor.form_type} submission to {descriptor.table_name}")

    if outcome.email is None:
        return success_body()

    notifier = ResendNotifier(settings.resend_api_key, settings.notify_from, http_client)
    if not notifier.configured:
        logging.warning(f"RESEND_API_KEY missing - skipping email notification ({descriptor.form_type})")
        return success_body(emailSent=False)

    await notifier.notify(
        outcome.email.subject,
        outcome.email.recipients,
        outcome.email.html,
        context=descriptor.form_type
    )
    return success_body()


async def handle_submission(
    request: Request,
    body: Dict[str, Any],
    form_type: Optional[str],
    settings: Settings,
    http_client: httpx.AsyncClient,
    typecast: bool = False
) -> Dict[str, Any]:
    """
    Run the checks that precede processing, in order: origin guard (for
    form types that use it), configuration, then the formType tag itself.
    """
    try:
        descriptor = get_form_descriptor(form_type)
    except UnknownFormTypeError:
        descriptor = None

    if descriptor is not None and descriptor.check_origin:
        check_request_origin(request, settings)

    require_airtable_settings(settings)

    if descriptor is None:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid or missing formType",
            details={"formType": form_type or "missing", "validTypes": VALID_FORM_TYPES},
            production=settings.is_production
        )

    return await process_submission(descriptor, body, settings, http_client, typecast=typecast)
