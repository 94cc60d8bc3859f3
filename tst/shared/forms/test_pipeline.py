"""Tests for the submission pipeline outside the HTTP layer."""

import re

import pytest
from fastapi import HTTPException

from src.shared.forms.descriptors import CONTACT, QUIZ
from src.shared.forms.models import FieldMap, FormDescriptor, FormOutcome, require_fields
from src.shared.forms.pipeline import process_submission, require_airtable_settings, submission_date
from src.shared.security.validation import FieldRule

CONTACT_BODY = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "subject": "Hello",
    "message": "Hi",
}


def test_submission_date_is_iso_date():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", submission_date())


def test_require_airtable_settings_lists_missing(make_settings):
    with pytest.raises(HTTPException) as exc_info:
        require_airtable_settings(make_settings(airtable_base_id=None, airtable_api_key=None))

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail["details"] == {"missingEnv": ["AIRTABLE_BASE_ID", "AIRTABLE_API_KEY"]}


@pytest.mark.asyncio
async def test_stores_with_given_timestamp(settings, http_client, upstream, json_of):
    result = await process_submission(CONTACT, CONTACT_BODY, settings, http_client, submitted_at="2025-02-01")

    assert result == {"success": True}
    body = json_of(upstream.airtable_posts[0])
    assert "typecast" not in body
    assert body["fields"]["Submitted At"] == "2025-02-01"


@pytest.mark.asyncio
async def test_form_without_email_never_contacts_resend(settings, http_client, upstream):
    body = {"email": "q@example.com", "goal": "g", "body_areas": "b", "activity": "a", "priority": "p"}

    result = await process_submission(QUIZ, body, settings, http_client)

    assert result == {"success": True}
    assert upstream.emails == []


@pytest.mark.asyncio
async def test_builder_missing_fields_is_client_error(settings, http_client, upstream):
    # Rules accept a blank field that the builder still needs
    def build(submission, recipients):
        require_fields(submission, ("nickname",))
        return FormOutcome(record=FieldMap().apply(submission))

    descriptor = FormDescriptor(
        form_type="custom",
        table_name="Custom",
        rules={"nickname": FieldRule("text")},
        required=("nickname",),
        build=build,
    )

    with pytest.raises(HTTPException) as exc_info:
        await process_submission(descriptor, {}, settings, http_client)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == {
        "error": "Missing required fields: nickname",
        "details": {"missingFields": ["nickname"]},
    }
    assert upstream.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code, kind", [
    (422, "rejected by Airtable"),
    (503, "Airtable unavailable"),
])
async def test_store_failure_log_tells_rejections_from_outages(
    settings, http_client, upstream, caplog, status_code, kind
):
    upstream.airtable_status = status_code
    upstream.airtable_body = {"message": "nope"}

    with pytest.raises(HTTPException) as exc_info:
        await process_submission(CONTACT, CONTACT_BODY, settings, http_client)

    assert exc_info.value.status_code == 502
    assert f"({kind}, status {status_code})" in caplog.text
