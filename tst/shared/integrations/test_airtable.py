"""Tests for the Airtable record store client."""

import json

import httpx
import pytest

from src.shared.integrations.airtable import AirtableClient, RecordStoreError


def client_for(handler) -> AirtableClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AirtableClient("appBASE", "pat-key", http_client)


class TestCreateRecord:

    @pytest.mark.asyncio
    async def test_posts_fields(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": "rec1", "fields": {"Name": "Jane"}})

        record = await client_for(handler).create_record("Contact Form Submissions", {"Name": "Jane"})

        assert record["id"] == "rec1"
        request = seen[0]
        assert str(request.url) == "https://api.airtable.com/v0/appBASE/Contact%20Form%20Submissions"
        assert request.headers["Authorization"] == "Bearer pat-key"
        assert json.loads(request.content) == {"fields": {"Name": "Jane"}}

    @pytest.mark.asyncio
    async def test_typecast_flag(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "rec1"})

        await client_for(handler).create_record("Winter Ball Registrations", {"Age": 12}, typecast=True)

        assert seen == [{"fields": {"Age": 12}, "typecast": True}]

    @pytest.mark.asyncio
    async def test_table_name_with_slash_is_encoded(self):
        seen = []

        def handler(request):
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={"id": "rec1"})

        await client_for(handler).create_record("A/B Table", {})

        assert seen == [b"/v0/appBASE/A%2FB%20Table"]

    @pytest.mark.asyncio
    async def test_rejected_field(self):
        def handler(request):
            return httpx.Response(422, json={
                "error": {"type": "UNKNOWN_FIELD_NAME", "message": 'Unknown field name: "Nmae"'}
            })

        with pytest.raises(RecordStoreError) as exc_info:
            await client_for(handler).create_record("Booking Requests", {"Nmae": "x"})

        error = exc_info.value
        assert error.status_code == 422
        assert error.is_client_error
        assert error.table_name == "Booking Requests"
        assert error.message == 'Unknown field name: "Nmae"'

    @pytest.mark.asyncio
    async def test_missing_table(self):
        def handler(request):
            return httpx.Response(404, text="not found")

        with pytest.raises(RecordStoreError) as exc_info:
            await client_for(handler).create_record("Nope", {})

        assert exc_info.value.payload == {"raw": "not found"}
        assert exc_info.value.message == 'Table "Nope" not found in Airtable base.'

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RecordStoreError) as exc_info:
            await client_for(handler).create_record("Booking Requests", {})

        assert exc_info.value.status_code == 0
        assert not exc_info.value.is_client_error
        assert exc_info.value.message == "Could not reach Airtable."


class TestListTables:

    @pytest.mark.asyncio
    async def test_lists_names_and_field_types(self):
        def handler(request):
            assert request.url.path == "/v0/meta/bases/appBASE/tables"
            return httpx.Response(200, json={"tables": [
                {"id": "tbl1", "name": "Booking Requests", "fields": [
                    {"id": "fld1", "name": "Name", "type": "singleLineText"},
                ]},
            ]})

        tables = await client_for(handler).list_tables()

        assert tables == [
            {"name": "Booking Requests", "fields": [{"name": "Name", "type": "singleLineText"}]}
        ]

    @pytest.mark.asyncio
    async def test_error_status(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"type": "AUTHENTICATION_REQUIRED", "message": "Invalid token"}})

        with pytest.raises(RecordStoreError) as exc_info:
            await client_for(handler).list_tables()

        assert exc_info.value.status_code == 401
