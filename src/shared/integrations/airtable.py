"""Airtable REST client used as the record store for form submissions."""

import json
import logging
from typing import Any, Dict, List, Mapping, Union
from urllib.parse import quote

import httpx

AIRTABLE_API_URL = "https://api.airtable.com/v0"

FieldValue = Union[str, int, float]


class RecordStoreError(Exception):
    """Raised when Airtable rejects a request or cannot be reached."""

    def __init__(self, status_code: int, table_name: str, payload: Dict[str, Any]):
        self.status_code = status_code
        self.table_name = table_name
        self.payload = payload
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def message(self) -> str:
        """Best human-readable description of the failure."""
        error = self.payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if self.payload.get("message"):
            return str(self.payload["message"])
        if self.status_code == 404:
            return f'Table "{self.table_name}" not found in Airtable base.'
        if self.status_code == 0:
            return "Could not reach Airtable."
        return "Invalid field or table. Check Airtable table and field names."


def parse_error_body(response: httpx.Response) -> Dict[str, Any]:
    """Best-effort JSON decode of an error body."""
    text = response.text
    try:
        data = json.loads(text)
    except ValueError:
        return {"raw": text}
    if not isinstance(data, dict):
        return {"raw": data}
    return data


class AirtableClient:
    """
    Minimal Airtable client: create records and list base tables.

    Args:
        base_id: Airtable base identifier
        api_key: Personal access token
        http_client: Shared httpx.AsyncClient
    """

    def __init__(self, base_id: str, api_key: str, http_client: httpx.AsyncClient):
        self.base_id = base_id
        self.api_key = api_key
        self.http_client = http_client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def table_url(self, table_name: str) -> str:
        return f"{AIRTABLE_API_URL}/{self.base_id}/{quote(table_name, safe='')}"

    async def create_record(
        self,
        table_name: str,
        fields: Mapping[str, FieldValue],
        typecast: bool = False
    ) -> Dict[str, Any]:
        """
        Create one record in table_name.

        Returns:
            The created record as returned by Airtable

        Raises:
            RecordStoreError on a non-2xx status or transport failure
        """
        body: Dict[str, Any] = {"fields": dict(fields)}
        if typecast:
            # Lets single-select fields accept new options and coerces types
            body["typecast"] = True

        try:
            response = await self.http_client.post(
                self.table_url(table_name),
                headers=self.headers,
                json=body
            )
        except httpx.HTTPError as e:
            logging.error(f"Airtable request failed for table {table_name}: {str(e)}")
            raise RecordStoreError(0, table_name, {"message": "Could not reach Airtable."}) from e

        if not response.is_success:
            payload = parse_error_body(response)
            logging.error(f"Airtable error ({table_name}): {response.status_code} {payload}")
            raise RecordStoreError(response.status_code, table_name, payload)

        return response.json()

    async def list_tables(self) -> List[Dict[str, Any]]:
        """
        List tables of the base with their field names and types.

        Raises:
            RecordStoreError on a non-2xx status
        """
        response = await self.http_client.get(
            f"{AIRTABLE_API_URL}/meta/bases/{self.base_id}/tables",
            headers=self.headers
        )
        if not response.is_success:
            raise RecordStoreError(response.status_code, "", parse_error_body(response))

        data = response.json()
        return [
            {
                "name": table.get("name"),
                "fields": [
                    {"name": f.get("name"), "type": f.get("type")}
                    for f in table.get("fields") or []
                ]
            }
            for table in data.get("tables") or []
        ]
