"""Square Payments API client."""

import logging
from typing import Any, Dict, Optional

import httpx

SQUARE_PRODUCTION_URL = "https://connect.squareup.com"
SQUARE_SANDBOX_URL = "https://connect.squareupsandbox.com"
DEFAULT_PACKAGE_NAME = "Session package"


class PaymentError(Exception):
    """Raised when Square rejects a payment."""

    def __init__(self, status_code: int, payload: Dict[str, Any]):
        self.status_code = status_code
        self.payload = payload
        super().__init__(self.message)

    @property
    def message(self) -> str:
        errors = self.payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("detail"):
            return str(errors[0]["detail"])
        if self.payload.get("message"):
            return str(self.payload["message"])
        return "Square payment failed"

    @property
    def is_upstream_error(self) -> bool:
        return self.status_code >= 500


def payment_note(client_name: Optional[str], client_id: Any, package_name: Optional[str]) -> Optional[str]:
    """Note attached to the payment so staff can match it to a client."""
    if not client_name:
        return None
    return f"Package: {package_name or DEFAULT_PACKAGE_NAME}, Client: {client_name} (ID {client_id})"


class SquareClient:
    """Creates card payments for session packages."""

    def __init__(self, access_token: str, location_id: str, http_client: httpx.AsyncClient, use_sandbox: bool = False):
        self.access_token = access_token
        self.location_id = location_id
        self.http_client = http_client
        self.base_url = SQUARE_SANDBOX_URL if use_sandbox else SQUARE_PRODUCTION_URL

    async def create_payment(
        self,
        source_id: str,
        amount: int,
        idempotency_key: str,
        note: Optional[str] = None,
        currency: str = "USD"
    ) -> Dict[str, Any]:
        """
        Charge amount (in cents) against the card token source_id.

        Returns:
            The ``payment`` object from Square

        Raises:
            PaymentError on a non-2xx response
            httpx.HTTPError on transport failure
        """
        body: Dict[str, Any] = {
            "source_id": source_id,
            "amount_money": {"amount": amount, "currency": currency},
            "idempotency_key": idempotency_key,
            "location_id": self.location_id,
        }
        if note:
            body["note"] = note

        response = await self.http_client.post(
            f"{self.base_url}/v2/payments",
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
            json=body
        )

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            logging.error(f"Square payment failed: {response.status_code} {data}")
            raise PaymentError(response.status_code, data)

        logging.info(f"Square payment created for idempotency key {idempotency_key}")
        return data.get("payment") or {}
