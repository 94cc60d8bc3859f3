"""Notification emails through the Resend REST API."""

import logging
from typing import Optional, Sequence

import httpx

RESEND_EMAILS_URL = "https://api.resend.com/emails"


class ResendNotifier:
    """
    Best-effort email sender.

    ``notify`` never raises: a missing key, a transport error or a rejected
    request are logged and reported as False.
    """

    def __init__(self, api_key: Optional[str], sender: str, http_client: httpx.AsyncClient):
        self.api_key = api_key
        self.sender = sender
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def notify(self, subject: str, recipients: Sequence[str], html: str, context: str = "") -> bool:
        """
        Send an HTML email.

        Args:
            subject: Email subject line
            recipients: Destination addresses
            html: HTML body
            context: Label used in log lines (e.g. the form type)

        Returns:
            True if Resend accepted the email
        """
        if not self.configured:
            logging.warning(f"RESEND_API_KEY missing - skipping email notification ({context})")
            return False

        try:
            response = await self.http_client.post(
                RESEND_EMAILS_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "from": self.sender,
                    "to": list(recipients),
                    "subject": subject,
                    "html": html,
                }
            )
        except Exception as e:
            logging.error(f"Email sending error ({context}): {str(e)}", exc_info=True)
            return False

        if not response.is_success:
            logging.error(f"Resend email error ({context}): {response.status_code} {response.text}")
            return False

        logging.info(f"Notification email sent ({context}) to {len(recipients)} recipients")
        return True
