"""Resend email adapter — implements NotificationPort.

Posts rendered reminders to the Resend HTTP API. Any transport error or
non-2xx response is raised as NotificationError; retry is left to the next
scheduled run.
"""

from __future__ import annotations

import logging

import httpx

from src.ports.notification_port import EmailMessage, NotificationError

logger = logging.getLogger(__name__)

_RESEND_EMAILS_URL = "https://api.resend.com/emails"
_TIMEOUT_SECONDS = 10


class ResendNotifier:
    """Resend implementation of NotificationPort."""

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        base_url: str = _RESEND_EMAILS_URL,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._url = base_url

    async def send_email(self, message: EmailMessage) -> str:
        payload = {
            "from": message.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._client is not None:
                resp = await self._client.post(self._url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                    resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Resend request failed: {exc}") from exc

        if not resp.is_success:
            detail = _json_field(resp, "message") or resp.text
            raise NotificationError(f"Resend rejected email ({resp.status_code}): {detail}")

        message_id = _json_field(resp, "id")
        logger.debug("Resend accepted email to %s: %s", message.to, message_id)
        return message_id


def _json_field(resp: httpx.Response, key: str) -> str:
    """Read a top-level string field from a JSON object body, or ''."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    return str(body.get(key) or "")
