"""Notification port — abstract interface for sending emails to users.

Core modules depend on this protocol, never on a specific email provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class NotificationError(Exception):
    """Raised when the email provider rejects or fails to accept a message."""


@dataclass
class EmailMessage:
    """A fully rendered email, ready for the provider."""

    sender: str
    to: list[str]
    subject: str
    html: str


class NotificationPort(Protocol):
    """Abstract email interface used by core modules.

    `send_email` returns the provider's message id once the message has been
    accepted, and raises NotificationError otherwise.
    """

    async def send_email(self, message: EmailMessage) -> str: ...
