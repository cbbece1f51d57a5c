"""Console notification adapter — implements NotificationPort.

Logs each email instead of sending it. Meant for local runs
(EMAIL_PROVIDER=console); every message counts as accepted.
"""

from __future__ import annotations

import logging
import uuid

from src.ports.notification_port import EmailMessage

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """Log-only implementation of NotificationPort."""

    async def send_email(self, message: EmailMessage) -> str:
        message_id = f"console-{uuid.uuid4()}"
        logger.info(
            "[%s] From: %s To: %s Subject: %s (%d bytes html)",
            message_id, message.sender, ", ".join(message.to),
            message.subject, len(message.html),
        )
        return message_id
