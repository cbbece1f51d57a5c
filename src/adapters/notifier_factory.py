"""Notifier factory — creates the right email adapter based on config."""

from __future__ import annotations

from src.config import settings
from src.ports.notification_port import NotificationPort


def create_notifier() -> NotificationPort:
    """Return the email adapter matching the EMAIL_PROVIDER setting."""
    provider = settings.EMAIL_PROVIDER.lower()

    if provider == "resend":
        from src.adapters.resend_notifier import ResendNotifier

        return ResendNotifier(api_key=settings.RESEND_API_KEY)

    if provider == "console":
        from src.adapters.console_notifier import ConsoleNotifier

        return ConsoleNotifier()

    raise ValueError(f"Unknown EMAIL_PROVIDER: {provider!r}")
