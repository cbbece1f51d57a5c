"""Tests for the notifier factory and the console adapter."""

import pytest
from unittest.mock import patch

from src.adapters.notifier_factory import create_notifier
from src.ports.notification_port import EmailMessage


class TestCreateNotifier:
    @patch("src.adapters.notifier_factory.settings")
    def test_returns_resend_adapter(self, mock_settings):
        mock_settings.EMAIL_PROVIDER = "resend"
        mock_settings.RESEND_API_KEY = "re_abc"
        notifier = create_notifier()
        from src.adapters.resend_notifier import ResendNotifier
        assert isinstance(notifier, ResendNotifier)
        assert notifier._api_key == "re_abc"

    @patch("src.adapters.notifier_factory.settings")
    def test_returns_console_adapter(self, mock_settings):
        mock_settings.EMAIL_PROVIDER = "Console"
        notifier = create_notifier()
        from src.adapters.console_notifier import ConsoleNotifier
        assert isinstance(notifier, ConsoleNotifier)

    @patch("src.adapters.notifier_factory.settings")
    def test_unknown_provider_raises(self, mock_settings):
        mock_settings.EMAIL_PROVIDER = "pigeon"
        with pytest.raises(ValueError, match="Unknown EMAIL_PROVIDER"):
            create_notifier()


class TestConsoleNotifier:
    @pytest.mark.asyncio
    async def test_accepts_every_message(self, caplog):
        from src.adapters.console_notifier import ConsoleNotifier

        message = EmailMessage(
            sender="PLANIO <onboarding@resend.dev>",
            to=["ana@example.com"],
            subject="Hello",
            html="<p>hi</p>",
        )
        with caplog.at_level("INFO"):
            message_id = await ConsoleNotifier().send_email(message)

        assert message_id.startswith("console-")
        assert "ana@example.com" in caplog.text
