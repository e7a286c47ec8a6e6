"""EmailService and templates; SMTP is mocked."""
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from app.core.errors import EmailDeliveryError, ValidationError
from app.services.email.service import EmailService
from app.services.email.templates import password_reset_email, verification_email


class TestEmailService:
    def test_disabled_without_smtp_host(self):
        service = EmailService(smtp_host="")
        assert service.enabled is False
        with patch("app.services.email.service.smtplib.SMTP") as smtp:
            assert service.send("reader@example.com", "Hi", "text") is True
        smtp.assert_not_called()

    def test_invalid_recipient(self):
        with pytest.raises(ValidationError):
            EmailService(smtp_host="").send("not-an-address", "Hi", "text")

    def test_sends_over_smtp(self):
        server = MagicMock()
        with patch("app.services.email.service.smtplib.SMTP", return_value=server) as smtp:
            assert EmailService(smtp_host="smtp.example.com").send(
                "reader@example.com", "Hi", "text", "<p>html</p>"
            )
        smtp.assert_called_once()
        server.sendmail.assert_called_once()
        to_addrs = server.sendmail.call_args[0][1]
        assert to_addrs == ["reader@example.com"]

    def test_smtp_failure_raises_delivery_error(self):
        with patch(
            "app.services.email.service.smtplib.SMTP",
            side_effect=smtplib.SMTPConnectError(421, "unavailable"),
        ):
            with pytest.raises(EmailDeliveryError) as exc_info:
                EmailService(smtp_host="smtp.example.com").send("reader@example.com", "Hi", "text")
        assert exc_info.value.retryable is True


class TestTemplates:
    def test_verification_email(self):
        email = verification_email("mika", "http://localhost:5173/verify-email?token=abc")
        assert "Verify" in email.subject
        assert "http://localhost:5173/verify-email?token=abc" in email.html
        assert "http://localhost:5173/verify-email?token=abc" in email.text
        assert "mika" in email.html
        assert "24 hours" in email.text

    def test_reset_email_escapes_username(self):
        email = password_reset_email("<b>mika</b>", "http://localhost:5173/reset-password?token=abc")
        assert "<b>mika</b>" not in email.html
        assert "&lt;b&gt;mika&lt;/b&gt;" in email.html
        assert "1 hour" in email.text
