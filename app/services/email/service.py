"""
Email sending. Without SMTP_HOST the message is logged instead of sent (local/dev),
so callers behave the same in every environment.
"""
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings
from app.core.errors import EmailDeliveryError, ValidationError
from app.utils.metrics import emails_total

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, smtp_host: str | None = None) -> None:
        self.smtp_host = smtp_host if smtp_host is not None else settings.smtp_host

    @property
    def enabled(self) -> bool:
        return bool(self.smtp_host)

    def send(self, to: str, subject: str, text: str, html: str | None = None) -> bool:
        if not to or "@" not in to:
            raise ValidationError(f"Invalid recipient: {to!r}")
        if not self.enabled:
            logger.info("email_disabled", extra={"to": to, "subject": subject})
            emails_total.labels(status="logged").inc()
            return True

        msg = self._build_message(to, subject, text, html)
        try:
            self._deliver(to, msg)
        except (smtplib.SMTPException, OSError) as e:
            emails_total.labels(status="failed").inc()
            logger.warning("email_send_failed", extra={"to": to, "subject": subject, "error": str(e)})
            raise EmailDeliveryError() from e
        emails_total.labels(status="sent").inc()
        logger.info("email_sent", extra={"to": to, "subject": subject})
        return True

    def _build_message(self, to: str, subject: str, text: str, html: str | None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.email_from_name} <{settings.email_from_address}>"
        msg["To"] = to
        msg.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def _deliver(self, to: str, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        if settings.smtp_use_ssl:
            server = smtplib.SMTP_SSL(self.smtp_host, settings.smtp_port, context=context, timeout=settings.smtp_timeout)
        else:
            server = smtplib.SMTP(self.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)
        with server:
            if settings.smtp_use_tls and not settings.smtp_use_ssl:
                server.starttls(context=context)
            if settings.smtp_username and settings.smtp_password:
                server.login(settings.smtp_username, settings.smtp_password)
            server.sendmail(settings.email_from_address, [to], msg.as_string())
