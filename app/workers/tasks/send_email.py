"""
Celery task: send a transactional email outside the request cycle.
Delivery failures are retried; invalid recipients are not.
"""
import logging

from app.core.celery_app import celery_app
from app.core.config import settings
from app.core.errors import EmailDeliveryError
from app.services.email.service import EmailService
from app.services.email.templates import password_reset_email, verification_email

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="app.workers.tasks.send_email.send_email",
    max_retries=settings.celery_task_max_retries,
    default_retry_delay=settings.celery_task_retry_delay,
)
def send_email(self, to: str, subject: str, text: str, html: str | None = None) -> dict:
    try:
        EmailService().send(to, subject, text, html)
    except EmailDeliveryError as exc:
        logger.warning("send_email_retry", extra={"to": to, "subject": subject, "attempt": self.request.retries + 1})
        raise self.retry(exc=exc)
    return {"ok": True, "to": to}


def queue_verification_email(to: str, username: str, token: str) -> None:
    url = f"{settings.frontend_base_url.rstrip('/')}/verify-email?token={token}"
    email = verification_email(username, url)
    send_email.delay(to, email.subject, email.text, email.html)


def queue_password_reset_email(to: str, username: str, token: str) -> None:
    url = f"{settings.frontend_base_url.rstrip('/')}/reset-password?token={token}"
    email = password_reset_email(username, url)
    send_email.delay(to, email.subject, email.text, email.html)
