"""
Celery application: broker and result backend from settings.
Tasks are in app.workers.tasks (transactional email).
"""
from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "app",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.workers.tasks.send_email",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_track_started=True,
    task_time_limit=300,
    result_expires=86400,
)

celery_app.conf.task_routes = {
    "app.workers.tasks.send_email.send_email": {"queue": "email"},
}
