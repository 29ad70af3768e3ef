"""Celery application configuration."""

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from app.core.config import settings
from app.core.logging import setup_logging

# Create Celery instance
celery_app = Celery(
    "component_generator",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.generation_tasks"],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Two bounded provider calls plus persistence
    task_time_limit=int(settings.ai_request_timeout * 2 + 60),
    task_soft_time_limit=int(settings.ai_request_timeout * 2 + 30),
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

celery_app.conf.task_routes = {
    "app.tasks.generation_tasks.*": {"queue": "generation"},
}


@celery_setup_logging.connect
def configure_worker_logging(**_kwargs):
    setup_logging()
