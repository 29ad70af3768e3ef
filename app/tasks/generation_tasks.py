"""Celery tasks for component generation."""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

# Import all models to ensure they're registered before creating session
import models  # noqa: F401
from app.celery_app import celery_app
from app.core.config import settings
from app.domains.chat.worker import run_generation_job

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.generation_tasks.generate_component_task", bind=True)
def generate_component_task(self, message_id: str) -> str | None:
    """Generate the component for one processing assistant message.

    The job records its own failures on the message, so the task is never
    retried by Celery.
    """
    logger.info(f"Starting generation task for message {message_id} (Task ID: {self.request.id})")
    status = asyncio.run(_generate_component_async(UUID(message_id)))
    logger.info(f"Generation task for message {message_id} finished with status {status}")
    return status.value if status else None


async def _generate_component_async(message_id: UUID):
    # One engine per task run, bound to the event loop asyncio.run created
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        return await run_generation_job(session_factory, message_id)
    finally:
        await engine.dispose()
