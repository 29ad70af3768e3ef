"""Background execution of generation jobs.

A job is keyed by the id of the assistant message it completes. It owns that
message from ``processing`` until the outcome is written, and it opens its
own database sessions so it never shares one with the request that queued it.
"""

import asyncio
import logging
from collections.abc import Callable
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.config import settings
from app.domains.chat.service import ChatService
from app.domains.generation.orchestrator import GenerationOrchestrator
from app.exceptions.ai import GenerationError, GenerationErrorKind
from app.schemas.generation import ComponentResult, GenerationRequest
from models.chat_message import MessageStatus

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


async def _load_request(session_factory: SessionFactory, message_id: UUID) -> GenerationRequest | None:
    async with session_factory() as db:
        service = ChatService(db)
        message = await service.get_message_by_id(message_id)
        if message is None:
            logger.warning(f"Generation job for unknown message {message_id} skipped")
            return None
        if MessageStatus(message.status) != MessageStatus.PROCESSING:
            logger.info(f"Generation job for message {message_id} skipped, status is {MessageStatus(message.status).value}")
            return None
        return await service.build_generation_request(message)


@retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(settings.finalize_max_attempts),
    wait=wait_exponential(min=settings.finalize_retry_min_wait, max=settings.finalize_retry_max_wait),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def finalize_generation(
    session_factory: SessionFactory,
    message_id: UUID,
    outcome: ComponentResult | GenerationError,
    prompt: str | None = None,
) -> MessageStatus | None:
    """Write a generation outcome to its message.

    The outcome is dropped when the message left ``processing`` in the
    meantime (for example because it was cancelled).
    """
    async with session_factory() as db:
        service = ChatService(db)
        message = await service.get_message_by_id(message_id)
        if message is None:
            logger.warning(f"Message {message_id} disappeared during generation, outcome discarded")
            return None

        status = MessageStatus(message.status)
        if status != MessageStatus.PROCESSING:
            logger.info(f"Message {message_id} is {status.value}, generation outcome discarded")
            return status

        if isinstance(outcome, ComponentResult):
            await service.complete_generation(message, outcome, prompt)
        else:
            service.fail_generation(message, outcome)

        await db.commit()
        return MessageStatus(message.status)


async def run_generation_job(
    session_factory: SessionFactory,
    message_id: UUID,
    orchestrator: GenerationOrchestrator | None = None,
) -> MessageStatus | None:
    """Generate the component for one processing assistant message.

    Failures are recorded on the message, they never propagate to the host.
    """
    try:
        request = await _load_request(session_factory, message_id)
    except Exception as e:
        logger.exception(f"Could not prepare generation for message {message_id}: {str(e)}")
        request = None
        outcome: ComponentResult | GenerationError = GenerationError(
            GenerationErrorKind.INTERNAL_ERROR,
            "Failed to prepare the generation request",
            details={"error": str(e)},
        )
    else:
        if request is None:
            return None
        orchestrator = orchestrator or GenerationOrchestrator()
        try:
            outcome = await orchestrator.generate(request)
        except GenerationError as e:
            outcome = e
        except Exception as e:
            logger.exception(f"Unexpected generation error for message {message_id}: {str(e)}")
            outcome = GenerationError(
                GenerationErrorKind.INTERNAL_ERROR,
                "Unexpected error while generating the component",
                details={"error": str(e)},
            )

    prompt = request.message if request else None
    try:
        return await finalize_generation(session_factory, message_id, outcome, prompt)
    except Exception as e:
        if isinstance(outcome, GenerationError):
            logger.exception(f"Could not record failure of message {message_id}: {str(e)}")
            return None
        logger.exception(f"Could not record result of message {message_id}, marking it failed: {str(e)}")
        fallback = GenerationError(
            GenerationErrorKind.INTERNAL_ERROR,
            "The generated component could not be saved",
            details={"error": str(e)},
        )

    try:
        return await finalize_generation(session_factory, message_id, fallback, prompt)
    except Exception as final_error:
        logger.exception(f"Could not record failure of message {message_id}: {str(final_error)}")
        return None


class GenerationJobRunner:
    """In-process job queue: one asyncio task per assistant message."""

    def __init__(
        self,
        session_factory: SessionFactory,
        orchestrator: GenerationOrchestrator | None = None,
    ):
        self.session_factory = session_factory
        self._orchestrator = orchestrator
        self._tasks: dict[UUID, asyncio.Task] = {}

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = GenerationOrchestrator()
        return self._orchestrator

    def submit(self, message_id: UUID) -> bool:
        """Start a job unless one already runs for ``message_id``."""
        if self.is_running(message_id):
            logger.warning(f"Generation for message {message_id} already running, submission ignored")
            return False

        task = asyncio.create_task(
            run_generation_job(self.session_factory, message_id, self.orchestrator),
            name=f"generation-{message_id}",
        )
        self._tasks[message_id] = task
        task.add_done_callback(lambda done, key=message_id: self._forget(key, done))
        return True

    def is_running(self, message_id: UUID) -> bool:
        task = self._tasks.get(message_id)
        return task is not None and not task.done()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for running jobs, cancelling whatever outlives ``timeout``."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if not tasks:
            return
        logger.info(f"Waiting for {len(tasks)} generation job(s) to finish")
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} generation job(s) on shutdown")
            await asyncio.gather(*still_running, return_exceptions=True)

    def _forget(self, message_id: UUID, task: asyncio.Task) -> None:
        if self._tasks.get(message_id) is task:
            del self._tasks[message_id]
