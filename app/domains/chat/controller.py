"""Chat API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import DispatchEnum, settings
from app.core.dependencies import get_current_user, get_db, get_generation_runner, validate_token
from app.domains.chat.service import ChatService
from app.domains.chat.worker import GenerationJobRunner
from app.exceptions.ai import GenerationError, GenerationErrorKind
from app.schemas.base import ResponseSchema
from app.schemas.chat import AddMessageRequest, GenerateComponentRequest, MessageResponse, MessageUpdateRequest
from app.tasks.generation_tasks import generate_component_task
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/chat",
    tags=["chat"],
    dependencies=[Depends(validate_token)],
)


def dispatch_generation(message_id: UUID, runner: GenerationJobRunner) -> None:
    """Hand a queued assistant message to the configured executor."""
    if settings.generation_dispatch == DispatchEnum.celery:
        generate_component_task.delay(str(message_id))
    else:
        runner.submit(message_id)


@router.post("/generate", response_model=ResponseSchema, status_code=202)
async def generate_component(
    _request: Request,
    generate_request: GenerateComponentRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    runner: GenerationJobRunner = Depends(get_generation_runner),
):
    """Start generating a component from a chat message.

    Returns as soon as the user and assistant messages exist. Poll the
    assistant message for the outcome.
    """
    service = ChatService(db)
    ticket = await service.start_generation(generate_request, user_id=current_user.id)
    try:
        dispatch_generation(ticket.assistant_message_id, runner)
    except Exception as e:
        logger.error(f"Could not queue generation for message {ticket.assistant_message_id}: {str(e)}")
        error = GenerationError(
            GenerationErrorKind.INTERNAL_ERROR,
            "Could not queue the generation. Please try again.",
            details={"error": str(e)},
        )
        await service.abandon_generation(ticket.assistant_message_id, error)
        raise error from e

    return ResponseSchema(
        status="success",
        message="Component generation started",
        data=ticket.model_dump(),
    )


@router.post("/message", response_model=ResponseSchema, status_code=201)
async def add_message(
    _request: Request,
    message_request: AddMessageRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a message to a session without generating anything."""
    service = ChatService(db)
    message = await service.add_message(message_request, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Message added successfully",
        data=MessageResponse.from_model(message).model_dump(),
    )


@router.get("/messages/{message_id}", response_model=ResponseSchema)
async def get_message(
    _request: Request,
    message_id: UUID = Path(..., description="Message ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a message, including the status of a running generation."""
    service = ChatService(db)
    message = await service.get_message(message_id, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Message retrieved successfully",
        data=MessageResponse.from_model(message).model_dump(),
    )


@router.put("/messages/{message_id}", response_model=ResponseSchema)
async def update_message(
    _request: Request,
    message_id: UUID = Path(..., description="Message ID"),
    update_data: MessageUpdateRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit the text of a user message."""
    service = ChatService(db)
    message = await service.update_message(message_id, update_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Message updated successfully",
        data=MessageResponse.from_model(message).model_dump(),
    )


@router.delete("/messages/{message_id}", response_model=ResponseSchema)
async def delete_message(
    _request: Request,
    message_id: UUID = Path(..., description="Message ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ChatService(db)
    await service.delete_message(message_id, user_id=current_user.id)

    return ResponseSchema(status="success", message="Message deleted successfully", data=None)


@router.post("/messages/{message_id}/cancel", response_model=ResponseSchema)
async def cancel_message(
    _request: Request,
    message_id: UUID = Path(..., description="Message ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a pending or processing message."""
    service = ChatService(db)
    message = await service.cancel_message(message_id, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Message cancelled",
        data=MessageResponse.from_model(message).model_dump(),
    )


@router.get("/models", response_model=ResponseSchema)
async def get_available_models(
    _request: Request,
    db: AsyncSession = Depends(get_db),
):
    """List the models a generation can be requested with."""
    service = ChatService(db)
    catalog = service.get_available_models()

    return ResponseSchema(
        status="success",
        message="Available models retrieved successfully",
        data=catalog.model_dump(),
    )
