"""Chat service layer: messages, generation requests and their outcomes."""

import logging
import uuid
from uuid import UUID

from sqlalchemy import and_, desc, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.attributes import set_committed_value

from app.core.config import settings
from app.domains.chat.state import APOLOGY_TEXT, PLACEHOLDER_TEXT, transition_message, validate_message_content
from app.domains.component.service import ComponentService
from app.domains.generation.catalog import get_available_models, resolve_provider
from app.domains.generation.parser import validate_component_code
from app.exceptions.ai import GenerationError
from app.exceptions.base import ValidationError
from app.exceptions.chat import MessageEditNotAllowedError, MessageNotFoundError, SessionNotFoundError
from app.schemas.chat import (
    AddMessageRequest,
    GenerateComponentRequest,
    GenerationTicket,
    MessageUpdateRequest,
    ModelCatalogResponse,
)
from app.schemas.generation import (
    ComponentResult,
    CurrentComponent,
    GenerationRequest,
    HistoryTurn,
    ImageAttachment,
    ParseProvenance,
)
from models.base import utcnow
from models.chat_message import ChatMessage, MessageRole, MessageStatus
from models.chat_session import ChatSession

logger = logging.getLogger(__name__)


class ChatService:
    """Service class for chat messages and the generation lifecycle."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def start_generation(self, request: GenerateComponentRequest, user_id: UUID) -> GenerationTicket:
        """Persist the user turn and a processing assistant turn.

        Both messages are committed before anything is generated so the
        caller can poll the assistant message right away.
        """
        validate_message_content(MessageRole.USER, request.message, request.images)

        model = request.model or settings.default_model
        temperature = request.temperature if request.temperature is not None else settings.ai_temperature

        if request.session_id:
            session = await self._get_session_for_user(request.session_id, user_id)
        else:
            session = ChatSession(user_id=user_id, description="Auto-created session", ai_model=model)
            self.db.add(session)
            await self.db.flush()

        try:
            sequence = await self.reserve_sequences(session, 2)
            user_message = ChatMessage(
                id=uuid.uuid4(),
                session_id=session.id,
                user_id=user_id,
                role=MessageRole.USER,
                status=MessageStatus.COMPLETED,
                sequence=sequence,
                text=request.message,
                images=[image.model_dump(exclude_none=True) for image in request.images],
            )
            assistant_message = ChatMessage(
                session_id=session.id,
                user_id=user_id,
                role=MessageRole.ASSISTANT,
                status=MessageStatus.PROCESSING,
                sequence=sequence + 1,
                reply_to_id=user_message.id,
                text=PLACEHOLDER_TEXT,
                model_id=model,
                provider=resolve_provider(model).value,
                temperature=temperature,
            )
            self.db.add_all([user_message, assistant_message])
            await self.db.flush()
            ticket = GenerationTicket(
                session_id=session.id,
                user_message_id=user_message.id,
                assistant_message_id=assistant_message.id,
                status=MessageStatus.PROCESSING,
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create messages: {str(e)}") from e

        logger.info(f"Queued generation for message {ticket.assistant_message_id} in session {ticket.session_id} with {model}")
        return ticket

    async def add_message(self, request: AddMessageRequest, user_id: UUID) -> ChatMessage:
        """Append a finished message to a session without generating anything."""
        content = request.content
        code = content.code
        validate_message_content(request.role, content.text, content.images, code.jsx if code else None)

        session = await self._get_session_for_user(request.session_id, user_id)

        try:
            message = ChatMessage(
                session_id=session.id,
                user_id=user_id,
                role=request.role,
                status=MessageStatus.COMPLETED,
                sequence=await self.reserve_sequences(session),
                text=content.text,
                images=[image.model_dump(exclude_none=True) for image in content.images],
            )
            if code:
                message.code_jsx = code.jsx
                message.code_css = code.css
                message.code_props = dict(code.props)
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
            return message
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to add message: {str(e)}") from e

    async def reserve_sequences(self, session: ChatSession, count: int = 1) -> int:
        """Claim ``count`` consecutive message sequences and return the first.

        The counter is bumped in the database in a single statement, so
        requests racing on the same session never receive the same number.
        """
        now = utcnow()
        stmt = (
            update(ChatSession)
            .where(ChatSession.id == session.id)
            .values(total_messages=ChatSession.total_messages + count, last_activity=now)
            .returning(ChatSession.total_messages)
            .execution_options(synchronize_session=False)
        )
        total = (await self.db.execute(stmt)).scalar_one()
        set_committed_value(session, "total_messages", total)
        set_committed_value(session, "last_activity", now)
        return total - count + 1

    async def get_message(self, message_id: UUID, user_id: UUID) -> ChatMessage:
        """Get a message from one of the user's active sessions."""
        stmt = (
            select(ChatMessage)
            .join(ChatSession, ChatMessage.session_id == ChatSession.id)
            .where(
                and_(
                    ChatMessage.id == message_id,
                    ChatSession.user_id == user_id,
                    ChatSession.is_active.is_(True),
                )
            )
        )
        result = await self.db.execute(stmt)
        message = result.scalar_one_or_none()
        if not message:
            raise MessageNotFoundError()
        return message

    async def update_message(self, message_id: UUID, update_data: MessageUpdateRequest, user_id: UUID) -> ChatMessage:
        """Edit a user message. Editing never triggers a new generation."""
        message = await self.get_message(message_id, user_id)
        if message.role != MessageRole.USER:
            raise MessageEditNotAllowedError()

        message.mark_as_edited(update_data.text)
        try:
            await self.db.commit()
            await self.db.refresh(message)
            return message
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update message: {str(e)}") from e

    async def delete_message(self, message_id: UUID, user_id: UUID) -> bool:
        message = await self.get_message(message_id, user_id)
        try:
            await self.db.delete(message)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete message: {str(e)}") from e

    async def cancel_message(self, message_id: UUID, user_id: UUID) -> ChatMessage:
        """Cancel a pending or processing message.

        A generation already running is not interrupted, its outcome is
        discarded when it finishes.
        """
        message = await self.get_message(message_id, user_id)
        transition_message(message, MessageStatus.CANCELLED)
        await self.db.commit()
        await self.db.refresh(message)
        logger.info(f"Message {message_id} cancelled")
        return message

    def get_available_models(self) -> ModelCatalogResponse:
        return ModelCatalogResponse(
            providers=get_available_models(),
            default_model=settings.default_model,
            fallback_model=settings.fallback_model,
        )

    # Generation lifecycle, used by the background worker
    async def get_message_by_id(self, message_id: UUID) -> ChatMessage | None:
        result = await self.db.execute(select(ChatMessage).where(ChatMessage.id == message_id))
        return result.scalar_one_or_none()

    async def build_generation_request(self, assistant_message: ChatMessage) -> GenerationRequest:
        """Reconstruct the orchestrator input for an assistant message."""
        session = await self.db.get(ChatSession, assistant_message.session_id)
        if session is None:
            raise SessionNotFoundError()

        prompt_message = await self._get_prompt_message(assistant_message)
        if prompt_message is None:
            raise MessageNotFoundError("The user message this assistant message answers no longer exists")

        stmt = (
            select(ChatMessage)
            .where(
                and_(
                    ChatMessage.session_id == session.id,
                    ChatMessage.sequence < prompt_message.sequence,
                )
            )
            .order_by(desc(ChatMessage.sequence))
            .limit(settings.context_fetch_limit)
        )
        result = await self.db.execute(stmt)
        history = [
            HistoryTurn(
                role=MessageRole(turn.role).value,
                status=MessageStatus(turn.status).value,
                text=turn.text or "",
                jsx=turn.code_jsx or "",
            )
            for turn in result.scalars().all()
        ]

        return GenerationRequest(
            message=prompt_message.text or "",
            images=[ImageAttachment(**image) for image in prompt_message.images or []],
            history=history,
            model=assistant_message.model_id,
            temperature=assistant_message.temperature,
            current_component=CurrentComponent(**session.current_component),
        )

    async def complete_generation(
        self,
        message: ChatMessage,
        result: ComponentResult,
        prompt: str | None = None,
    ) -> ChatMessage:
        """Apply a successful generation to the message, session and component."""
        transition_message(message, MessageStatus.COMPLETED)
        validate_message_content(MessageRole.ASSISTANT, result.explanation, jsx=result.jsx)

        message.text = result.explanation
        message.code_jsx = result.jsx
        message.code_css = result.css
        message.code_props = dict(result.props)
        message.model_id = result.model or message.model_id
        message.provider = result.provider or message.provider
        message.processing_time_ms = result.processing_time_ms
        message.provenance = result.provenance.value
        message.fallback_used = result.fallback_used
        if result.tokens is not None:
            message.prompt_tokens = result.tokens.prompt
            message.completion_tokens = result.tokens.completion
            message.total_tokens = result.tokens.total

        session = await self.db.get(ChatSession, message.session_id)
        if result.provenance != ParseProvenance.UNPARSEABLE and (result.jsx or result.css or result.props):
            session.apply_generation(result.jsx, result.css, result.props)
            if result.model:
                session.ai_model = result.model
            await ComponentService(self.db).upsert_for_session(session, result, prompt)
        else:
            logger.info(f"Reply to message {message.id} carried no code, session {session.id} left unchanged")

        if result.jsx:
            checks = validate_component_code(result.jsx)
            if not checks.is_valid:
                logger.warning(f"Generated code for message {message.id} failed structural checks: {checks.error}")

        logger.info(
            f"Generation completed for message {message.id}: model={message.model_id} "
            f"provider={message.provider} provenance={message.provenance} "
            f"time={message.processing_time_ms}ms fallback={message.fallback_used}"
        )
        return message

    def fail_generation(self, message: ChatMessage, error: GenerationError) -> ChatMessage:
        """Record a failed generation. The session is left untouched."""
        transition_message(message, MessageStatus.FAILED)
        message.text = APOLOGY_TEXT
        message.error_kind = error.kind.value
        message.error_message = error.message
        message.error_details = error.details or None

        logger.error(f"Generation failed for message {message.id}: {error.kind.value}: {error.message}")
        return message

    async def abandon_generation(self, message_id: UUID, error: GenerationError) -> ChatMessage | None:
        """Fail a processing message whose job could not be started."""
        message = await self.get_message_by_id(message_id)
        if message is None or MessageStatus(message.status) != MessageStatus.PROCESSING:
            return message

        self.fail_generation(message, error)
        try:
            await self.db.commit()
            return message
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update message: {str(e)}") from e

    # Private helper methods
    async def _get_session_for_user(self, session_id: UUID, user_id: UUID) -> ChatSession:
        stmt = select(ChatSession).where(
            and_(
                ChatSession.id == session_id,
                ChatSession.user_id == user_id,
                ChatSession.is_active.is_(True),
            )
        )
        result = await self.db.execute(stmt)
        session = result.scalar_one_or_none()
        if not session:
            raise SessionNotFoundError()
        return session

    async def _get_prompt_message(self, assistant_message: ChatMessage) -> ChatMessage | None:
        """The user message an assistant message answers."""
        if assistant_message.reply_to_id is None:
            return None
        stmt = select(ChatMessage).where(
            and_(
                ChatMessage.id == assistant_message.reply_to_id,
                ChatMessage.session_id == assistant_message.session_id,
                ChatMessage.role == MessageRole.USER,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
