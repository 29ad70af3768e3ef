"""Chat schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator

from models.chat_message import ChatMessage, MessageRole, MessageStatus

from .base import BaseSchema
from .generation import ImageAttachment, TokenUsage


class MessageCode(BaseSchema):
    """Code attached to an assistant message."""

    jsx: str = ""
    css: str = ""
    props: dict[str, Any] = Field(default_factory=dict)


class MessageContent(BaseSchema):
    """Message body."""

    text: str = Field(default="", max_length=10000)
    images: list[ImageAttachment] = Field(default_factory=list)
    code: MessageCode | None = None


class MessageError(BaseSchema):
    """Error recorded on a failed message."""

    kind: str
    message: str | None = None
    details: dict[str, Any] | None = None


class EditHistoryEntry(BaseSchema):
    content: str
    edited_at: str


class MessageMetadata(BaseSchema):
    """Generation metadata of a message."""

    model: str | None = None
    provider: str | None = None
    temperature: float | None = None
    tokens: TokenUsage | None = Field(None, description="Null when the provider reports no usage")
    processing_time_ms: int | None = None
    provenance: str | None = None
    fallback_used: bool = False
    is_edited: bool = False
    edit_history: list[EditHistoryEntry] = Field(default_factory=list)


class MessageResponse(BaseSchema):
    """Schema for chat message response."""

    id: UUID
    session_id: UUID
    role: MessageRole
    status: MessageStatus
    sequence: int
    reply_to_id: UUID | None = None
    content: MessageContent
    metadata: MessageMetadata
    error: MessageError | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, message: ChatMessage) -> MessageResponse:
        code = None
        if message.role == MessageRole.ASSISTANT or message.code_jsx or message.code_css:
            code = MessageCode(**message.code)
        return cls(
            id=message.id,
            session_id=message.session_id,
            role=message.role,
            status=message.status,
            sequence=message.sequence,
            reply_to_id=message.reply_to_id,
            content=MessageContent(
                text=message.text or "",
                images=[ImageAttachment(**image) for image in message.images or []],
                code=code,
            ),
            metadata=MessageMetadata(
                model=message.model_id,
                provider=message.provider,
                temperature=message.temperature,
                tokens=TokenUsage(**message.tokens) if message.tokens else None,
                processing_time_ms=message.processing_time_ms,
                provenance=message.provenance,
                fallback_used=bool(message.fallback_used),
                is_edited=bool(message.is_edited),
                edit_history=[EditHistoryEntry(**entry) for entry in message.edit_history or []],
            ),
            error=MessageError(**message.error) if message.error else None,
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


class GenerateComponentRequest(BaseSchema):
    """Schema for a component generation request."""

    session_id: UUID | None = Field(None, description="Existing session ID, null to start a new session")
    message: str = Field(default="", max_length=2000, description="What to build or change")
    images: list[ImageAttachment] = Field(default_factory=list, max_length=5)
    model: str | None = Field(None, max_length=100, description="Model id, defaults to the configured model")
    temperature: float | None = Field(None, ge=0, le=2)

    @model_validator(mode="after")
    def require_prompt_or_image(self):
        if not self.message.strip() and not self.images:
            raise ValueError("A message text or at least one image is required")
        return self


class GenerationTicket(BaseSchema):
    """Synchronous acknowledgement of a generation request."""

    session_id: UUID
    user_message_id: UUID
    assistant_message_id: UUID
    status: MessageStatus = MessageStatus.PROCESSING


class AddMessageRequest(BaseSchema):
    """Schema for adding a message to a session without generating."""

    session_id: UUID
    role: MessageRole = MessageRole.USER
    content: MessageContent


class MessageUpdateRequest(BaseSchema):
    """Schema for editing a user message."""

    text: str = Field(..., min_length=1, max_length=10000)


class ModelCatalogResponse(BaseSchema):
    """Available models grouped by provider."""

    providers: dict[str, list[dict[str, str]]]
    default_model: str
    fallback_model: str
