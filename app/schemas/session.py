"""Session schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field

from models.chat_session import ChatSession

from .base import BaseSchema
from .generation import CurrentComponent


class SessionSettings(BaseSchema):
    auto_save: bool = True
    theme: Literal["light", "dark"] = "light"


class SessionMetadata(BaseSchema):
    total_messages: int = 0
    last_activity: datetime | None = None
    ai_model: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False


class SessionCreate(BaseSchema):
    """Schema for creating a session."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    tags: list[str] = Field(default_factory=list)
    settings: SessionSettings | None = None


class SessionUpdate(BaseSchema):
    """Partial session update. Map fields are merged into the stored values."""

    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    current_component: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class SessionResponse(BaseSchema):
    """Schema for session response."""

    id: UUID
    user_id: UUID
    title: str
    description: str | None = None
    current_component: CurrentComponent
    metadata: SessionMetadata
    settings: SessionSettings
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, session: ChatSession) -> SessionResponse:
        return cls(
            id=session.id,
            user_id=session.user_id,
            title=session.title,
            description=session.description,
            current_component=CurrentComponent(**session.current_component),
            metadata=SessionMetadata(
                total_messages=session.total_messages or 0,
                last_activity=session.last_activity,
                ai_model=session.ai_model,
                tags=list(session.tags or []),
                is_public=bool(session.is_public),
            ),
            settings=SessionSettings(auto_save=session.auto_save, theme=session.theme),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
