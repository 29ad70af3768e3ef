"""Component artifact schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from .base import BaseModelSchema, BaseSchema


class ComponentResponse(BaseModelSchema):
    """Schema for a stored component artifact."""

    session_id: UUID
    user_id: UUID
    name: str
    description: str | None = None
    jsx: str
    css: str = ""
    props: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    version: int
    category: str
    complexity: str
    tags: list[str] = Field(default_factory=list)
    framework: str = "react"
    ai_model: str | None = None
    generation_prompt: str | None = None
    is_public: bool = False
    parent_component_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ComponentVersionCreate(BaseSchema):
    """Overrides applied when forking a new version of a component."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    jsx: str | None = Field(None, min_length=1)
    css: str | None = None
    props: dict[str, Any] | None = None
    tags: list[str] | None = None


class ComponentCodeCheck(BaseSchema):
    """Heuristic structural checks of generated JSX."""

    has_export: bool
    has_function: bool
    has_return: bool
    has_jsx: bool
    is_valid: bool
    error: str | None = None
