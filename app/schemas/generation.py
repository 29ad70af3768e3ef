"""Schemas exchanged between the generation pipeline stages."""

from enum import Enum
from typing import Any

from pydantic import Field

from .base import BaseSchema


class ParseProvenance(str, Enum):
    """How a component result was recovered from model output."""

    STRUCTURED = "structured"
    DEGRADED = "degraded"
    UNPARSEABLE = "unparseable"


class TokenUsage(BaseSchema):
    """Token accounting reported by a provider."""

    prompt: int = 0
    completion: int = 0
    total: int = 0


class ImageAttachment(BaseSchema):
    """Image sent alongside a prompt."""

    url: str = Field(..., min_length=1, max_length=4096)
    alt: str | None = Field(None, max_length=200)
    size: int | None = Field(None, gt=0)


class CurrentComponent(BaseSchema):
    """Snapshot of the component a session is working on."""

    jsx: str = ""
    css: str = ""
    props: dict[str, Any] = Field(default_factory=dict)


class HistoryTurn(BaseSchema):
    """One stored conversation turn offered to the prompt builder."""

    role: str
    status: str
    text: str = ""
    jsx: str = ""


class ContextTurn(BaseSchema):
    """One role/content pair sent to the model as conversation context."""

    role: str
    content: str


class PromptPayload(BaseSchema):
    """Provider-neutral prompt handed to an adapter."""

    system_prompt: str
    user_prompt: str
    context: list[ContextTurn] = Field(default_factory=list)
    images: list[ImageAttachment] = Field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 4000


class RawModelResponse(BaseSchema):
    """Text returned by a provider plus whatever accounting it reports."""

    provider: str
    model: str
    text: str
    usage: TokenUsage | None = None
    raw: dict[str, Any] | None = None


class GenerationRequest(BaseSchema):
    """Input of one orchestrated generation."""

    message: str = ""
    images: list[ImageAttachment] = Field(default_factory=list)
    history: list[HistoryTurn] = Field(default_factory=list)
    model: str | None = None
    temperature: float | None = Field(None, ge=0, le=2)
    current_component: CurrentComponent = Field(default_factory=CurrentComponent)


class ComponentResult(BaseSchema):
    """Structured component extracted from a model response."""

    component_name: str = "GeneratedComponent"
    explanation: str = "Component generated successfully"
    jsx: str = ""
    css: str = ""
    props: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=lambda: ["react"])
    category: str = "other"
    complexity: str = "simple"
    features: list[str] = Field(default_factory=list)
    usage: str | None = None
    tokens: TokenUsage | None = None
    provenance: ParseProvenance = ParseProvenance.STRUCTURED

    # Filled in by the orchestrator
    model: str | None = None
    provider: str | None = None
    processing_time_ms: int | None = None
    fallback_used: bool = False


class ModelInfo(BaseSchema):
    """Entry of the static model catalog."""

    id: str
    display_name: str
    vendor: str
    description: str
