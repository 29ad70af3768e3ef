# ruff: noqa: D107
"""AI provider and component generation exceptions."""

from enum import Enum
from typing import Any

from .base import BaseAppException


class ProviderErrorKind(str, Enum):
    """Failure categories reported by provider adapters."""

    TIMEOUT = "Timeout"
    AUTH = "Auth"
    TRANSPORT = "Transport"
    RATE_LIMIT = "RateLimit"


class GenerationErrorKind(str, Enum):
    """Failure categories reported by the generation orchestrator."""

    ALL_PROVIDERS_FAILED = "AllProvidersFailed"
    INTERNAL_ERROR = "InternalError"


class AIServiceError(BaseAppException):
    """Base exception for AI service errors."""

    def __init__(
        self,
        message: str = "AI service error occurred",
        error_code: str = "AI_SERVICE_ERROR",
        status_code: int = 502,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code=status_code, error_code=error_code, details=details)


class ProviderError(AIServiceError):
    """Exception raised by a provider adapter when a model call fails."""

    _status_codes = {
        ProviderErrorKind.TIMEOUT: 504,
        ProviderErrorKind.AUTH: 502,
        ProviderErrorKind.TRANSPORT: 502,
        ProviderErrorKind.RATE_LIMIT: 429,
    }

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str = "AI provider call failed",
        provider: str | None = None,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.kind = kind
        self.provider = provider
        self.model = model
        details = dict(details or {})
        details.update({"kind": kind.value, "provider": provider, "model": model})
        super().__init__(
            message,
            error_code=f"AI_PROVIDER_{kind.name}",
            status_code=self._status_codes[kind],
            details=details,
        )


class AIParsingError(AIServiceError):
    """Exception raised when AI response cannot be parsed."""

    def __init__(
        self,
        message: str = "Failed to parse AI service response",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_PARSING_ERROR", details=details)


class AIConfigurationError(AIServiceError):
    """Exception raised when AI service is not properly configured."""

    def __init__(
        self,
        message: str = "AI service is not properly configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_CONFIGURATION_ERROR", status_code=503, details=details)


class GenerationError(AIServiceError):
    """Exception raised when no model produced a component."""

    def __init__(
        self,
        kind: GenerationErrorKind = GenerationErrorKind.ALL_PROVIDERS_FAILED,
        message: str = "All AI models failed. Please try again later.",
        details: dict[str, Any] | None = None,
    ):
        self.kind = kind
        super().__init__(message, f"AI_{kind.name}", details=details)


def classify_provider_failure(error_message: str, status_code: int | None = None) -> ProviderErrorKind:
    """Map an HTTP status and/or error text to a provider error kind."""
    msg = error_message.lower()
    if status_code in (401, 403) or "api key" in msg or "unauthorized" in msg or "permission" in msg:
        return ProviderErrorKind.AUTH
    if status_code == 429 or "quota" in msg or ("rate" in msg and "limit" in msg):
        return ProviderErrorKind.RATE_LIMIT
    if status_code in (408, 504) or "timed out" in msg or "timeout" in msg or "deadline" in msg:
        return ProviderErrorKind.TIMEOUT
    return ProviderErrorKind.TRANSPORT
