"""
Unit tests for Exception classes.

This module contains unit tests for the custom exception classes and the
provider failure classification.
"""

import pytest
from fastapi import HTTPException

from app.exceptions.ai import (
    AIConfigurationError,
    AIParsingError,
    AIServiceError,
    GenerationError,
    GenerationErrorKind,
    ProviderError,
    ProviderErrorKind,
    classify_provider_failure,
)
from app.exceptions.base import BaseAppException, ConflictError, NotFoundError, ValidationError
from app.exceptions.chat import (
    ComponentLineageError,
    ComponentNotFoundError,
    InvalidMessageTransitionError,
    MessageEditNotAllowedError,
    MessageNotFoundError,
    SessionNotFoundError,
)


class TestBaseAppException:
    """Test cases for BaseAppException."""

    def test_base_exception_default_values(self):
        """Test BaseAppException with default values."""
        exc = BaseAppException("Test error")

        assert isinstance(exc, HTTPException)
        assert exc.message == "Test error"
        assert exc.status_code == 500
        assert exc.error_code == "INTERNAL_ERROR"
        assert exc.details == {}
        assert exc.detail["message"] == "Test error"

    def test_conflict_error(self):
        exc = ConflictError()

        assert exc.status_code == 409
        assert exc.error_code == "CONFLICT"


class TestChatExceptions:
    """Test cases for session, message and component exceptions."""

    @pytest.mark.parametrize(
        ("exc_class", "error_code"),
        [
            (SessionNotFoundError, "SESSION_NOT_FOUND"),
            (MessageNotFoundError, "MESSAGE_NOT_FOUND"),
            (ComponentNotFoundError, "COMPONENT_NOT_FOUND"),
        ],
    )
    def test_not_found_errors(self, exc_class, error_code):
        """Test missing resources map to 404 with a specific code."""
        exc = exc_class()

        assert isinstance(exc, NotFoundError)
        assert exc.status_code == 404
        assert exc.error_code == error_code
        assert exc.detail["error_code"] == error_code

    def test_edit_not_allowed(self):
        exc = MessageEditNotAllowedError()

        assert isinstance(exc, ValidationError)
        assert exc.message == "Can only edit user messages"

    def test_invalid_transition(self):
        exc = InvalidMessageTransitionError("failed", "completed")

        assert exc.status_code == 409
        assert exc.current == "failed"
        assert exc.target == "completed"
        assert exc.message == "Cannot move message from failed to completed"

    def test_lineage_error(self):
        assert ComponentLineageError().status_code == 422


class TestAIExceptions:
    """Test cases for provider and generation exceptions."""

    @pytest.mark.parametrize(
        ("kind", "status_code"),
        [
            (ProviderErrorKind.TIMEOUT, 504),
            (ProviderErrorKind.AUTH, 502),
            (ProviderErrorKind.TRANSPORT, 502),
            (ProviderErrorKind.RATE_LIMIT, 429),
        ],
    )
    def test_provider_error(self, kind, status_code):
        """Test provider errors carry their kind, provider and model."""
        exc = ProviderError(kind, "failed", provider="openrouter", model="gpt-4o", details={"status_code": 500})

        assert isinstance(exc, AIServiceError)
        assert exc.status_code == status_code
        assert exc.error_code == f"AI_PROVIDER_{kind.name}"
        assert exc.details == {
            "status_code": 500,
            "kind": kind.value,
            "provider": "openrouter",
            "model": "gpt-4o",
        }

    def test_generation_error_defaults(self):
        exc = GenerationError()

        assert exc.kind == GenerationErrorKind.ALL_PROVIDERS_FAILED
        assert exc.error_code == "AI_ALL_PROVIDERS_FAILED"
        assert exc.message == "All AI models failed. Please try again later."

    def test_internal_generation_error(self):
        exc = GenerationError(GenerationErrorKind.INTERNAL_ERROR, "boom", details={"error": "x"})

        assert exc.kind.value == "InternalError"
        assert exc.details == {"error": "x"}

    def test_configuration_and_parsing_errors(self):
        assert AIConfigurationError().status_code == 503
        assert AIParsingError().error_code == "AI_PARSING_ERROR"


class TestClassifyProviderFailure:
    """Test cases for mapping failures to error kinds."""

    @pytest.mark.parametrize(
        ("message", "status_code", "expected"),
        [
            ("", 401, ProviderErrorKind.AUTH),
            ("", 403, ProviderErrorKind.AUTH),
            ("Invalid API key provided", None, ProviderErrorKind.AUTH),
            ("", 429, ProviderErrorKind.RATE_LIMIT),
            ("Quota exceeded for project", None, ProviderErrorKind.RATE_LIMIT),
            ("Rate limit reached", None, ProviderErrorKind.RATE_LIMIT),
            ("", 408, ProviderErrorKind.TIMEOUT),
            ("request timed out", None, ProviderErrorKind.TIMEOUT),
            ("Deadline Exceeded", None, ProviderErrorKind.TIMEOUT),
            ("", 500, ProviderErrorKind.TRANSPORT),
            ("connection reset by peer", None, ProviderErrorKind.TRANSPORT),
        ],
    )
    def test_classification(self, message, status_code, expected):
        assert classify_provider_failure(message, status_code) == expected
