"""
Unit tests for message lifecycle rules.
"""

import pytest

from app.domains.chat.state import (
    TERMINAL_STATUSES,
    can_transition,
    is_terminal,
    transition_message,
    validate_message_content,
)
from app.exceptions.chat import InvalidMessageTransitionError, MessageValidationError
from models import ChatMessage, MessageRole, MessageStatus
from tests.factories import ChatMessageFactory

ALLOWED = {
    (MessageStatus.PENDING, MessageStatus.PROCESSING),
    (MessageStatus.PENDING, MessageStatus.CANCELLED),
    (MessageStatus.PROCESSING, MessageStatus.COMPLETED),
    (MessageStatus.PROCESSING, MessageStatus.FAILED),
    (MessageStatus.PROCESSING, MessageStatus.CANCELLED),
}


class TestTransitions:
    """Test cases for status transitions."""

    @pytest.mark.parametrize("current", list(MessageStatus))
    @pytest.mark.parametrize("target", list(MessageStatus))
    def test_transition_table(self, current, target):
        """Test exactly the lifecycle edges are allowed."""
        assert can_transition(current, target) == ((current, target) in ALLOWED)

    def test_terminal_statuses(self):
        """Test completed, failed and cancelled are final."""
        assert TERMINAL_STATUSES == {MessageStatus.COMPLETED, MessageStatus.FAILED, MessageStatus.CANCELLED}
        assert is_terminal(MessageStatus.FAILED)
        assert not is_terminal(MessageStatus.PROCESSING)

    def test_transition_updates_status(self):
        message = ChatMessageFactory.build(role=MessageRole.ASSISTANT, status=MessageStatus.PROCESSING)

        transition_message(message, MessageStatus.COMPLETED)

        assert message.status == MessageStatus.COMPLETED

    def test_rejected_transition_leaves_message_untouched(self):
        """Test an illegal transition raises and keeps the status."""
        message = ChatMessageFactory.build(role=MessageRole.ASSISTANT, status=MessageStatus.COMPLETED)

        with pytest.raises(InvalidMessageTransitionError) as exc_info:
            transition_message(message, MessageStatus.PROCESSING)

        assert message.status == MessageStatus.COMPLETED
        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"current_status": "completed", "target_status": "processing"}

    def test_string_status_is_accepted(self):
        message = ChatMessage(role=MessageRole.ASSISTANT, status="pending")

        transition_message(message, MessageStatus.PROCESSING)

        assert message.status == MessageStatus.PROCESSING


class TestContentValidation:
    """Test cases for per-role content rules."""

    def test_user_text(self):
        validate_message_content(MessageRole.USER, "a button")

    def test_user_image_only(self):
        validate_message_content(MessageRole.USER, "", images=[{"url": "https://img.test/a.png"}])

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_user_message(self, text):
        """Test a user message needs text or an image."""
        with pytest.raises(MessageValidationError):
            validate_message_content(MessageRole.USER, text, images=[])

    def test_assistant_code_only(self):
        validate_message_content(MessageRole.ASSISTANT, "", jsx="<div />")

    def test_empty_assistant_message(self):
        """Test an assistant message needs text or code."""
        with pytest.raises(MessageValidationError) as exc_info:
            validate_message_content(MessageRole.ASSISTANT, " ", jsx="  ")

        assert exc_info.value.status_code == 422

    def test_system_message_is_unrestricted(self):
        validate_message_content(MessageRole.SYSTEM, "")
