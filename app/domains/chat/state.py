"""Message lifecycle rules."""

from typing import Any

from app.exceptions.chat import InvalidMessageTransitionError, MessageValidationError
from models.chat_message import ChatMessage, MessageRole, MessageStatus

APOLOGY_TEXT = "I'm sorry, I encountered an error while generating your component. Please try again."
PLACEHOLDER_TEXT = "Generating your component..."

ALLOWED_TRANSITIONS: dict[MessageStatus, frozenset[MessageStatus]] = {
    MessageStatus.PENDING: frozenset({MessageStatus.PROCESSING, MessageStatus.CANCELLED}),
    MessageStatus.PROCESSING: frozenset(
        {MessageStatus.COMPLETED, MessageStatus.FAILED, MessageStatus.CANCELLED}
    ),
    MessageStatus.COMPLETED: frozenset(),
    MessageStatus.FAILED: frozenset(),
    MessageStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def is_terminal(status: MessageStatus) -> bool:
    return MessageStatus(status) in TERMINAL_STATUSES


def can_transition(current: MessageStatus, target: MessageStatus) -> bool:
    return MessageStatus(target) in ALLOWED_TRANSITIONS[MessageStatus(current)]


def transition_message(message: ChatMessage, target: MessageStatus) -> ChatMessage:
    """Move ``message`` to ``target`` or raise if the lifecycle forbids it."""
    current = MessageStatus(message.status)
    if not can_transition(current, target):
        raise InvalidMessageTransitionError(current.value, MessageStatus(target).value)
    message.status = target
    return message


def validate_message_content(
    role: MessageRole,
    text: str | None,
    images: list[Any] | None = None,
    jsx: str | None = None,
) -> None:
    """Reject messages that carry nothing for their role.

    User messages need text or an image, assistant messages need text or JSX.
    """
    has_text = bool(text and text.strip())
    if role == MessageRole.USER and not (has_text or images):
        raise MessageValidationError("User messages must have text or images")
    if role == MessageRole.ASSISTANT and not (has_text or (jsx and jsx.strip())):
        raise MessageValidationError("Assistant messages must have text or code")
