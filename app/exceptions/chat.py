"""Session, message and component exceptions."""

from typing import Any

from .base import ConflictError, NotFoundError, ValidationError


class SessionNotFoundError(NotFoundError):
    """Raised when a session is missing, deleted, or owned by someone else."""

    def __init__(self, message: str = "Session not found", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)
        self.error_code = "SESSION_NOT_FOUND"
        self.detail["error_code"] = self.error_code


class MessageNotFoundError(NotFoundError):
    """Raised when a message is missing or belongs to another user's session."""

    def __init__(self, message: str = "Message not found", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)
        self.error_code = "MESSAGE_NOT_FOUND"
        self.detail["error_code"] = self.error_code


class ComponentNotFoundError(NotFoundError):
    """Raised when a component artifact is missing or not owned by the caller."""

    def __init__(self, message: str = "Component not found", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)
        self.error_code = "COMPONENT_NOT_FOUND"
        self.detail["error_code"] = self.error_code


class MessageValidationError(ValidationError):
    """Raised when message content violates the role's content rules."""

    def __init__(self, message: str = "Message validation failed", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)


class MessageEditNotAllowedError(ValidationError):
    """Raised when editing anything other than a user-authored message."""

    def __init__(self, message: str = "Can only edit user messages", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)


class InvalidMessageTransitionError(ConflictError):
    """Raised when a message status change is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot move message from {current} to {target}",
            details={"current_status": current, "target_status": target},
        )
        self.current = current
        self.target = target


class ComponentLineageError(ValidationError):
    """Raised when a version link would not point at a strictly older component."""

    def __init__(self, message: str = "Invalid component lineage", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)
