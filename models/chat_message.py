"""
Chat message model for conversation turns and their generation lifecycle.
"""

import enum
from typing import Any

from sqlalchemy import Boolean, Column, Enum, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, JSONType, utcnow


class MessageRole(str, enum.Enum):
    """Message role enumeration."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageStatus(str, enum.Enum):
    """Message lifecycle status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ChatMessage(BaseModel):
    """
    Represents a chat message entity in the application.

    ``sequence`` is the 1-based position of the message inside its session and
    is what conversation order is derived from.
    Assistant turns point at the user turn they answer through ``reply_to_id``.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (UniqueConstraint("session_id", "sequence", name="uq_chat_messages_session_sequence"),)

    session_id = Column(UUID(), ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(), ForeignKey("users.id"), nullable=False)
    role = Column(Enum(MessageRole, values_callable=_enum_values, name="messagerole"), nullable=False)
    status = Column(
        Enum(MessageStatus, values_callable=_enum_values, name="messagestatus"),
        nullable=False,
        default=MessageStatus.COMPLETED,
        index=True,
    )
    sequence = Column(Integer, nullable=False, default=0)
    reply_to_id = Column(UUID(), ForeignKey("chat_messages.id", ondelete="SET NULL"), nullable=True)

    # Content
    text = Column(Text, nullable=False, default="")
    images = Column(JSONType, nullable=False, default=list)  # [{"url", "alt", "size"}]
    code_jsx = Column(Text, nullable=False, default="")
    code_css = Column(Text, nullable=False, default="")
    code_props = Column(JSONType, nullable=False, default=dict)

    # Generation metadata
    model_id = Column(String(100), nullable=True)
    provider = Column(String(50), nullable=True)
    temperature = Column(Float, nullable=True)
    prompt_tokens = Column(Integer, nullable=True)  # NULL when the provider reports no usage
    completion_tokens = Column(Integer, nullable=True)
    total_tokens = Column(Integer, nullable=True)
    processing_time_ms = Column(Integer, nullable=True)
    provenance = Column(String(20), nullable=True)  # structured, degraded, unparseable
    fallback_used = Column(Boolean, nullable=False, default=False)

    # Editing
    is_edited = Column(Boolean, nullable=False, default=False)
    edit_history = Column(JSONType, nullable=False, default=list)  # [{"content", "edited_at"}]

    # Error
    error_kind = Column(String(50), nullable=True)
    error_message = Column(Text, nullable=True)
    error_details = Column(JSONType, nullable=True)

    # Relationships
    session = relationship("ChatSession", back_populates="messages")

    @property
    def code(self) -> dict[str, Any]:
        return {
            "jsx": self.code_jsx or "",
            "css": self.code_css or "",
            "props": dict(self.code_props or {}),
        }

    @property
    def tokens(self) -> dict[str, int] | None:
        if self.total_tokens is None:
            return None
        return {
            "prompt": self.prompt_tokens or 0,
            "completion": self.completion_tokens or 0,
            "total": self.total_tokens,
        }

    @property
    def error(self) -> dict[str, Any] | None:
        if not self.error_kind:
            return None
        return {"kind": self.error_kind, "message": self.error_message, "details": self.error_details}

    def mark_as_edited(self, new_text: str) -> None:
        """Replace the text, keeping the previous text in the edit history."""
        if self.text:
            self.edit_history = [
                *(self.edit_history or []),
                {"content": self.text, "edited_at": utcnow().isoformat()},
            ]
        self.text = new_text
        self.is_edited = True
