"""
Chat session model: a persistent workspace holding one conversation and the
component that conversation is evolving.
"""

from typing import Any

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, JSONType, utcnow


def _default_title() -> str:
    return f"Session {utcnow().strftime('%Y-%m-%d')}"


class ChatSession(BaseModel):
    """
    Represents a chat session entity in the application.

    ``current_jsx``/``current_css``/``current_props`` hold the last accepted
    generation. They are only written by successful generations or explicit
    user updates, never by a failed generation.
    """

    __tablename__ = "chat_sessions"

    user_id = Column(UUID(), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False, default=_default_title)
    description = Column(String(500), nullable=True)

    # Current component
    current_jsx = Column(Text, nullable=False, default="")
    current_css = Column(Text, nullable=False, default="")
    current_props = Column(JSONType, nullable=False, default=dict)

    # Metadata
    total_messages = Column(Integer, nullable=False, default=0)
    last_activity = Column(DateTime(timezone=True), default=utcnow, index=True)
    ai_model = Column(String(100), nullable=False, default="gpt-4o-mini")
    tags = Column(JSONType, nullable=False, default=list)
    is_public = Column(Boolean, nullable=False, default=False)

    # Settings
    auto_save = Column(Boolean, nullable=False, default=True)
    theme = Column(String(10), nullable=False, default="light")

    # Soft delete flag
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    user = relationship("User", back_populates="chat_sessions")
    messages = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.sequence",
    )

    @property
    def current_component(self) -> dict[str, Any]:
        return {
            "jsx": self.current_jsx or "",
            "css": self.current_css or "",
            "props": dict(self.current_props or {}),
        }

    def touch(self) -> None:
        """Mark the session as active now."""
        self.last_activity = utcnow()

    def apply_generation(self, jsx: str, css: str, props: dict[str, Any] | None) -> None:
        """Merge a successful generation into the current component.

        Non-empty JSX/CSS replace the stored code, props are shallow-merged.
        """
        if jsx:
            self.current_jsx = jsx
        if css:
            self.current_css = css
        # Assign a new dict so the JSON column is flagged dirty
        self.current_props = {**(self.current_props or {}), **(props or {})}
        self.touch()
