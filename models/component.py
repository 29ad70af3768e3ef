"""
Component model: the denormalized, versioned record of a session's generated code.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import backref, relationship

from .base import UUID, BaseModel, JSONType


class Component(BaseModel):
    """
    Represents a generated component artifact.

    ``version`` starts at 1 and is bumped whenever new code is saved over the
    record. ``parent_component_id`` links a forked version to the record it was
    forked from; deleting a version only nulls the link on its children.
    """

    __tablename__ = "components"

    session_id = Column(UUID(), ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    # Code
    jsx = Column(Text, nullable=False)
    css = Column(Text, nullable=False, default="")
    props = Column(JSONType, nullable=False, default=dict)
    dependencies = Column(JSONType, nullable=False, default=list)

    # Metadata
    version = Column(Integer, nullable=False, default=1)
    category = Column(String(50), nullable=False, default="other", index=True)
    complexity = Column(String(20), nullable=False, default="simple")
    tags = Column(JSONType, nullable=False, default=list)
    framework = Column(String(50), nullable=False, default="react")
    ai_model = Column(String(100), nullable=True)
    generation_prompt = Column(Text, nullable=True)

    is_public = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    parent_component_id = Column(UUID(), ForeignKey("components.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    user = relationship("User", back_populates="components")
    parent = relationship(
        "Component",
        remote_side="Component.id",
        backref=backref("versions", passive_deletes=True),
    )
