"""
Models package initialization.
"""

from .base import Base, BaseModel
from .chat_message import ChatMessage, MessageRole, MessageStatus
from .chat_session import ChatSession
from .component import Component
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    # Chat models
    "ChatSession",
    "ChatMessage",
    "MessageRole",
    "MessageStatus",
    "Component",
]
