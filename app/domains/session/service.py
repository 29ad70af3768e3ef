"""Session service layer with business logic."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import and_, desc, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.chat import SessionNotFoundError
from app.schemas.session import SessionCreate, SessionUpdate
from app.shared.pagination import PaginationParams, paginate
from models.chat_message import ChatMessage
from models.chat_session import ChatSession

logger = logging.getLogger(__name__)

_METADATA_FIELDS = {"ai_model", "tags", "is_public"}
_SETTINGS_FIELDS = {"auto_save", "theme"}


class SessionService:
    """Service class for chat session business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_session(self, session_data: SessionCreate, user_id: UUID) -> ChatSession:
        """Create a new session."""
        session = ChatSession(
            user_id=user_id,
            title=session_data.title,
            description=session_data.description,
            tags=list(session_data.tags),
        )
        if session_data.settings:
            session.auto_save = session_data.settings.auto_save
            session.theme = session_data.settings.theme

        try:
            self.db.add(session)
            await self.db.commit()
            await self.db.refresh(session)
            return session
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create session: {str(e)}") from e

    async def get_session(self, session_id: UUID, user_id: UUID) -> ChatSession:
        """Get an active session owned by the user."""
        session = await self._get_session_by_id_and_user(session_id, user_id)
        if not session:
            raise SessionNotFoundError()
        return session

    async def open_session(self, session_id: UUID, user_id: UUID) -> ChatSession:
        """Get a session and record the visit as activity."""
        session = await self.get_session(session_id, user_id)
        session.touch()
        await self.db.commit()
        await self.db.refresh(session)
        return session

    async def get_sessions_list(
        self,
        user_id: UUID,
        search: str | None = None,
        pagination: PaginationParams | None = None,
    ) -> dict[str, Any]:
        """Get paginated list of active sessions, most recently active first."""
        stmt = select(ChatSession).where(and_(ChatSession.user_id == user_id, ChatSession.is_active.is_(True)))

        if search:
            search_term = f"%{search}%"
            stmt = stmt.where(
                or_(
                    ChatSession.title.ilike(search_term),
                    ChatSession.description.ilike(search_term),
                )
            )

        stmt = stmt.order_by(desc(ChatSession.last_activity))
        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def get_recent_sessions(self, user_id: UUID, limit: int = 10) -> list[ChatSession]:
        stmt = (
            select(ChatSession)
            .where(and_(ChatSession.user_id == user_id, ChatSession.is_active.is_(True)))
            .order_by(desc(ChatSession.last_activity))
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_session(self, session_id: UUID, session_data: SessionUpdate, user_id: UUID) -> ChatSession:
        """Update a session.

        ``current_component``, ``settings`` and ``metadata`` are merged into
        the stored values, other fields are replaced.
        """
        session = await self.get_session(session_id, user_id)
        update_data = session_data.model_dump(exclude_unset=True)

        if "title" in update_data and update_data["title"] is not None:
            session.title = update_data["title"]
        if "description" in update_data:
            session.description = update_data["description"]

        component = update_data.get("current_component") or {}
        if "jsx" in component:
            session.current_jsx = component["jsx"] or ""
        if "css" in component:
            session.current_css = component["css"] or ""
        if isinstance(component.get("props"), dict):
            session.current_props = {**(session.current_props or {}), **component["props"]}

        for field, value in (update_data.get("settings") or {}).items():
            if field in _SETTINGS_FIELDS:
                setattr(session, field, value)
        for field, value in (update_data.get("metadata") or {}).items():
            if field in _METADATA_FIELDS:
                setattr(session, field, value)

        session.touch()
        try:
            await self.db.commit()
            await self.db.refresh(session)
            return session
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update session: {str(e)}") from e

    async def delete_session(self, session_id: UUID, user_id: UUID) -> bool:
        """Soft delete a session."""
        session = await self.get_session(session_id, user_id)
        session.is_active = False

        try:
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete session: {str(e)}") from e

    async def duplicate_session(self, session_id: UUID, user_id: UUID) -> ChatSession:
        """Copy a session's component, settings and metadata into a fresh session."""
        original = await self.get_session(session_id, user_id)
        copy = ChatSession(
            user_id=user_id,
            title=f"{original.title} (Copy)"[:100],
            description=original.description,
            current_jsx=original.current_jsx,
            current_css=original.current_css,
            current_props=dict(original.current_props or {}),
            ai_model=original.ai_model,
            tags=list(original.tags or []),
            is_public=original.is_public,
            auto_save=original.auto_save,
            theme=original.theme,
            total_messages=0,
        )

        try:
            self.db.add(copy)
            await self.db.commit()
            await self.db.refresh(copy)
            return copy
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to duplicate session: {str(e)}") from e

    async def get_session_messages(
        self,
        session_id: UUID,
        user_id: UUID,
        pagination: PaginationParams | None = None,
    ) -> dict[str, Any]:
        """Get a session's messages in conversation order."""
        await self.get_session(session_id, user_id)
        stmt = select(ChatMessage).where(ChatMessage.session_id == session_id).order_by(ChatMessage.sequence)
        return await paginate(self.db, stmt, pagination or PaginationParams(size=50))

    # Private helper methods
    async def _get_session_by_id_and_user(self, session_id: UUID, user_id: UUID) -> ChatSession | None:
        stmt = select(ChatSession).where(
            and_(
                ChatSession.id == session_id,
                ChatSession.user_id == user_id,
                ChatSession.is_active.is_(True),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
