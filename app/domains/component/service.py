"""Component artifact service: upserts, lookups and version lineage."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import and_, desc, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.chat import ComponentLineageError, ComponentNotFoundError
from app.schemas.component import ComponentVersionCreate
from app.schemas.generation import ComponentResult, ParseProvenance
from app.shared.pagination import PaginationParams, paginate
from models.chat_session import ChatSession
from models.component import Component

logger = logging.getLogger(__name__)


class ComponentService:
    """Service class for component artifact business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_for_session(
        self,
        session: ChatSession,
        result: ComponentResult,
        prompt: str | None = None,
    ) -> Component | None:
        """Save the session's current code into its latest artifact.

        The newest active artifact is updated in place with its version
        bumped. A session without one gets a first version. Nothing is saved
        while the session has no JSX. A salvaged reply only carries code, so an
        existing artifact keeps its name, description and classification.
        The caller owns the transaction.
        """
        if not session.current_jsx:
            return None

        component = await self.get_latest_for_session(session.id)
        if component is None:
            component = Component(session_id=session.id, user_id=session.user_id, version=1)
            self.db.add(component)
        else:
            component.version = (component.version or 1) + 1

        if component.name is None or result.provenance == ParseProvenance.STRUCTURED:
            component.name = (result.component_name or "GeneratedComponent")[:100]
            component.description = (result.explanation or "")[:500]
            component.dependencies = list(result.dependencies)
            component.category = result.category
            component.complexity = result.complexity
        component.jsx = session.current_jsx
        component.css = session.current_css or ""
        component.props = dict(session.current_props or {})
        component.ai_model = result.model
        component.generation_prompt = prompt

        await self.db.flush()
        return component

    async def get_latest_for_session(self, session_id: UUID) -> Component | None:
        stmt = (
            select(Component)
            .where(and_(Component.session_id == session_id, Component.is_active.is_(True)))
            .order_by(desc(Component.version), desc(Component.created_at))
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_session_component(self, session_id: UUID, user_id: UUID) -> Component:
        """Get the newest artifact of a session owned by the user."""
        stmt = (
            select(Component)
            .where(
                and_(
                    Component.session_id == session_id,
                    Component.user_id == user_id,
                    Component.is_active.is_(True),
                )
            )
            .order_by(desc(Component.version), desc(Component.created_at))
            .limit(1)
        )
        result = await self.db.execute(stmt)
        component = result.scalar_one_or_none()
        if not component:
            raise ComponentNotFoundError("No component generated for this session yet")
        return component

    async def get_component(self, component_id: UUID, user_id: UUID) -> Component:
        component = await self._get_component_by_id_and_user(component_id, user_id)
        if not component:
            raise ComponentNotFoundError()
        return component

    async def get_components_list(
        self,
        user_id: UUID,
        category: str | None = None,
        search: str | None = None,
        pagination: PaginationParams | None = None,
    ) -> dict[str, Any]:
        """Get paginated list of the user's components."""
        stmt = select(Component).where(and_(Component.user_id == user_id, Component.is_active.is_(True)))

        if category:
            stmt = stmt.where(Component.category == category)
        if search:
            search_term = f"%{search}%"
            stmt = stmt.where(or_(Component.name.ilike(search_term), Component.description.ilike(search_term)))

        stmt = stmt.order_by(desc(Component.updated_at))
        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def get_versions(self, component_id: UUID, user_id: UUID) -> list[Component]:
        """Direct versions forked from a component, oldest first."""
        await self.get_component(component_id, user_id)
        stmt = (
            select(Component)
            .where(
                and_(
                    Component.parent_component_id == component_id,
                    Component.user_id == user_id,
                    Component.is_active.is_(True),
                )
            )
            .order_by(Component.version, Component.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_version(
        self,
        component_id: UUID,
        version_data: ComponentVersionCreate,
        user_id: UUID,
    ) -> Component:
        """Fork a component into a new, strictly newer version."""
        parent = await self.get_component(component_id, user_id)
        overrides = version_data.model_dump(exclude_unset=True, exclude_none=True)

        child = Component(
            session_id=parent.session_id,
            user_id=user_id,
            name=overrides.get("name", parent.name),
            description=overrides.get("description", parent.description),
            jsx=overrides.get("jsx", parent.jsx),
            css=overrides.get("css", parent.css),
            props=overrides.get("props", dict(parent.props or {})),
            dependencies=list(parent.dependencies or []),
            version=(parent.version or 1) + 1,
            category=parent.category,
            complexity=parent.complexity,
            tags=overrides.get("tags", list(parent.tags or [])),
            framework=parent.framework,
            ai_model=parent.ai_model,
            generation_prompt=parent.generation_prompt,
            is_public=parent.is_public,
            parent_component_id=parent.id,
        )
        await self._check_lineage(child, parent)

        try:
            self.db.add(child)
            await self.db.commit()
            await self.db.refresh(child)
            return child
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create component version: {str(e)}") from e

    async def delete_component(self, component_id: UUID, user_id: UUID) -> bool:
        """Delete one version. Children lose their parent link, ancestors are untouched."""
        component = await self.get_component(component_id, user_id)

        try:
            await self.db.execute(
                update(Component)
                .where(Component.parent_component_id == component.id)
                .values(parent_component_id=None)
            )
            await self.db.delete(component)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete component: {str(e)}") from e

    # Private helper methods
    async def _check_lineage(self, child: Component, parent: Component) -> None:
        """Walk up from ``parent`` making sure every link points at an older version."""
        seen: set[UUID] = set()
        if child.id is not None:
            seen.add(child.id)
        newer_version = child.version
        node: Component | None = parent

        while node is not None:
            if node.id in seen:
                raise ComponentLineageError("Component lineage contains a cycle", details={"component_id": str(node.id)})
            if (node.version or 0) >= newer_version:
                raise ComponentLineageError(
                    "A parent component must be older than its version",
                    details={"parent_version": node.version, "version": newer_version},
                )
            seen.add(node.id)
            newer_version = node.version
            node = await self.db.get(Component, node.parent_component_id) if node.parent_component_id else None

    async def _get_component_by_id_and_user(self, component_id: UUID, user_id: UUID) -> Component | None:
        stmt = select(Component).where(
            and_(
                Component.id == component_id,
                Component.user_id == user_id,
                Component.is_active.is_(True),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
