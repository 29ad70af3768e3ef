"""Session API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.component.service import ComponentService
from app.domains.session.service import SessionService
from app.schemas.base import ResponseSchema
from app.schemas.chat import MessageResponse
from app.schemas.component import ComponentResponse
from app.schemas.session import SessionCreate, SessionResponse, SessionUpdate
from app.shared.pagination import PaginationParams, page_info
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/sessions",
    tags=["sessions"],
    dependencies=[Depends(validate_token)],
)


@router.get("/", response_model=ResponseSchema)
async def get_sessions(
    _request: Request,
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of sessions, most recently active first."""
    service = SessionService(db)
    result = await service.get_sessions_list(
        current_user.id, search=search, pagination=PaginationParams(page=page, size=size)
    )

    return ResponseSchema(
        status="success",
        message="Sessions retrieved successfully",
        data={
            "sessions": [SessionResponse.from_model(session).model_dump() for session in result["items"]],
            "pagination": page_info(result),
        },
    )


@router.get("/recent", response_model=ResponseSchema)
async def get_recent_sessions(
    _request: Request,
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = SessionService(db)
    sessions = await service.get_recent_sessions(current_user.id, limit=limit)

    return ResponseSchema(
        status="success",
        message="Recent sessions retrieved successfully",
        data=[SessionResponse.from_model(session).model_dump() for session in sessions],
    )


@router.post("/", response_model=ResponseSchema, status_code=201)
async def create_session(
    _request: Request,
    session_data: SessionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new session."""
    service = SessionService(db)
    session = await service.create_session(session_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Session created successfully",
        data=SessionResponse.from_model(session).model_dump(),
    )


@router.get("/{session_id}", response_model=ResponseSchema)
async def get_session(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = SessionService(db)
    session = await service.open_session(session_id, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Session retrieved successfully",
        data=SessionResponse.from_model(session).model_dump(),
    )


@router.put("/{session_id}", response_model=ResponseSchema)
async def update_session(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    session_data: SessionUpdate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a session, merging component, settings and metadata maps."""
    service = SessionService(db)
    session = await service.update_session(session_id, session_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Session updated successfully",
        data=SessionResponse.from_model(session).model_dump(),
    )


@router.delete("/{session_id}", response_model=ResponseSchema)
async def delete_session(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = SessionService(db)
    await service.delete_session(session_id, user_id=current_user.id)

    return ResponseSchema(status="success", message="Session deleted successfully", data=None)


@router.get("/{session_id}/messages", response_model=ResponseSchema)
async def get_session_messages(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a session's messages in conversation order."""
    service = SessionService(db)
    result = await service.get_session_messages(
        session_id, user_id=current_user.id, pagination=PaginationParams(page=page, size=size)
    )

    return ResponseSchema(
        status="success",
        message="Messages retrieved successfully",
        data={
            "messages": [MessageResponse.from_model(message).model_dump() for message in result["items"]],
            "pagination": page_info(result),
        },
    )


@router.post("/{session_id}/duplicate", response_model=ResponseSchema, status_code=201)
async def duplicate_session(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = SessionService(db)
    session = await service.duplicate_session(session_id, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Session duplicated successfully",
        data=SessionResponse.from_model(session).model_dump(),
    )


@router.get("/{session_id}/component", response_model=ResponseSchema)
async def get_session_component(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the latest component artifact generated in a session."""
    await SessionService(db).get_session(session_id, user_id=current_user.id)
    component = await ComponentService(db).get_session_component(session_id, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Component retrieved successfully",
        data=ComponentResponse.model_validate(component).model_dump(),
    )
