"""Component API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.component.service import ComponentService
from app.domains.generation.parser import validate_component_code
from app.schemas.base import ResponseSchema
from app.schemas.component import ComponentResponse, ComponentVersionCreate
from app.shared.pagination import PaginationParams, page_info
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/components",
    tags=["components"],
    dependencies=[Depends(validate_token)],
)


@router.get("/", response_model=ResponseSchema)
async def get_components(
    _request: Request,
    category: str | None = Query(None, max_length=50),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of the user's components."""
    service = ComponentService(db)
    result = await service.get_components_list(
        current_user.id,
        category=category,
        search=search,
        pagination=PaginationParams(page=page, size=size),
    )

    return ResponseSchema(
        status="success",
        message="Components retrieved successfully",
        data={
            "components": [ComponentResponse.model_validate(item).model_dump() for item in result["items"]],
            "pagination": page_info(result),
        },
    )


@router.get("/{component_id}", response_model=ResponseSchema)
async def get_component(
    _request: Request,
    component_id: UUID = Path(..., description="Component ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a component with structural checks of its code."""
    service = ComponentService(db)
    component = await service.get_component(component_id, user_id=current_user.id)

    data = ComponentResponse.model_validate(component).model_dump()
    data["checks"] = validate_component_code(component.jsx).model_dump()
    return ResponseSchema(status="success", message="Component retrieved successfully", data=data)


@router.get("/{component_id}/versions", response_model=ResponseSchema)
async def get_component_versions(
    _request: Request,
    component_id: UUID = Path(..., description="Component ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ComponentService(db)
    versions = await service.get_versions(component_id, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Component versions retrieved successfully",
        data=[ComponentResponse.model_validate(version).model_dump() for version in versions],
    )


@router.post("/{component_id}/versions", response_model=ResponseSchema, status_code=201)
async def create_component_version(
    _request: Request,
    component_id: UUID = Path(..., description="Component ID"),
    version_data: ComponentVersionCreate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Fork a component into a new version."""
    service = ComponentService(db)
    component = await service.create_version(component_id, version_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Component version created successfully",
        data=ComponentResponse.model_validate(component).model_dump(),
    )


@router.delete("/{component_id}", response_model=ResponseSchema)
async def delete_component(
    _request: Request,
    component_id: UUID = Path(..., description="Component ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete one version. Older and newer versions are kept."""
    service = ComponentService(db)
    await service.delete_component(component_id, user_id=current_user.id)

    return ResponseSchema(status="success", message="Component deleted successfully", data=None)
