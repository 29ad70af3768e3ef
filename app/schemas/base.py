"""Base schemas for the application."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema class with common configuration."""

    model_config = ConfigDict(from_attributes=True)


class BaseModelSchema(BaseSchema):
    """Base schema for database models."""

    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ResponseSchema(BaseSchema):
    """Standard API response schema."""

    status: str
    message: str | None = None
    data: dict[str, Any] | list[Any] | None = None
