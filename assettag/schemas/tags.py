import uuid
from datetime import datetime
from typing import Optional
from enum import Enum

from pydantic import Field, field_validator

from .common import CamelModel


class TagCategory(str, Enum):
    location = "Location"
    department = "Department"
    asset_type = "Asset Type"
    status = "Status"


class TagCreate(CamelModel):
    name: str = Field(min_length=1)
    category: TagCategory
    color: str = "#3B82F6"
    description: Optional[str] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TagUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[TagCategory] = None
    color: Optional[str] = None
    description: Optional[str] = None
    usage_count: Optional[int] = Field(default=None, ge=0)


class TagResponse(CamelModel):
    id: uuid.UUID
    name: str
    category: str
    color: str
    description: Optional[str] = None
    usage_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class TagWithCount(TagResponse):
    asset_count: int = 0
