import uuid
from datetime import datetime
from typing import Optional
from enum import Enum

from pydantic import Field

from .common import CamelModel


class ActionType(str, Enum):
    added = "Added"
    updated = "Updated"
    deleted = "Deleted"
    checked_out = "Checked Out"
    checked_in = "Checked In"
    maintenance = "Maintenance"
    other = "Other"


class ActivityCreate(CamelModel):
    asset_name: str = Field(min_length=1)
    asset_id: Optional[str] = None
    action: str = Field(min_length=1)
    action_type: ActionType
    user: Optional[str] = None
    icon: Optional[str] = None
    details: Optional[str] = None


class ActivityResponse(CamelModel):
    id: uuid.UUID
    asset_name: str
    asset_id: Optional[str] = None
    action: str
    action_type: str
    user: Optional[str] = None
    icon: Optional[str] = None
    details: Optional[str] = None
    date: Optional[str] = None
    timestamp: int
    created_at: datetime
