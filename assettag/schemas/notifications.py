import uuid
from datetime import datetime
from typing import Optional
from enum import Enum

from pydantic import Field

from .common import CamelModel


class NotificationType(str, Enum):
    maintenance = "maintenance"
    status_change = "status_change"
    assignment = "assignment"
    alert = "alert"
    info = "info"
    reminder = "reminder"
    critical = "critical"


class NotificationPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class NotificationCreate(CamelModel):
    type: NotificationType
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    user_id: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.medium
    action_required: bool = False
    action_url: Optional[str] = None
    metadata: Optional[dict] = None


class NotificationResponse(CamelModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    user_id: Optional[str] = None
    priority: str
    read: bool = False
    action_required: bool = False
    action_url: Optional[str] = None
    metadata_json: Optional[dict] = Field(default=None, serialization_alias="metadata")
    created_at: datetime
    updated_at: Optional[datetime] = None


class UnreadCountResponse(CamelModel):
    count: int


class ClearResponse(CamelModel):
    message: str
    count: int
