import uuid
from datetime import datetime
from typing import List, Optional
from enum import Enum

from pydantic import Field, field_validator

from .common import CamelModel


class MaintenancePeriod(str, Enum):
    none = ""
    weekly = "Weekly"
    monthly = "Monthly"
    every_3_months = "Every 3 Months"
    every_6_months = "Every 6 Months"
    quarterly = "Quarterly"
    bi_annually = "Bi-annually"
    annually = "Annually"
    every_2_years = "Every 2 Years"
    as_needed = "As Needed"


class AssetMaintenanceStatus(str, Enum):
    up_to_date = "Up to Date"
    due_soon = "Due Soon"
    overdue = "Overdue"
    in_progress = "In Progress"
    not_scheduled = "Not Scheduled"


class EquipmentBase(CamelModel):
    name: str = Field(min_length=1)
    asset_id: str = Field(min_length=1)
    category: str = "Other"
    location: Optional[str] = None
    status: str = "In Use"
    model: Optional[str] = None
    serial: Optional[str] = None
    purchase_date: Optional[str] = None
    acquisition_date: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    maintenance_period: MaintenancePeriod = MaintenancePeriod.none
    maintenance_schedule: MaintenancePeriod = MaintenancePeriod.none
    next_scheduled_maintenance: Optional[datetime] = None
    notes: Optional[str] = None
    qr_code: Optional[str] = None
    assigned_to: Optional[str] = None
    department: Optional[str] = None

    @field_validator("name", "asset_id", "category", "location", "status", "model", "serial", "department", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return v.strip() if isinstance(v, str) else v


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    purchase_date: Optional[str] = None
    acquisition_date: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    maintenance_period: Optional[MaintenancePeriod] = None
    maintenance_schedule: Optional[MaintenancePeriod] = None
    next_scheduled_maintenance: Optional[datetime] = None
    last_maintenance_date: Optional[datetime] = None
    notes: Optional[str] = None
    qr_code: Optional[str] = None
    assigned_to: Optional[str] = None
    department: Optional[str] = None

    @field_validator("name", "category", "location", "status", "model", "serial", "department", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("name", "category", "status", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class AssetNoteCreate(CamelModel):
    content: str = Field(min_length=1)


class AssetNoteResponse(CamelModel):
    id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime
    created_by: str
    updated_by: str


class AssetFileResponse(CamelModel):
    """Attachment metadata; the bytes are only served by the download route"""
    id: str = Field(validation_alias="file_id")
    name: str
    type: Optional[str] = Field(default=None, validation_alias="content_type")
    upload_date: datetime
    size: int


class EquipmentResponse(CamelModel):
    id: uuid.UUID
    asset_id: str
    name: str
    category: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    purchase_date: Optional[str] = None
    acquisition_date: Optional[str] = None
    cost: Optional[float] = None
    currency: Optional[str] = None
    maintenance_period: Optional[str] = None
    maintenance_schedule: Optional[str] = None
    last_maintenance_date: Optional[datetime] = None
    next_scheduled_maintenance: Optional[datetime] = None
    maintenance_status: Optional[str] = None
    maintenance_due_notification_sent: bool = False
    notes: Optional[str] = None
    notes_history: List[AssetNoteResponse] = []
    qr_code: Optional[str] = None
    attached_files: List[AssetFileResponse] = []
    assigned_to: Optional[str] = None
    department: Optional[str] = None
    last_modified: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class EquipmentDeleteResponse(CamelModel):
    message: str
    equipment: EquipmentResponse


class FileUploadResponse(CamelModel):
    message: str
    file: AssetFileResponse
    equipment: EquipmentResponse
