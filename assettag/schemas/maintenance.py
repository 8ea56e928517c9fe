import uuid
from datetime import datetime
from typing import Dict, Optional
from enum import Enum

from pydantic import Field, field_validator

from .common import CamelModel


class ServiceType(str, Enum):
    annual_inspection = "Annual Inspection"
    repair = "Repair"
    preventative_maintenance = "Preventative Maintenance"
    preventive_maintenance = "Preventive Maintenance"
    emergency_repair = "Emergency Repair"
    routine_maintenance = "Routine Maintenance"
    calibration = "Calibration"
    upgrade = "Upgrade"
    cleaning = "Cleaning"
    other = "Other"


class MaintenanceStatus(str, Enum):
    scheduled = "Scheduled"
    in_progress = "In Progress"
    completed = "Completed"
    cancelled = "Cancelled"
    not_started = "Not Started"


class MaintenancePriority(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class MaintenanceBase(CamelModel):
    asset_id: str = Field(min_length=1)
    asset_name: str = Field(min_length=1)
    date: Optional[datetime] = None
    scheduled_date: Optional[datetime] = None
    service_type: ServiceType
    technician: str = Field(min_length=1)
    cost: float = Field(default=0, ge=0)
    status: MaintenanceStatus = MaintenanceStatus.scheduled
    priority: MaintenancePriority = MaintenancePriority.medium
    description: Optional[str] = None
    notes: Optional[str] = None
    next_maintenance_date: Optional[datetime] = None

    @field_validator("technician", "description", "notes", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class MaintenanceCreate(MaintenanceBase):
    pass


class MaintenanceSchedule(MaintenanceBase):
    """Scheduling always produces a Scheduled record; a supplied status is ignored"""
    pass


class MaintenanceUpdate(CamelModel):
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    date: Optional[datetime] = None
    scheduled_date: Optional[datetime] = None
    service_type: Optional[ServiceType] = None
    technician: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    next_maintenance_date: Optional[datetime] = None
    completed_by: Optional[str] = None

    @field_validator(
        "asset_id", "asset_name", "date", "scheduled_date", "service_type",
        "technician", "cost", "status", "priority", mode="before",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class MaintenanceStart(CamelModel):
    technician: Optional[str] = None
    notes: Optional[str] = None


class MaintenanceComplete(CamelModel):
    notes: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    completed_by: Optional[str] = None


class MaintenanceNotStarted(CamelModel):
    notes: Optional[str] = None
    reschedule_date: Optional[datetime] = None


class MaintenanceResponse(CamelModel):
    id: uuid.UUID
    asset_id: str
    asset_name: str
    date: datetime
    scheduled_date: datetime
    started_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    service_type: str
    technician: str
    cost: float = 0
    status: str
    priority: Optional[str] = None
    is_overdue: bool = False
    notification_sent: bool = False
    reminder_sent: bool = False
    description: Optional[str] = None
    notes: Optional[str] = None
    next_maintenance_date: Optional[datetime] = None
    completed_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class MaintenanceDeleteResponse(CamelModel):
    message: str
    maintenance: MaintenanceResponse


class MaintenanceWorkflowResponse(CamelModel):
    message: str
    maintenance: MaintenanceResponse


class MaintenanceCompleteResponse(MaintenanceWorkflowResponse):
    next_maintenance_date: Optional[datetime] = None


class MaintenanceStats(CamelModel):
    total_records: int = 0
    total_cost: float = 0
    avg_cost: float = 0
    status_counts: Dict[str, int] = {}
    service_type_counts: Dict[str, int] = {}


class OverdueCheckResponse(CamelModel):
    message: str
    count: int
