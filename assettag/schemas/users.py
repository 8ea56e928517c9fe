import uuid
from datetime import datetime
from typing import Dict, Optional
from enum import Enum

from pydantic import EmailStr, Field, field_validator

from .common import CamelModel


class UserRole(str, Enum):
    administrator = "Administrator"
    manager = "Manager"
    user = "User"
    viewer = "Viewer"


class UserStatus(str, Enum):
    active = "Active"
    inactive = "Inactive"


class NotificationPreferences(CamelModel):
    critical_alerts: bool = True
    system_updates: bool = True
    weekly_summary: bool = False


class UserCreate(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole = UserRole.user
    status: UserStatus = UserStatus.active
    department: Optional[str] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    department: Optional[str] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    profile_photo: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    department: Optional[str] = None
    notification_preferences: Optional[NotificationPreferences] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: str = Field(min_length=6)


class PermissionsUpdate(CamelModel):
    permissions: Dict[str, bool]


class RoleUpdate(CamelModel):
    role: UserRole


class UserResponse(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    status: str
    department: Optional[str] = None
    job_title: Optional[str] = None
    phone_number: Optional[str] = None
    profile_photo: Optional[str] = None
    notification_preferences: Optional[dict] = None
    permissions: Optional[Dict[str, bool]] = None
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PermissionsResponse(CamelModel):
    user_id: uuid.UUID
    role: str
    permissions: Dict[str, bool]
