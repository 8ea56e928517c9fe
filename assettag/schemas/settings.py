import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import Field

from .common import CamelModel


class WebhookIntegration(CamelModel):
    enabled: bool = False
    webhook_url: str = ""


class Integrations(CamelModel):
    slack: WebhookIntegration = WebhookIntegration()
    teams: WebhookIntegration = WebhookIntegration()


class SettingsUpdate(CamelModel):
    app_name: Optional[str] = None
    timezone: Optional[str] = None
    maintenance_mode: Optional[bool] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    company_name: Optional[str] = None
    email_notifications_enabled: Optional[bool] = None
    email_host: Optional[str] = None
    email_port: Optional[int] = Field(default=None, ge=1, le=65535)
    email_username: Optional[str] = None
    email_password: Optional[str] = None
    integrations: Optional[Integrations] = None


class SettingsResponse(CamelModel):
    id: uuid.UUID
    app_name: str
    timezone: str
    maintenance_mode: bool
    api_key: Optional[str] = None
    last_api_use: Optional[datetime] = None
    logo_url: str = ""
    primary_color: str
    secondary_color: str
    company_name: str
    email_notifications_enabled: bool = False
    email_host: str = ""
    email_port: int = 587
    email_username: str = ""
    integrations: Optional[dict] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ApiKeyResponse(CamelModel):
    message: str
    api_key: str
    last_api_use: datetime


class DeleteAllAssetsRequest(CamelModel):
    confirmation_text: str = ""


class DeleteAllAssetsResponse(CamelModel):
    message: str
    deleted_assets: int
    deleted_activities: int


class SystemStats(CamelModel):
    total_assets: int
    total_users: int
    total_activities: int
    total_maintenance_records: int
    total_notifications: int
    assets_by_status: Dict[str, int]
