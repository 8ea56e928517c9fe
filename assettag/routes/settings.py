import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..auth.security import get_current_user, require_permissions, require_roles
from ..models.models import (
    Activity,
    AssetFile,
    AssetNote,
    Equipment,
    Maintenance,
    Notification,
    User,
)
from ..schemas.settings import (
    SettingsUpdate,
    SettingsResponse,
    ApiKeyResponse,
    DeleteAllAssetsRequest,
    DeleteAllAssetsResponse,
    SystemStats,
)
from ..schemas.users import UserResponse, RoleUpdate
from ..services.app_settings import get_or_create_settings, generate_api_key
from ..services.assets import ASSET_STATUSES
from ..services.maintenance_mode import clear_maintenance_mode_cache
from ..services.permissions import role_defaults
from ..services.scheduling import utcnow


router = APIRouter(prefix="/api/settings", tags=["settings"])
logger = structlog.get_logger(__name__)

DELETE_ALL_CONFIRMATION = "DELETE ALL ASSETS"

# wire keys for the per-status asset counts
STATUS_KEYS = {
    "In Use": "inUse",
    "Available": "available",
    "Under Maintenance": "underMaintenance",
    "Retired": "retired",
    "Lost": "lost",
}


@router.get("", response_model=SettingsResponse)
def get_settings(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewSettings")),
):
    return get_or_create_settings(db)


@router.put("", response_model=SettingsResponse)
def update_settings(
    body: SettingsUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("editSettings")),
):
    row = get_or_create_settings(db)
    update_data = body.dict(exclude_unset=True)
    if body.integrations is not None:
        update_data["integrations"] = body.integrations.model_dump(by_alias=True)
    for key, value in update_data.items():
        if value is None:
            continue
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    clear_maintenance_mode_cache()
    logger.info("settings_updated", fields=sorted(update_data), maintenance_mode=row.maintenance_mode, user_id=str(user.id))
    return row


@router.post("/regenerate-api-key", response_model=ApiKeyResponse)
def regenerate_api_key(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("regenerateApiKey")),
):
    row = get_or_create_settings(db)
    row.api_key = generate_api_key()
    row.last_api_use = utcnow()
    db.commit()
    db.refresh(row)
    clear_maintenance_mode_cache()
    logger.info("api_key_regenerated")
    return {"message": "API key regenerated successfully", "api_key": row.api_key, "last_api_use": row.last_api_use}


@router.delete("/delete-all-assets", response_model=DeleteAllAssetsResponse)
def delete_all_assets(
    body: Optional[DeleteAllAssetsRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("deleteAllAssets")),
):
    if body is None or body.confirmation_text != DELETE_ALL_CONFIRMATION:
        raise HTTPException(status_code=400, detail=f'Invalid confirmation text. Please type "{DELETE_ALL_CONFIRMATION}" to confirm.')
    # bulk deletes skip ORM cascades, so children go first
    db.query(AssetNote).delete(synchronize_session=False)
    db.query(AssetFile).delete(synchronize_session=False)
    deleted_assets = db.query(Equipment).delete(synchronize_session=False)
    deleted_activities = db.query(Activity).delete(synchronize_session=False)
    db.commit()
    logger.warning("all_assets_deleted", assets=deleted_assets, activities=deleted_activities, user_id=str(user.id))
    return {
        "message": "All assets deleted successfully",
        "deleted_assets": deleted_assets,
        "deleted_activities": deleted_activities,
    }


@router.get("/users", response_model=List[UserResponse])
def settings_users(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewUsers")),
):
    return db.query(User).order_by(User.created_at.desc()).all()


@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: uuid.UUID,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_roles("Administrator")),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user.role = body.role.value
    user.permissions = role_defaults(user.role)
    db.commit()
    db.refresh(user)
    logger.info("user_role_changed", user_id=str(user.id), role=user.role)
    return user


@router.get("/stats", response_model=SystemStats)
def system_stats(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewSettings")),
):
    by_status = dict(db.query(Equipment.status, func.count(Equipment.id)).group_by(Equipment.status).all())
    return SystemStats(
        total_assets=db.query(Equipment).count(),
        total_users=db.query(User).count(),
        total_activities=db.query(Activity).count(),
        total_maintenance_records=db.query(Maintenance).count(),
        total_notifications=db.query(Notification).count(),
        assets_by_status={STATUS_KEYS[s]: by_status.get(s, 0) for s in ASSET_STATUSES},
    )
