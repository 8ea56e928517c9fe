import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..auth.security import get_current_user, require_permissions, get_password_hash, verify_password
from ..models.models import User
from ..schemas.users import (
    UserCreate,
    UserUpdate,
    UserResponse,
    ProfileUpdate,
    ChangePasswordRequest,
    PermissionsUpdate,
    PermissionsResponse,
)
from ..services.permissions import DEFAULT_PERMISSIONS, role_defaults, effective_permissions, has_permission, is_admin


router = APIRouter(prefix="/api/users", tags=["users"])
logger = structlog.get_logger(__name__)


def _get_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _ensure_self_or(current: User, user_id: uuid.UUID, perm: str):
    if current.id != user_id and not has_permission(current, perm):
        raise HTTPException(status_code=403, detail=f"You do not have permission to {perm}")


def _email_taken(db: Session, email: str, exclude_id: uuid.UUID = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _known_permissions(perms: dict) -> dict:
    return {k: bool(v) for k, v in (perms or {}).items() if k in DEFAULT_PERMISSIONS}


@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewUsers")),
):
    return db.query(User).order_by(User.created_at.desc()).all()


@router.get("/profile/{user_id}", response_model=UserResponse)
def get_profile(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    _ensure_self_or(current, user_id, "viewUsers")
    return _get_or_404(db, user_id)


@router.put("/profile/{user_id}", response_model=UserResponse)
def update_profile(
    user_id: uuid.UUID,
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    """Self-service profile edit; role, status and permissions are not reachable from here"""
    _ensure_self_or(current, user_id, "editUsers")
    user = _get_or_404(db, user_id)
    update_data = body.dict(exclude_unset=True)
    if update_data.get("email") and _email_taken(db, update_data["email"], user.id):
        raise HTTPException(status_code=400, detail="Email already in use")
    if body.notification_preferences is not None:
        update_data["notification_preferences"] = body.notification_preferences.model_dump(by_alias=True)
    for key, value in update_data.items():
        if value is None and key in ("name", "email"):
            continue
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


@router.post("/change-password/{user_id}")
def change_password(
    user_id: uuid.UUID,
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    if current.id != user_id and not is_admin(current):
        raise HTTPException(status_code=403, detail="You can only change your own password")
    user = _get_or_404(db, user_id)
    admin_override = is_admin(current) and current.id != user_id
    if not admin_override:
        if not body.current_password or not verify_password(body.current_password, user.password_hash):
            raise HTTPException(status_code=401, detail="Current password is incorrect")
    user.password_hash = get_password_hash(body.new_password)
    db.commit()
    logger.info("password_changed", user_id=str(user.id), by=str(current.id))
    return {"message": "Password changed successfully"}


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewUsers")),
):
    return _get_or_404(db, user_id)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("createUsers")),
):
    if _email_taken(db, body.email):
        raise HTTPException(status_code=400, detail="User already exists with this email")
    role = body.role.value
    permissions = role_defaults(role)
    permissions.update(_known_permissions(body.permissions))
    user = User(
        name=body.name.strip(),
        email=body.email,
        password_hash=get_password_hash(body.password),
        role=role,
        status=body.status.value,
        department=body.department,
        job_title=body.job_title,
        phone_number=body.phone_number,
        permissions=permissions,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="User already exists with this email")
    db.refresh(user)
    logger.info("user_created", user_id=str(user.id), role=role)
    return user


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("editUsers")),
):
    user = _get_or_404(db, user_id)
    update_data = body.dict(exclude_unset=True)
    password = update_data.pop("password", None)
    if update_data.get("email") and _email_taken(db, update_data["email"], user.id):
        raise HTTPException(status_code=400, detail="Email already in use")
    for key in ("role", "status"):
        if update_data.get(key) is not None:
            update_data[key] = update_data[key].value
    if "permissions" in update_data:
        update_data["permissions"] = _known_permissions(update_data["permissions"])
    for key, value in update_data.items():
        if value is None and key in ("name", "email", "role", "status"):
            continue
        setattr(user, key, value)
    if password:
        user.password_hash = get_password_hash(password)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
    _=Depends(require_permissions("deleteUsers")),
):
    user = _get_or_404(db, user_id)
    if user.id == current.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    db.delete(user)
    db.commit()
    logger.info("user_deleted", user_id=str(user_id), by=str(current.id))
    return {"message": "User deleted successfully"}


@router.get("/{user_id}/permissions", response_model=PermissionsResponse)
def get_permissions(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    _ensure_self_or(current, user_id, "managePermissions")
    user = _get_or_404(db, user_id)
    return {"user_id": user.id, "role": user.role, "permissions": effective_permissions(user)}


@router.put("/{user_id}/permissions", response_model=PermissionsResponse)
def update_permissions(
    user_id: uuid.UUID,
    body: PermissionsUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("managePermissions")),
):
    user = _get_or_404(db, user_id)
    merged = dict(user.permissions or {})
    merged.update(_known_permissions(body.permissions))
    # reassign so the JSON column is flagged dirty
    user.permissions = merged
    db.commit()
    db.refresh(user)
    logger.info("permissions_updated", user_id=str(user.id), changed=sorted(body.permissions))
    return {"user_id": user.id, "role": user.role, "permissions": effective_permissions(user)}
