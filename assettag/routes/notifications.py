import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import get_current_user, require_permissions
from ..models.models import Notification, User
from ..schemas.notifications import (
    NotificationCreate,
    NotificationResponse,
    UnreadCountResponse,
    ClearResponse,
)
from ..services.notifications import create_notification, visible_to


router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _visible_or_404(db: Session, user: User, notification_id: uuid.UUID) -> Notification:
    notification = visible_to(db, user).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("viewNotifications")),
):
    return visible_to(db, user).order_by(Notification.created_at.desc()).limit(50).all()


@router.get("/unread", response_model=UnreadCountResponse)
def unread_count(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"count": visible_to(db, user).filter(Notification.read.is_(False)).count()}


@router.post("", response_model=NotificationResponse, status_code=201)
def post_notification(
    body: NotificationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return create_notification(
        db,
        type=body.type.value,
        title=body.title,
        message=body.message,
        user_id=body.user_id,
        asset_id=body.asset_id,
        asset_name=body.asset_name,
        priority=body.priority.value,
        action_required=body.action_required,
        action_url=body.action_url,
        metadata=body.metadata,
    )


@router.patch("/read-all", response_model=ClearResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    unread = visible_to(db, user).filter(Notification.read.is_(False)).all()
    for notification in unread:
        notification.read = True
    db.commit()
    return {"message": "All notifications marked as read", "count": len(unread)}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    notification = _visible_or_404(db, user, notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("deleteNotifications")),
):
    notification = _visible_or_404(db, user, notification_id)
    db.delete(notification)
    db.commit()
    return {"message": "Notification deleted"}


@router.delete("", response_model=ClearResponse)
def clear_notifications(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("deleteNotifications")),
):
    rows = visible_to(db, user).all()
    for notification in rows:
        db.delete(notification)
    db.commit()
    return {"message": "All notifications cleared", "count": len(rows)}
