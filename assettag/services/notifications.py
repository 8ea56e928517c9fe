"""
Notification service.
Creates in-app notifications for asset events and maintenance checks.
"""
from typing import Optional, Dict, List

import structlog
from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from ..models.models import Notification, User, Equipment


logger = structlog.get_logger(__name__)

NOTIFICATION_TYPES = ["maintenance", "status_change", "assignment", "alert", "info", "reminder", "critical"]
PRIORITIES = ["low", "medium", "high", "critical"]


def create_notification(
    db: Session,
    type: str,
    title: str,
    message: str,
    user_id: Optional[str] = None,
    asset_id: Optional[str] = None,
    asset_name: Optional[str] = None,
    priority: str = "medium",
    action_required: bool = False,
    action_url: Optional[str] = None,
    metadata: Optional[Dict] = None,
    commit: bool = True,
) -> Notification:
    """
    Create a notification record.

    Args:
        db: Database session
        type: Notification type (see NOTIFICATION_TYPES)
        title: Short title
        message: Body text
        user_id: Recipient; None makes it a general notification visible to administrators
        asset_id: Related asset tag id
        asset_name: Related asset name
        priority: low|medium|high|critical
        action_required: Whether the recipient needs to act
        action_url: Client route to open
        metadata: Extra structured context
        commit: Commit the session after adding

    Returns:
        Created Notification object
    """
    notification = Notification(
        type=type,
        title=title,
        message=message,
        user_id=str(user_id) if user_id else None,
        asset_id=asset_id,
        asset_name=asset_name,
        priority=(priority or "medium").lower(),
        action_required=action_required,
        action_url=action_url,
        metadata_json=metadata,
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    return notification


def maintenance_due(db: Session, asset: Equipment) -> Notification:
    return create_notification(
        db,
        type="maintenance",
        title="Maintenance Due",
        message=f"Asset {asset.name} ({asset.asset_id}) requires maintenance",
        asset_id=asset.asset_id,
        asset_name=asset.name,
        priority="high",
    )


def status_change(db: Session, asset: Equipment, old_status: Optional[str], new_status: Optional[str]) -> Notification:
    return create_notification(
        db,
        type="status_change",
        title="Asset Status Changed",
        message=f"{asset.name} status changed from {old_status} to {new_status}",
        asset_id=asset.asset_id,
        asset_name=asset.name,
        priority="medium",
    )


def assignment(db: Session, asset: Equipment, assignee: str) -> Notification:
    return create_notification(
        db,
        type="assignment",
        title="Asset Assigned",
        message=f"{asset.name} has been assigned to {assignee}",
        asset_id=asset.asset_id,
        asset_name=asset.name,
        priority="medium",
    )


def new_asset(db: Session, asset: Equipment) -> Notification:
    return create_notification(
        db,
        type="info",
        title="New Asset Registered",
        message=f"{asset.name} ({asset.asset_id}) has been added to inventory",
        asset_id=asset.asset_id,
        asset_name=asset.name,
        priority="low",
    )


def alert(db: Session, title: str, message: str, asset_id: Optional[str] = None) -> Notification:
    return create_notification(db, type="alert", title=title, message=message, asset_id=asset_id, priority="high")


def active_users_with_role(db: Session, role: str) -> List[User]:
    return db.query(User).filter(User.status == "Active", User.role == role).all()


def notify_admins_of_activity(
    db: Session,
    message: str,
    title: str = "System Activity",
    asset_id: Optional[str] = None,
    priority: str = "low",
    action_url: Optional[str] = None,
) -> Dict:
    """One info notification per active Administrator."""
    admins = active_users_with_role(db, "Administrator")
    for admin in admins:
        create_notification(
            db,
            type="info",
            title=title,
            message=message,
            user_id=str(admin.id),
            asset_id=asset_id,
            priority=priority,
            action_url=action_url,
            commit=False,
        )
    db.commit()
    return {"success": True, "notified": len(admins)}


def visible_to(db: Session, user: User) -> Query:
    """Notifications a user may see: their own, plus general ones for administrators."""
    query = db.query(Notification)
    if user.role == "Administrator":
        return query.filter(or_(Notification.user_id == str(user.id), Notification.user_id.is_(None)))
    return query.filter(Notification.user_id == str(user.id))
