"""
Activity (audit trail) logging service.
Append-only log of actions taken on assets.
"""
import time
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from ..models.models import Activity, Equipment, User


logger = structlog.get_logger(__name__)

ACTION_TYPES = ["Added", "Updated", "Deleted", "Checked Out", "Checked In", "Maintenance", "Other"]

ICONS = {
    "Added": "📦",
    "Updated": "✏️",
    "Deleted": "🗑️",
    "Document Uploaded": "📄",
    "Document Deleted": "🗑️",
    "Maintenance": "🔧",
}


def actor_name(user: Optional[User]) -> str:
    return user.name if user is not None and user.name else "Admin"


def log_activity(
    db: Session,
    asset: Equipment,
    action: str,
    action_type: Optional[str] = None,
    user: Optional[User] = None,
    details: Optional[str] = None,
    icon: Optional[str] = None,
    commit: bool = True,
) -> Activity:
    """
    Record an activity entry for an asset.

    Args:
        db: Database session
        asset: Asset the action was performed on
        action: Action label (Added|Updated|Deleted|Document Uploaded|...)
        action_type: One of ACTION_TYPES, defaults to the action when it is a valid type
        user: Acting user, recorded by name ("Admin" when unknown)
        details: Free-form detail text
        icon: Display icon, defaults per action
        commit: Commit the session after adding the entry

    Returns:
        Created Activity object
    """
    if action_type is None:
        action_type = action if action in ACTION_TYPES else "Other"
    activity = Activity(
        asset_name=asset.name,
        asset_id=asset.asset_id,
        action=action,
        action_type=action_type,
        user=actor_name(user),
        icon=icon or ICONS.get(action, "📝"),
        details=details,
        date="Just now",
        timestamp=int(time.time() * 1000),
    )
    db.add(activity)
    if commit:
        db.commit()
        db.refresh(activity)
    logger.info("activity_logged", asset_id=asset.asset_id, action=action, user=activity.user)
    return activity


def get_activities(db: Session, asset_id: Optional[str] = None, limit: Optional[int] = 50) -> list:
    query = db.query(Activity)
    if asset_id:
        query = query.filter(Activity.asset_id == asset_id)
    query = query.order_by(Activity.timestamp.desc(), Activity.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()
