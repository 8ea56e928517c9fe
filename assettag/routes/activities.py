import time
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import get_current_user, require_permissions
from ..models.models import Activity, User
from ..schemas.activities import ActivityCreate, ActivityResponse
from ..services.activity import ICONS, actor_name, get_activities


router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
def list_activities(
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewActivities")),
):
    return get_activities(db, limit=limit)


@router.get("/asset/{asset_id}", response_model=List[ActivityResponse])
def asset_activities(
    asset_id: str,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewActivities")),
):
    return get_activities(db, asset_id=asset_id, limit=None)


@router.post("", response_model=ActivityResponse, status_code=201)
def create_activity(
    body: ActivityCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("createActivities")),
):
    activity = Activity(
        asset_name=body.asset_name,
        asset_id=body.asset_id,
        action=body.action,
        action_type=body.action_type.value,
        user=body.user or actor_name(user),
        icon=body.icon or ICONS.get(body.action_type.value, "📝"),
        details=body.details,
        date="Just now",
        timestamp=int(time.time() * 1000),
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity
