import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..config import settings
from ..services.maintenance_notifications import (
    run_maintenance_notification_checks,
    check_weekly_maintenance_notifications,
)
from ..services.scheduling import utcnow


router = APIRouter(prefix="/api/cron", tags=["cron"])
logger = structlog.get_logger(__name__)


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)):
    """When CRON_SECRET is configured, callers must echo it in X-Cron-Secret."""
    if not settings.cron_secret:
        return
    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Invalid cron secret")


@router.post("/maintenance-notifications")
def maintenance_notifications(
    db: Session = Depends(get_db),
    _=Depends(verify_cron_secret),
):
    logger.info("cron_maintenance_notifications_triggered")
    results = run_maintenance_notification_checks(db)
    return {
        "success": True,
        "message": "Maintenance notification checks completed",
        "results": results,
    }


@router.post("/weekly-maintenance-notifications")
def weekly_maintenance_notifications(
    db: Session = Depends(get_db),
    _=Depends(verify_cron_secret),
):
    logger.info("cron_weekly_notifications_triggered")
    return {
        "success": True,
        "message": "Weekly maintenance notification check completed",
        "results": check_weekly_maintenance_notifications(db),
    }


@router.get("/status")
def cron_status(_=Depends(verify_cron_secret)):
    return {
        "status": "active",
        "message": "Cron job system is operational",
        "availableJobs": [
            {
                "name": "maintenance-notifications",
                "description": "Daily maintenance notification checks",
                "endpoint": "POST /api/cron/maintenance-notifications",
                "recommendedSchedule": f"Daily at {settings.cron_hour:02d}:{settings.cron_minute:02d}",
            },
            {
                "name": "weekly-maintenance-notifications",
                "description": "Weekly digest of maintenance due in the next 7 days",
                "endpoint": "POST /api/cron/weekly-maintenance-notifications",
                "recommendedSchedule": "Weekly, Monday morning",
            },
        ],
        "timestamp": utcnow().isoformat(),
    }
