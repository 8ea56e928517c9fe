import uuid
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..auth.security import get_current_user, require_permissions
from ..models.models import Maintenance, User
from ..schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceUpdate,
    MaintenanceSchedule,
    MaintenanceStart,
    MaintenanceComplete,
    MaintenanceNotStarted,
    MaintenanceResponse,
    MaintenanceDeleteResponse,
    MaintenanceWorkflowResponse,
    MaintenanceCompleteResponse,
    MaintenanceStats,
    OverdueCheckResponse,
    MaintenanceStatus,
    ServiceType,
)
from ..services.activity import log_activity
from ..services import notifications as notify
from ..services.assets import get_asset
from ..services.scheduling import (
    OPEN_STATUSES,
    utcnow,
    as_naive_utc,
    start_of_day,
    calculate_next_maintenance_date,
    update_asset_maintenance_status,
)

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])
logger = structlog.get_logger(__name__)


def _get_or_404(db: Session, maintenance_id: uuid.UUID) -> Maintenance:
    record = db.query(Maintenance).filter(Maintenance.id == maintenance_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Maintenance record not found")
    return record


def _record_fields(body) -> dict:
    """Flatten a validated payload into column values (enum values, naive UTC dates)."""
    data = body.dict(exclude_unset=True) if isinstance(body, MaintenanceUpdate) else body.dict()
    for key in ("service_type", "status", "priority"):
        if data.get(key) is not None and hasattr(data[key], "value"):
            data[key] = data[key].value
    for key in ("date", "scheduled_date", "next_maintenance_date"):
        if key in data:
            data[key] = as_naive_utc(data[key])
    return data


@router.get("", response_model=List[MaintenanceResponse])
def list_maintenance(
    asset_id: Optional[str] = Query(None, alias="assetId"),
    status: Optional[MaintenanceStatus] = Query(None),
    service_type: Optional[ServiceType] = Query(None, alias="serviceType"),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    query = db.query(Maintenance)
    if asset_id:
        query = query.filter(Maintenance.asset_id == asset_id)
    if status:
        query = query.filter(Maintenance.status == status.value)
    if service_type:
        query = query.filter(Maintenance.service_type == service_type.value)
    query = query.order_by(Maintenance.date.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


@router.get("/stats/{asset_id}", response_model=MaintenanceStats)
def maintenance_stats(
    asset_id: str,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    records = db.query(Maintenance).filter(Maintenance.asset_id == asset_id).all()
    if not records:
        return MaintenanceStats()
    total_cost = sum(r.cost or 0 for r in records)
    return MaintenanceStats(
        total_records=len(records),
        total_cost=total_cost,
        avg_cost=total_cost / len(records),
        status_counts=dict(Counter(r.status for r in records)),
        service_type_counts=dict(Counter(r.service_type for r in records)),
    )


@router.get("/due/today", response_model=List[MaintenanceResponse])
def due_maintenance(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    """Open records scheduled from today through the next seven days"""
    today = start_of_day()
    return (
        db.query(Maintenance)
        .filter(
            Maintenance.status.in_(OPEN_STATUSES),
            Maintenance.scheduled_date >= today,
            Maintenance.scheduled_date < today + timedelta(days=7),
        )
        .order_by(Maintenance.scheduled_date.asc())
        .all()
    )


@router.get("/overdue/list", response_model=List[MaintenanceResponse])
def overdue_maintenance(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    today = start_of_day()
    records = (
        db.query(Maintenance)
        .filter(
            Maintenance.status.in_(OPEN_STATUSES + ("In Progress",)),
            Maintenance.scheduled_date < today,
        )
        .order_by(Maintenance.scheduled_date.asc())
        .all()
    )
    flagged = [r for r in records if not r.is_overdue]
    for record in flagged:
        record.is_overdue = True
    if flagged:
        db.commit()
    return records


@router.get("/upcoming/list", response_model=List[MaintenanceResponse])
def upcoming_maintenance(
    days: int = Query(30, ge=0),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    now = utcnow()
    return (
        db.query(Maintenance)
        .filter(
            Maintenance.status == "Scheduled",
            Maintenance.scheduled_date >= now,
            Maintenance.scheduled_date <= now + timedelta(days=days),
        )
        .order_by(Maintenance.scheduled_date.asc())
        .all()
    )


@router.get("/records/history", response_model=List[MaintenanceResponse])
def maintenance_history(
    asset_id: Optional[str] = Query(None, alias="assetId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: int = Query(100, ge=1),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    query = db.query(Maintenance).filter(Maintenance.status == "Completed")
    if asset_id:
        query = query.filter(Maintenance.asset_id == asset_id)
    if start_date and end_date:
        query = query.filter(
            Maintenance.completed_date >= as_naive_utc(start_date),
            Maintenance.completed_date <= as_naive_utc(end_date),
        )
    return query.order_by(Maintenance.completed_date.desc()).limit(limit).all()


@router.get("/{maintenance_id}", response_model=MaintenanceResponse)
def get_maintenance(
    maintenance_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewMaintenance")),
):
    return _get_or_404(db, maintenance_id)


@router.post("", response_model=MaintenanceResponse, status_code=201)
def create_maintenance(
    body: MaintenanceCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("createMaintenance")),
):
    data = _record_fields(body)
    data["date"] = data.get("date") or utcnow()
    data["scheduled_date"] = data.get("scheduled_date") or data["date"]
    record = Maintenance(**data)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("maintenance_created", maintenance_id=str(record.id), asset_id=record.asset_id)
    return record


@router.post("/schedule", response_model=MaintenanceResponse, status_code=201)
def schedule_maintenance(
    body: MaintenanceSchedule,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("createMaintenance")),
):
    """Create a Scheduled record and point the asset's next maintenance at it"""
    data = _record_fields(body)
    data["status"] = "Scheduled"
    data["date"] = data.get("date") or utcnow()
    data["scheduled_date"] = data.get("scheduled_date") or data["date"]
    record = Maintenance(**data)
    db.add(record)

    asset = get_asset(db, record.asset_id)
    if asset:
        asset.next_scheduled_maintenance = record.scheduled_date
        asset.maintenance_due_notification_sent = False
    db.commit()
    db.refresh(record)
    update_asset_maintenance_status(db, record.asset_id)
    logger.info("maintenance_scheduled", maintenance_id=str(record.id), asset_id=record.asset_id, scheduled_date=record.scheduled_date.isoformat())
    return record


@router.put("/{maintenance_id}", response_model=MaintenanceResponse)
def update_maintenance(
    maintenance_id: uuid.UUID,
    body: MaintenanceUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("editMaintenance")),
):
    record = _get_or_404(db, maintenance_id)
    for key, value in _record_fields(body).items():
        setattr(record, key, value)
    db.commit()
    db.refresh(record)
    return record


@router.delete("/{maintenance_id}", response_model=MaintenanceDeleteResponse)
def delete_maintenance(
    maintenance_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("deleteMaintenance")),
):
    record = _get_or_404(db, maintenance_id)
    snapshot = MaintenanceResponse.model_validate(record)
    db.delete(record)
    db.commit()
    return {"message": "Maintenance record deleted successfully", "maintenance": snapshot}


@router.put("/{maintenance_id}/start", response_model=MaintenanceWorkflowResponse)
def start_maintenance(
    maintenance_id: uuid.UUID,
    body: Optional[MaintenanceStart] = None,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("editMaintenance")),
):
    record = _get_or_404(db, maintenance_id)
    body = body or MaintenanceStart()
    record.status = "In Progress"
    record.started_date = utcnow()
    if body.technician:
        record.technician = body.technician
    if body.notes:
        record.notes = body.notes
    db.commit()
    update_asset_maintenance_status(db, record.asset_id)
    db.refresh(record)
    logger.info("maintenance_started", maintenance_id=str(record.id), asset_id=record.asset_id)
    return {"message": "Maintenance started successfully", "maintenance": record}


@router.put("/{maintenance_id}/complete", response_model=MaintenanceCompleteResponse)
def complete_maintenance(
    maintenance_id: uuid.UUID,
    body: Optional[MaintenanceComplete] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("editMaintenance")),
):
    """
    Complete a record and roll the asset forward.

    When the asset has a recurring period, the next due date is computed from
    now, stored on the asset and on this record, and a follow-up Scheduled
    record is created for it.
    """
    record = _get_or_404(db, maintenance_id)
    body = body or MaintenanceComplete()
    now = utcnow()
    record.status = "Completed"
    record.completed_date = now
    record.completed_by = body.completed_by or record.technician
    if body.notes:
        record.notes = body.notes
    if body.cost is not None:
        record.cost = body.cost

    asset = get_asset(db, record.asset_id)
    if asset:
        asset.last_maintenance_date = now
        period = asset.maintenance_period
        if period and period != "As Needed":
            next_date = calculate_next_maintenance_date(now, period)
            asset.next_scheduled_maintenance = next_date
            record.next_maintenance_date = next_date
            if next_date:
                db.add(Maintenance(
                    asset_id=asset.asset_id,
                    asset_name=asset.name,
                    date=next_date,
                    scheduled_date=next_date,
                    service_type=record.service_type,
                    technician=record.technician,
                    cost=0,
                    status="Scheduled",
                    description=f"Scheduled {period} {record.service_type}",
                ))
        asset.maintenance_due_notification_sent = False
    db.commit()

    if asset:
        update_asset_maintenance_status(db, asset.asset_id, now)
        log_activity(
            db,
            asset,
            "Maintenance",
            user=user,
            details=f"{record.service_type} completed by {record.completed_by}",
        )
    db.refresh(record)
    logger.info(
        "maintenance_completed",
        maintenance_id=str(record.id),
        asset_id=record.asset_id,
        next_maintenance_date=record.next_maintenance_date.isoformat() if record.next_maintenance_date else None,
    )
    return {
        "message": "Maintenance completed successfully",
        "maintenance": record,
        "next_maintenance_date": record.next_maintenance_date,
    }


@router.put("/{maintenance_id}/not-started", response_model=MaintenanceWorkflowResponse)
def mark_not_started(
    maintenance_id: uuid.UUID,
    body: Optional[MaintenanceNotStarted] = None,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("editMaintenance")),
):
    record = _get_or_404(db, maintenance_id)
    body = body or MaintenanceNotStarted()
    record.status = "Not Started"
    if body.notes:
        record.notes = body.notes
    reschedule = as_naive_utc(body.reschedule_date)
    if reschedule:
        record.scheduled_date = reschedule
        asset = get_asset(db, record.asset_id)
        if asset:
            asset.next_scheduled_maintenance = reschedule
    db.commit()
    if reschedule:
        update_asset_maintenance_status(db, record.asset_id)
    db.refresh(record)
    return {"message": "Maintenance marked as not started", "maintenance": record}


@router.post("/check-overdue", response_model=OverdueCheckResponse)
def check_overdue(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("editMaintenance")),
):
    today = start_of_day()
    records = (
        db.query(Maintenance)
        .filter(
            Maintenance.status.in_(OPEN_STATUSES),
            Maintenance.scheduled_date < today,
            Maintenance.is_overdue.is_(False),
        )
        .all()
    )
    for record in records:
        record.is_overdue = True
    db.commit()
    for asset_id in {r.asset_id for r in records}:
        if update_asset_maintenance_status(db, asset_id) != "Overdue":
            continue
        asset = get_asset(db, asset_id)
        if not asset.maintenance_due_notification_sent:
            notify.maintenance_due(db, asset)
            asset.maintenance_due_notification_sent = True
            db.commit()
    if records:
        notify.alert(
            db,
            "Overdue Maintenance",
            f"{len(records)} maintenance record(s) are past their scheduled date",
            asset_id=records[0].asset_id if len(records) == 1 else None,
        )
    logger.info("overdue_check_finished", count=len(records))
    return {"message": f"Marked {len(records)} maintenance records as overdue", "count": len(records)}
