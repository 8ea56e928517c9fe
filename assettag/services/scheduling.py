"""
Maintenance scheduling rules.
Next-date arithmetic for maintenance periods and the asset maintenance status labels.

All datetimes are handled as naive UTC, which is how they round-trip through SQLite.
"""
import calendar
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..models.models import Equipment, Maintenance


MAINTENANCE_PERIODS = [
    "",
    "Weekly",
    "Monthly",
    "Every 3 Months",
    "Every 6 Months",
    "Quarterly",
    "Bi-annually",
    "Annually",
    "Every 2 Years",
    "As Needed",
]

# period -> (days, months)
_PERIOD_OFFSETS = {
    "Weekly": (7, 0),
    "Monthly": (0, 1),
    "Every 3 Months": (0, 3),
    "Quarterly": (0, 3),
    "Every 6 Months": (0, 6),
    "Bi-annually": (0, 6),
    "Annually": (0, 12),
    "Every 2 Years": (0, 24),
}

STATUS_NOT_SCHEDULED = "Not Scheduled"
STATUS_IN_PROGRESS = "In Progress"
STATUS_OVERDUE = "Overdue"
STATUS_DUE_SOON = "Due Soon"
STATUS_UP_TO_DATE = "Up to Date"

OPEN_STATUSES = ("Scheduled", "Not Started")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = as_naive_utc(now) or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def calculate_next_maintenance_date(last_date: datetime, period: Optional[str]) -> Optional[datetime]:
    """
    Compute the next maintenance date from the last one.

    Returns None for an empty period, "As Needed" or any unknown label.
    """
    if not period or period not in _PERIOD_OFFSETS:
        return None
    days, months = _PERIOD_OFFSETS[period]
    last_date = as_naive_utc(last_date)
    if months:
        return add_months(last_date, months)
    return last_date + timedelta(days=days)


def days_until(target: datetime, now: Optional[datetime] = None) -> int:
    now = as_naive_utc(now) or utcnow()
    delta = as_naive_utc(target) - now
    return math.ceil(delta.total_seconds() / 86400)


def classify_maintenance_status(
    next_date: Optional[datetime],
    now: Optional[datetime] = None,
    in_progress: bool = False,
    due_soon_days: Optional[int] = None,
) -> str:
    if next_date is None:
        return STATUS_NOT_SCHEDULED
    if in_progress:
        return STATUS_IN_PROGRESS
    window = settings.due_soon_days if due_soon_days is None else due_soon_days
    remaining = days_until(next_date, now)
    if remaining < 0:
        return STATUS_OVERDUE
    if remaining <= window:
        return STATUS_DUE_SOON
    return STATUS_UP_TO_DATE


def should_send_overdue_alert(days_overdue: int) -> bool:
    # day 1, 3, 7, then weekly
    if days_overdue in (1, 3, 7):
        return True
    return days_overdue > 7 and days_overdue % 7 == 0


def parse_loose_date(value: Optional[str]) -> Optional[datetime]:
    """Parse the free-form purchase/acquisition date strings stored on assets."""
    if not value:
        return None
    try:
        return as_naive_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except ValueError:
        return None


def initial_next_maintenance(asset: Equipment, now: Optional[datetime] = None) -> Optional[datetime]:
    """First due date for a newly registered asset with a maintenance period."""
    base = parse_loose_date(asset.purchase_date) or parse_loose_date(asset.acquisition_date) or (as_naive_utc(now) or utcnow())
    return calculate_next_maintenance_date(base, asset.maintenance_period)


def apply_maintenance_status(db: Session, asset: Equipment, now: Optional[datetime] = None) -> str:
    in_progress = False
    if asset.next_scheduled_maintenance is not None:
        in_progress = db.query(Maintenance).filter(
            Maintenance.asset_id == asset.asset_id,
            Maintenance.status == "In Progress",
        ).first() is not None
    asset.maintenance_status = classify_maintenance_status(asset.next_scheduled_maintenance, now, in_progress)
    return asset.maintenance_status


def update_asset_maintenance_status(db: Session, asset_id: str, now: Optional[datetime] = None) -> Optional[str]:
    """Recompute and persist one asset's maintenance status. Missing assets are ignored."""
    asset = db.query(Equipment).filter(Equipment.asset_id == asset_id).first()
    if not asset:
        return None
    status = apply_maintenance_status(db, asset, now)
    db.commit()
    return status
