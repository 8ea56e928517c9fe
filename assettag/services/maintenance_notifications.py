"""
Daily maintenance notification checks.
Meant to run once a day through the cron endpoint.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict

import structlog
from sqlalchemy.orm import Session

from ..config import settings
from ..models.models import Maintenance, Equipment
from .notifications import create_notification, active_users_with_role
from .scheduling import OPEN_STATUSES, days_until, start_of_day, utcnow, should_send_overdue_alert


logger = structlog.get_logger(__name__)

# Weekly digest entries this close are flagged high
WEEKLY_HIGH_PRIORITY_DAYS = 3


def _maintenance_metadata(record: Maintenance, **extra) -> Dict:
    data = {
        "maintenanceId": str(record.id),
        "serviceType": record.service_type,
        "technician": record.technician,
        "scheduledDate": record.scheduled_date.isoformat() if record.scheduled_date else None,
    }
    data.update(extra)
    return data


def check_due_maintenance_notifications(db: Session, now: Optional[datetime] = None) -> Dict:
    """Notify about maintenance due today that has not been notified yet."""
    try:
        today = start_of_day(now)
        tomorrow = today + timedelta(days=1)
        due = db.query(Maintenance).filter(
            Maintenance.status.in_(OPEN_STATUSES),
            Maintenance.scheduled_date >= today,
            Maintenance.scheduled_date < tomorrow,
            Maintenance.notification_sent.is_(False),
        ).all()
        logger.info("due_maintenance_found", count=len(due))

        for record in due:
            create_notification(
                db,
                type="maintenance",
                title="Maintenance Due Today",
                message=f"Maintenance scheduled for {record.asset_name} is due today. Service type: {record.service_type}",
                priority=record.priority or "medium",
                asset_id=record.asset_id,
                asset_name=record.asset_name,
                action_required=True,
                metadata=_maintenance_metadata(record),
                commit=False,
            )
            record.notification_sent = True
            asset = db.query(Equipment).filter(Equipment.asset_id == record.asset_id).first()
            if asset:
                asset.maintenance_due_notification_sent = True
        db.commit()
        return {"success": True, "notified": len(due)}
    except Exception as e:
        db.rollback()
        logger.error("due_maintenance_check_failed", error=str(e))
        return {"success": False, "error": str(e)}


def check_upcoming_maintenance_reminders(db: Session, now: Optional[datetime] = None) -> Dict:
    """Remind about scheduled maintenance falling on the day `reminder_days` ahead."""
    try:
        window_start = start_of_day(now) + timedelta(days=settings.reminder_days)
        window_end = window_start + timedelta(days=1)
        upcoming = db.query(Maintenance).filter(
            Maintenance.status == "Scheduled",
            Maintenance.scheduled_date >= window_start,
            Maintenance.scheduled_date < window_end,
            Maintenance.reminder_sent.is_(False),
        ).all()
        logger.info("upcoming_maintenance_found", count=len(upcoming), days_ahead=settings.reminder_days)

        for record in upcoming:
            create_notification(
                db,
                type="reminder",
                title="Upcoming Maintenance Reminder",
                message=f"Maintenance for {record.asset_name} is scheduled in {settings.reminder_days} days. Service type: {record.service_type}",
                priority="low",
                asset_id=record.asset_id,
                asset_name=record.asset_name,
                metadata=_maintenance_metadata(record),
                commit=False,
            )
            record.reminder_sent = True
        db.commit()
        return {"success": True, "reminded": len(upcoming)}
    except Exception as e:
        db.rollback()
        logger.error("upcoming_maintenance_check_failed", error=str(e))
        return {"success": False, "error": str(e)}


def check_overdue_maintenance_notifications(db: Session, now: Optional[datetime] = None) -> Dict:
    """Critical alerts for overdue maintenance on day 1, 3, 7 and then weekly."""
    try:
        today = start_of_day(now)
        overdue = db.query(Maintenance).filter(
            Maintenance.status.in_(OPEN_STATUSES + ("In Progress",)),
            Maintenance.scheduled_date < today,
            Maintenance.is_overdue.is_(True),
        ).all()
        logger.info("overdue_maintenance_found", count=len(overdue))

        alerted = 0
        for record in overdue:
            days_overdue = (today - start_of_day(record.scheduled_date)).days
            if not should_send_overdue_alert(days_overdue):
                continue
            create_notification(
                db,
                type="critical",
                title="Overdue Maintenance",
                message=f"Maintenance for {record.asset_name} is {days_overdue} day(s) overdue! Service type: {record.service_type}",
                priority="critical",
                asset_id=record.asset_id,
                asset_name=record.asset_name,
                action_required=True,
                metadata=_maintenance_metadata(record, daysOverdue=days_overdue),
                commit=False,
            )
            alerted += 1
        db.commit()
        return {"success": True, "overdue": len(overdue), "alerted": alerted}
    except Exception as e:
        db.rollback()
        logger.error("overdue_maintenance_check_failed", error=str(e))
        return {"success": False, "error": str(e)}


def check_weekly_maintenance_notifications(db: Session, now: Optional[datetime] = None) -> Dict:
    """Per-user notifications for everything due within the due-soon window."""
    try:
        today = start_of_day(now)
        horizon = today + timedelta(days=settings.due_soon_days)
        upcoming = db.query(Maintenance).filter(
            Maintenance.status.in_(OPEN_STATUSES),
            Maintenance.scheduled_date >= today,
            Maintenance.scheduled_date <= horizon,
        ).all()
        recipients = active_users_with_role(db, "User") + active_users_with_role(db, "Administrator")

        for record in upcoming:
            remaining = days_until(record.scheduled_date, today)
            for user in recipients:
                create_notification(
                    db,
                    type="maintenance",
                    title="Upcoming Maintenance",
                    message=f"Maintenance scheduled for {record.asset_name} in {remaining} day(s). Service type: {record.service_type}",
                    user_id=str(user.id),
                    asset_id=record.asset_id,
                    asset_name=record.asset_name,
                    priority="high" if remaining <= WEEKLY_HIGH_PRIORITY_DAYS else "medium",
                    action_url=f"/maintenance/{record.id}",
                    commit=False,
                )
        db.commit()
        return {"success": True, "notified": len(upcoming)}
    except Exception as e:
        db.rollback()
        logger.error("weekly_maintenance_check_failed", error=str(e))
        return {"success": False, "error": str(e)}


def run_maintenance_notification_checks(db: Session, now: Optional[datetime] = None) -> Dict:
    logger.info("notification_checks_started")
    results = {
        "timestamp": (now or utcnow()).isoformat(),
        "dueToday": check_due_maintenance_notifications(db, now),
        "upcoming": check_upcoming_maintenance_reminders(db, now),
        "overdue": check_overdue_maintenance_notifications(db, now),
    }
    logger.info("notification_checks_finished", results=results)
    return results
