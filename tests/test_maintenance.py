"""
Maintenance records: CRUD, scheduling, the start/complete workflow and
the due/overdue/upcoming views.
"""
from datetime import timedelta

from assettag.models.models import Activity, Equipment, Maintenance, Notification
from assettag.services.scheduling import utcnow
from conftest import make_asset, make_maintenance


def _payload(**overrides):
    payload = {
        "assetId": "AST-001",
        "assetName": "Forklift",
        "serviceType": "Repair",
        "technician": "  Sam Fixer ",
        "cost": 150,
    }
    payload.update(overrides)
    return payload


def _asset(db):
    return db.query(Equipment).filter(Equipment.asset_id == "AST-001").one()


def test_create_defaults(client, user_headers):
    resp = client.post("/api/maintenance", json=_payload(), headers=user_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["technician"] == "Sam Fixer"
    assert body["status"] == "Scheduled"
    assert body["priority"] == "Medium"
    assert body["isOverdue"] is False
    assert body["scheduledDate"] == body["date"]


def test_create_validation(client, user_headers):
    assert client.post("/api/maintenance", json=_payload(serviceType="Polishing"), headers=user_headers).status_code == 422
    assert client.post("/api/maintenance", json=_payload(cost=-5), headers=user_headers).status_code == 422
    assert client.post("/api/maintenance", json=_payload(technician=""), headers=user_headers).status_code == 422


def test_list_filters(client, db, user_headers):
    make_maintenance(db, days_from_now=-2, service_type="Repair")
    make_maintenance(db, days_from_now=-1, status="Completed")
    make_maintenance(db, asset_id="AST-002", asset_name="Crane", days_from_now=1)

    everything = client.get("/api/maintenance", headers=user_headers).json()
    assert len(everything) == 3
    assert everything[0]["assetId"] == "AST-002"  # newest date first

    assert len(client.get("/api/maintenance", params={"assetId": "AST-001"}, headers=user_headers).json()) == 2
    assert len(client.get("/api/maintenance", params={"status": "Completed"}, headers=user_headers).json()) == 1
    assert len(client.get("/api/maintenance", params={"serviceType": "Repair"}, headers=user_headers).json()) == 1
    assert len(client.get("/api/maintenance", params={"limit": 1}, headers=user_headers).json()) == 1


def test_get_update_delete(client, db, user_headers, admin_headers):
    record = make_maintenance(db)
    url = f"/api/maintenance/{record.id}"
    assert client.get(url, headers=user_headers).json()["id"] == str(record.id)

    updated = client.put(url, json={"priority": "Critical", "notes": "Bring ladder"}, headers=user_headers)
    assert updated.status_code == 200
    assert updated.json()["priority"] == "Critical"
    assert updated.json()["technician"] == "Tech One"

    assert client.delete(url, headers=user_headers).status_code == 403
    deleted = client.delete(url, headers=admin_headers)
    assert deleted.json()["maintenance"]["id"] == str(record.id)
    assert client.get(url, headers=admin_headers).status_code == 404



def test_update_rejects_null_for_required_fields(client, db, user_headers):
    record = make_maintenance(db, cost=75)
    url = f"/api/maintenance/{record.id}"
    for field in ("status", "cost", "priority", "technician", "scheduledDate"):
        assert client.put(url, json={field: None}, headers=user_headers).status_code == 422

    cleared = client.put(url, json={"notes": None, "completedBy": None}, headers=user_headers)
    assert cleared.status_code == 200
    assert cleared.json()["status"] == "Scheduled"
    assert cleared.json()["cost"] == 75


def test_unknown_record_is_404(client, user_headers):
    url = "/api/maintenance/00000000-0000-0000-0000-000000000000"
    assert client.get(url, headers=user_headers).status_code == 404
    assert client.put(f"{url}/start", headers=user_headers).status_code == 404


def test_schedule_points_asset_at_record(client, db, user_headers):
    make_asset(db)
    when = (utcnow() + timedelta(days=3)).replace(microsecond=0)
    resp = client.post(
        "/api/maintenance/schedule",
        json=_payload(scheduledDate=when.isoformat(), status="Completed"),
        headers=user_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "Scheduled"

    db.expire_all()
    asset = _asset(db)
    assert asset.next_scheduled_maintenance == when
    assert asset.maintenance_status == "Due Soon"


def test_start_marks_asset_in_progress(client, db, user_headers):
    make_asset(db, next_scheduled_maintenance=utcnow() + timedelta(days=2))
    record = make_maintenance(db)
    resp = client.put(f"/api/maintenance/{record.id}/start", json={"technician": "Lee"}, headers=user_headers)
    assert resp.status_code == 200
    body = resp.json()["maintenance"]
    assert body["status"] == "In Progress"
    assert body["technician"] == "Lee"
    assert body["startedDate"] is not None

    db.expire_all()
    assert _asset(db).maintenance_status == "In Progress"


def test_start_without_body(client, db, user_headers):
    make_asset(db)
    record = make_maintenance(db)
    resp = client.put(f"/api/maintenance/{record.id}/start", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["maintenance"]["technician"] == "Tech One"


def test_complete_rolls_schedule_forward(client, db, user_headers, regular_user):
    make_asset(db, maintenance_period="Monthly", next_scheduled_maintenance=utcnow())
    record = make_maintenance(db, status="In Progress")

    resp = client.put(
        f"/api/maintenance/{record.id}/complete",
        json={"notes": "Replaced belts", "cost": 320},
        headers=user_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["maintenance"]["status"] == "Completed"
    assert body["maintenance"]["completedBy"] == "Tech One"
    assert body["maintenance"]["cost"] == 320
    assert body["nextMaintenanceDate"] is not None

    db.expire_all()
    asset = _asset(db)
    assert asset.last_maintenance_date is not None
    assert asset.next_scheduled_maintenance > utcnow() + timedelta(days=27)
    assert asset.maintenance_status == "Up to Date"

    follow_up = db.query(Maintenance).filter(Maintenance.status == "Scheduled").one()
    assert follow_up.scheduled_date == asset.next_scheduled_maintenance
    assert follow_up.cost == 0
    assert follow_up.service_type == "Routine Maintenance"

    activity = db.query(Activity).one()
    assert activity.action == "Maintenance"
    assert activity.user == regular_user.name


def test_complete_as_needed_creates_no_follow_up(client, db, user_headers):
    make_asset(db, maintenance_period="As Needed")
    record = make_maintenance(db)
    resp = client.put(f"/api/maintenance/{record.id}/complete", json={"completedBy": "Ops"}, headers=user_headers)
    assert resp.json()["nextMaintenanceDate"] is None
    assert resp.json()["maintenance"]["completedBy"] == "Ops"
    assert db.query(Maintenance).count() == 1


def test_not_started_reschedules(client, db, user_headers):
    make_asset(db)
    record = make_maintenance(db, days_from_now=-1)
    new_date = (utcnow() + timedelta(days=20)).replace(microsecond=0)
    resp = client.put(
        f"/api/maintenance/{record.id}/not-started",
        json={"notes": "Parts delayed", "rescheduleDate": new_date.isoformat()},
        headers=user_headers,
    )
    assert resp.status_code == 200
    body = resp.json()["maintenance"]
    assert body["status"] == "Not Started"
    assert body["notes"] == "Parts delayed"

    db.expire_all()
    asset = _asset(db)
    assert asset.next_scheduled_maintenance == new_date
    assert asset.maintenance_status == "Up to Date"


def test_due_overdue_upcoming_views(client, db, user_headers):
    make_asset(db)
    today = make_maintenance(db, days_from_now=0)
    week = make_maintenance(db, days_from_now=5)
    far = make_maintenance(db, days_from_now=25)
    late = make_maintenance(db, days_from_now=-3)
    make_maintenance(db, days_from_now=-4, status="Completed")

    due = [r["id"] for r in client.get("/api/maintenance/due/today", headers=user_headers).json()]
    assert str(week.id) in due
    assert str(far.id) not in due
    assert str(late.id) not in due

    overdue = client.get("/api/maintenance/overdue/list", headers=user_headers).json()
    assert [r["id"] for r in overdue] == [str(late.id)]
    assert overdue[0]["isOverdue"] is True

    upcoming = [r["id"] for r in client.get("/api/maintenance/upcoming/list", params={"days": 10}, headers=user_headers).json()]
    # "today" was scheduled a moment before the request, so it is already past
    assert upcoming == [str(week.id)]
    assert str(today.id) in due


def test_history_lists_completed_only(client, db, user_headers):
    done = make_maintenance(db, status="Completed", completed_date=utcnow() - timedelta(days=1))
    make_maintenance(db)
    make_maintenance(db, asset_id="AST-002", asset_name="Crane", status="Completed", completed_date=utcnow())

    history = client.get("/api/maintenance/records/history", params={"assetId": "AST-001"}, headers=user_headers).json()
    assert [r["id"] for r in history] == [str(done.id)]
    assert len(client.get("/api/maintenance/records/history", headers=user_headers).json()) == 2



def test_history_date_range(client, db, user_headers):
    now = utcnow()
    inside = make_maintenance(db, status="Completed", completed_date=now - timedelta(days=5))
    make_maintenance(db, status="Completed", completed_date=now - timedelta(days=20))
    make_maintenance(db, status="Completed", completed_date=now + timedelta(days=3))
    url = "/api/maintenance/records/history"

    window = {"startDate": (now - timedelta(days=10)).isoformat(), "endDate": now.isoformat()}
    in_range = client.get(url, params=window, headers=user_headers).json()
    assert [r["id"] for r in in_range] == [str(inside.id)]

    # a lone bound is ignored
    start_only = client.get(url, params={"startDate": window["startDate"]}, headers=user_headers).json()
    assert len(start_only) == 3


def test_check_overdue_flags_and_updates_asset(client, db, user_headers):
    make_asset(db, next_scheduled_maintenance=utcnow() - timedelta(days=2))
    make_maintenance(db, days_from_now=-2)
    make_maintenance(db, days_from_now=-2, status="Completed")
    make_maintenance(db, days_from_now=2)

    resp = client.post("/api/maintenance/check-overdue", headers=user_headers)
    assert resp.json() == {"message": "Marked 1 maintenance records as overdue", "count": 1}
    assert client.post("/api/maintenance/check-overdue", headers=user_headers).json()["count"] == 0

    db.expire_all()
    assert _asset(db).maintenance_status == "Overdue"


def test_check_overdue_raises_due_notice_once(client, db, user_headers):
    make_asset(db, next_scheduled_maintenance=utcnow() - timedelta(days=2))
    make_maintenance(db, days_from_now=-2)

    client.post("/api/maintenance/check-overdue", headers=user_headers)
    notes = db.query(Notification).order_by(Notification.type).all()
    assert [(n.type, n.priority) for n in notes] == [("alert", "high"), ("maintenance", "high")]
    assert notes[1].message == "Asset Forklift (AST-001) requires maintenance"
    assert notes[0].asset_id == "AST-001"
    db.expire_all()
    assert _asset(db).maintenance_due_notification_sent is True

    # a later overdue record on the same asset does not repeat the due notice
    make_maintenance(db, days_from_now=-3)
    client.post("/api/maintenance/check-overdue", headers=user_headers)
    assert db.query(Notification).filter(Notification.type == "maintenance").count() == 1
    assert db.query(Notification).filter(Notification.type == "alert").count() == 2


def test_stats(client, db, user_headers):
    assert client.get("/api/maintenance/stats/AST-001", headers=user_headers).json()["totalRecords"] == 0
    make_maintenance(db, cost=100, status="Completed", service_type="Repair")
    make_maintenance(db, cost=300)
    stats = client.get("/api/maintenance/stats/AST-001", headers=user_headers).json()
    assert stats["totalRecords"] == 2
    assert stats["totalCost"] == 400
    assert stats["avgCost"] == 200
    assert stats["statusCounts"] == {"Completed": 1, "Scheduled": 1}
    assert stats["serviceTypeCounts"] == {"Repair": 1, "Routine Maintenance": 1}


def test_viewer_cannot_create(client, viewer_headers):
    assert client.post("/api/maintenance", json=_payload(), headers=viewer_headers).status_code == 403
