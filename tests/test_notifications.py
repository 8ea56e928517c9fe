"""
Notification inbox: per-user visibility, read state and clearing.
"""
from assettag.models.models import Notification
from assettag.services import notifications as notify
from assettag.services.notifications import create_notification
from conftest import make_asset


def _seed(db, admin, regular_user):
    general = create_notification(db, type="info", title="General", message="Everyone with admin rights")
    mine = create_notification(db, type="assignment", title="Yours", message="For the user", user_id=str(regular_user.id))
    theirs = create_notification(db, type="alert", title="Admin only", message="For the admin", user_id=str(admin.id), priority="high")
    return general, mine, theirs


def test_visibility_by_role(client, db, admin, regular_user, admin_headers, user_headers):
    general, mine, theirs = _seed(db, admin, regular_user)

    user_view = client.get("/api/notifications", headers=user_headers).json()
    assert [n["id"] for n in user_view] == [str(mine.id)]

    admin_view = {n["id"] for n in client.get("/api/notifications", headers=admin_headers).json()}
    assert admin_view == {str(general.id), str(theirs.id)}


def test_unread_and_mark_read(client, db, admin, regular_user, user_headers):
    _, mine, theirs = _seed(db, admin, regular_user)
    assert client.get("/api/notifications/unread", headers=user_headers).json() == {"count": 1}

    resp = client.patch(f"/api/notifications/{mine.id}/read", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["read"] is True
    assert client.get("/api/notifications/unread", headers=user_headers).json() == {"count": 0}

    # someone else's notification looks missing
    assert client.patch(f"/api/notifications/{theirs.id}/read", headers=user_headers).status_code == 404


def test_read_all_only_touches_visible(client, db, admin, regular_user, admin_headers):
    _, mine, _ = _seed(db, admin, regular_user)
    resp = client.patch("/api/notifications/read-all", headers=admin_headers)
    assert resp.json() == {"message": "All notifications marked as read", "count": 2}
    db.expire_all()
    assert db.query(Notification).filter(Notification.id == mine.id).one().read is False


def test_create_with_metadata(client, admin_headers):
    resp = client.post(
        "/api/notifications",
        json={
            "type": "maintenance",
            "title": "Check pump",
            "message": "Pump P-4 is vibrating",
            "priority": "critical",
            "actionRequired": True,
            "metadata": {"daysOverdue": 2},
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["metadata"] == {"daysOverdue": 2}
    assert body["actionRequired"] is True
    assert body["userId"] is None


def test_create_rejects_unknown_type(client, admin_headers):
    resp = client.post("/api/notifications", json={"type": "gossip", "title": "t", "message": "m"}, headers=admin_headers)
    assert resp.status_code == 422


def test_delete_and_clear(client, db, admin, regular_user, admin_headers, user_headers):
    general, mine, theirs = _seed(db, admin, regular_user)
    assert client.delete(f"/api/notifications/{theirs.id}", headers=user_headers).status_code == 404
    assert client.delete(f"/api/notifications/{theirs.id}", headers=admin_headers).status_code == 200

    cleared = client.delete("/api/notifications", headers=admin_headers)
    assert cleared.json() == {"message": "All notifications cleared", "count": 1}
    db.expire_all()
    assert [n.id for n in db.query(Notification).all()] == [mine.id]


def test_viewer_cannot_delete(client, db, viewer, viewer_headers):
    note = create_notification(db, type="info", title="Hi", message="Hello", user_id=str(viewer.id))
    assert client.get("/api/notifications", headers=viewer_headers).status_code == 200
    assert client.delete(f"/api/notifications/{note.id}", headers=viewer_headers).status_code == 403


def test_maintenance_due_and_alert_helpers(db):
    asset = make_asset(db)
    due = notify.maintenance_due(db, asset)
    assert due.type == "maintenance"
    assert due.priority == "high"
    assert due.title == "Maintenance Due"
    assert due.message == "Asset Forklift (AST-001) requires maintenance"
    assert (due.asset_id, due.asset_name, due.user_id) == ("AST-001", "Forklift", None)

    alert = notify.alert(db, "Disk full", "Upload storage is at 95%", asset_id="AST-001")
    assert alert.type == "alert"
    assert alert.priority == "high"
    assert alert.asset_id == "AST-001"
    assert db.query(Notification).count() == 2
