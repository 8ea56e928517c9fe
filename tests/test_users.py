"""
User administration, self-service profiles and permission overrides.
"""
from assettag.models.models import User
from conftest import make_user, auth_headers


def test_admin_lists_users(client, admin, regular_user, admin_headers, user_headers):
    resp = client.get("/api/users", headers=admin_headers)
    assert resp.status_code == 200
    assert {u["email"] for u in resp.json()} == {admin.email, regular_user.email}
    assert all("passwordHash" not in u for u in resp.json())
    assert client.get("/api/users", headers=user_headers).status_code == 403


def test_create_user_with_role_defaults(client, db, admin_headers):
    resp = client.post(
        "/api/users",
        json={"name": "Mo Manager", "email": "MO@example.com", "password": "manage1", "role": "Manager", "permissions": {"deleteUsers": True, "flyPlanes": True}},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "mo@example.com"
    assert body["permissions"]["deleteAssets"] is True
    assert body["permissions"]["deleteUsers"] is True
    assert "flyPlanes" not in body["permissions"]

    dup = client.post("/api/users", json={"name": "X", "email": "mo@example.com", "password": "manage1"}, headers=admin_headers)
    assert dup.status_code == 400


def test_update_user(client, db, regular_user, admin_headers):
    resp = client.put(
        f"/api/users/{regular_user.id}",
        json={"status": "Inactive", "department": "Ops", "password": "brandnew"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "Inactive"
    assert resp.json()["department"] == "Ops"
    login = client.post("/api/auth/login", json={"email": regular_user.email, "password": "brandnew"})
    assert login.status_code == 403


def test_update_rejects_taken_email(client, admin, regular_user, admin_headers):
    resp = client.put(f"/api/users/{regular_user.id}", json={"email": admin.email}, headers=admin_headers)
    assert resp.status_code == 400


def test_delete_user(client, db, admin, regular_user, admin_headers):
    assert client.delete(f"/api/users/{admin.id}", headers=admin_headers).status_code == 400
    assert client.delete(f"/api/users/{regular_user.id}", headers=admin_headers).json() == {"message": "User deleted successfully"}
    assert client.get(f"/api/users/{regular_user.id}", headers=admin_headers).status_code == 404


def test_profile_self_service(client, db, admin, regular_user, user_headers):
    own = client.get(f"/api/users/profile/{regular_user.id}", headers=user_headers)
    assert own.status_code == 200
    assert client.get(f"/api/users/profile/{admin.id}", headers=user_headers).status_code == 403

    resp = client.put(
        f"/api/users/profile/{regular_user.id}",
        json={"jobTitle": "Technician", "notificationPreferences": {"weeklySummary": True}},
        headers=user_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["jobTitle"] == "Technician"
    assert body["notificationPreferences"] == {"criticalAlerts": True, "systemUpdates": True, "weeklySummary": True}
    assert body["role"] == "User"


def test_profile_ignores_role_escalation(client, db, regular_user, user_headers):
    client.put(f"/api/users/profile/{regular_user.id}", json={"role": "Administrator"}, headers=user_headers)
    db.expire_all()
    assert db.query(User).filter(User.id == regular_user.id).one().role == "User"


def test_change_own_password(client, regular_user, user_headers):
    url = f"/api/users/change-password/{regular_user.id}"
    assert client.post(url, json={"currentPassword": "wrong", "newPassword": "fresh123"}, headers=user_headers).status_code == 401
    assert client.post(url, json={"newPassword": "fresh123"}, headers=user_headers).status_code == 401
    ok = client.post(url, json={"currentPassword": "secret123", "newPassword": "fresh123"}, headers=user_headers)
    assert ok.json() == {"message": "Password changed successfully"}
    assert client.post("/api/auth/login", json={"email": regular_user.email, "password": "fresh123"}).status_code == 200


def test_admin_resets_other_password(client, db, admin, regular_user, admin_headers, user_headers):
    resp = client.post(f"/api/users/change-password/{regular_user.id}", json={"newPassword": "reset123"}, headers=admin_headers)
    assert resp.status_code == 200
    assert client.post(f"/api/users/change-password/{admin.id}", json={"newPassword": "hijack1"}, headers=user_headers).status_code == 403


def test_permission_overrides(client, db, regular_user, admin_headers, user_headers):
    url = f"/api/users/{regular_user.id}/permissions"
    current = client.get(url, headers=user_headers).json()
    assert current["role"] == "User"
    assert current["permissions"]["deleteAssets"] is False

    resp = client.put(url, json={"permissions": {"deleteAssets": True, "unknownFlag": True}}, headers=admin_headers)
    assert resp.status_code == 200
    perms = resp.json()["permissions"]
    assert perms["deleteAssets"] is True
    assert perms["createAssets"] is True
    assert "unknownFlag" not in perms

    # the override takes effect on the next request
    from conftest import make_asset

    make_asset(db)
    assert client.delete("/api/equipment/AST-001", headers=user_headers).status_code == 200


def test_only_permission_managers_edit_permissions(client, regular_user, admin, user_headers):
    resp = client.put(f"/api/users/{admin.id}/permissions", json={"permissions": {"viewUsers": False}}, headers=user_headers)
    assert resp.status_code == 403
    assert client.get(f"/api/users/{admin.id}/permissions", headers=user_headers).status_code == 403


def test_manager_can_view_but_not_create(client, db):
    manager = make_user(db, role="Manager", email="boss@example.com")
    headers = auth_headers(manager)
    assert client.get("/api/users", headers=headers).status_code == 200
    resp = client.post("/api/users", json={"name": "N", "email": "n@example.com", "password": "secret1"}, headers=headers)
    assert resp.status_code == 403
