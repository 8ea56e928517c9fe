"""
Cron endpoints and the scheduler script that calls them.
"""
from datetime import datetime

import httpx

from assettag.config import settings
from conftest import make_maintenance
from scripts.maintenance_cron import next_run_at, run_checks


def test_status_is_open_without_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", None)
    resp = client.get("/api/cron/status")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "active"
    assert body["availableJobs"][0]["name"] == "maintenance-notifications"


def test_secret_is_enforced(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    assert client.get("/api/cron/status").status_code == 401
    assert client.get("/api/cron/status", headers={"X-Cron-Secret": "wrong"}).status_code == 401
    assert client.get("/api/cron/status", headers={"X-Cron-Secret": "s3cret"}).status_code == 200


def test_run_notification_checks(client, db, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    make_maintenance(db, days_from_now=0)
    resp = client.post("/api/cron/maintenance-notifications", headers={"X-Cron-Secret": "s3cret"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    results = body["results"]
    assert set(results) == {"timestamp", "dueToday", "upcoming", "overdue"}
    assert results["upcoming"]["success"] is True


def test_next_run_at():
    assert next_run_at(datetime(2024, 5, 1, 7, 59), 8, 0) == datetime(2024, 5, 1, 8, 0)
    assert next_run_at(datetime(2024, 5, 1, 8, 0), 8, 0) == datetime(2024, 5, 2, 8, 0)
    assert next_run_at(datetime(2024, 12, 31, 23, 0), 8, 30) == datetime(2025, 1, 1, 8, 30)


def test_run_checks_posts_with_secret():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["secret"] = request.headers.get("X-Cron-Secret")
        return httpx.Response(200, json={"success": True, "results": {"dueToday": {"notified": 2}}})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    result = run_checks("http://api.local/api/", cron_secret="abc", client=client)
    assert seen == {"url": "http://api.local/api/cron/maintenance-notifications", "secret": "abc"}
    assert result["results"]["dueToday"]["notified"] == 2


def test_weekly_digest_endpoint(client, db, admin, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", None)
    make_maintenance(db, days_from_now=2)
    resp = client.post("/api/cron/weekly-maintenance-notifications")
    assert resp.status_code == 200
    assert resp.json()["results"] == {"success": True, "notified": 1}
