import csv
import io

from assettag.services.reports import CSV_COLUMNS, assets_to_csv, generate_qr_code_image
from conftest import make_asset


def test_csv_export_honours_filters(client, db, user_headers):
    make_asset(db, "A-1", "Drill, cordless", status="Available", cost=99.5)
    make_asset(db, "A-2", "Crane", status="In Use")
    resp = client.get("/api/reports/assets.csv", params={"status": "Available"}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == CSV_COLUMNS
    assert len(rows) == 2
    assert rows[1][0] == "A-1"
    assert "Drill, cordless" in rows[1]


def test_csv_of_nothing_is_header_only():
    rows = list(csv.reader(io.StringIO(assets_to_csv([]))))
    assert len(rows) == 1


def test_pdf_report(client, db, user_headers):
    make_asset(db)
    resp = client.get("/api/reports/assets.pdf", headers=user_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


def test_viewer_cannot_export(client, viewer_headers):
    assert client.get("/api/reports/assets.csv", headers=viewer_headers).status_code == 403
    assert client.get("/api/reports/assets.pdf", headers=viewer_headers).status_code == 403


def test_export_permission_alone_allows_csv(client, db):
    from conftest import make_user, auth_headers
    from assettag.services.permissions import role_defaults

    perms = role_defaults("User")
    perms["exportReports"] = False
    user = make_user(db, email="csv@example.com", permissions=perms)
    headers = auth_headers(user)
    assert client.get("/api/reports/assets.csv", headers=headers).status_code == 200
    assert client.get("/api/reports/assets.pdf", headers=headers).status_code == 403


def test_qr_labels(client, db, viewer_headers):
    make_asset(db, "A-1", "One")
    make_asset(db, "A-2", "Two")
    resp = client.get("/api/reports/qr-labels.pdf", params={"ids": "A-1, A-2"}, headers=viewer_headers)
    assert resp.status_code == 200
    assert resp.content.startswith(b"%PDF")

    missing = client.get("/api/reports/qr-labels.pdf", params={"ids": "A-1,NOPE"}, headers=viewer_headers)
    assert missing.status_code == 404
    assert "NOPE" in missing.json()["detail"]
    assert client.get("/api/reports/qr-labels.pdf", params={"ids": " , "}, headers=viewer_headers).status_code == 400


def test_qr_image_is_sized_png():
    from PIL import Image

    image = Image.open(generate_qr_code_image("AST-001", size=128))
    assert image.format == "PNG"
    assert image.size == (128, 128)
