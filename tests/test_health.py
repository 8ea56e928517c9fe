from assettag.logging import SECURITY_HEADERS


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["uptime"] >= 0


def test_root_lists_endpoints(client):
    endpoints = client.get("/").json()["endpoints"]
    assert endpoints["equipment"] == "/api/equipment"
    assert endpoints["health"] == "/api/health"


def test_security_headers_and_request_id(client):
    resp = client.get("/api/health")
    for name, value in SECURITY_HEADERS.items():
        assert resp.headers[name] == value
    assert resp.headers["X-Request-ID"]

    echoed = client.get("/api/health", headers={"X-Request-ID": "req-42"})
    assert echoed.headers["X-Request-ID"] == "req-42"


def test_unknown_route_is_404(client, user_headers):
    assert client.get("/api/nothing-here", headers=user_headers).status_code == 404
