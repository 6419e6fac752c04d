import anyio
from routemap.core import db


def test_healthz_endpoint(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 0
    assert body["data"]["status"] == "ok"


def test_health_reports_database(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "ok"
    assert data["database"]["status"] == "ok"
    assert "timestamp" in data


def test_metrics_endpoint_counts_requests(client):
    client.get("/healthz")
    client.get("/healthz")

    data = client.get("/api/metrics").json()["data"]
    healthz = [route for route in data["routes"] if route["path"] == "/healthz"]
    assert healthz and healthz[0]["count"] == 2
    assert healthz[0]["last_status"] == 200

    windowed = client.get("/api/metrics?window_seconds=60").json()["data"]
    assert windowed["window_seconds"] == 60
    assert windowed["total_requests"] >= 2


def test_metrics_group_requests_by_route_pattern(client, user_id):
    for name in ("Goa", "Kerala"):
        trip = client.post(f"/api/trips?user_id={user_id}", json={"name": name})
        trip_id = trip.json()["data"]["id"]
        client.post(f"/api/trips/{trip_id}/select?user_id={user_id}")

    routes = client.get("/api/metrics").json()["data"]["routes"]
    select = [r for r in routes if r["path"] == "/api/trips/{trip_id}/select"]
    assert select and select[0]["count"] == 2


def test_db_health_reading_is_reused_until_disposed(monkeypatch):
    first = anyio.run(db.check_db_health)
    assert first["status"] == "ok"
    assert first["dialect"] == "sqlite"

    monkeypatch.setattr(db, "_ping_database", lambda: {"status": "fail"})
    try:
        assert anyio.run(db.check_db_health) is first
        assert anyio.run(db.check_db_health, False) == {"status": "fail"}
    finally:
        db.dispose_engine()
    monkeypatch.undo()
    assert anyio.run(db.check_db_health)["status"] == "ok"
