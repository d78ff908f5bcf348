from fastapi.testclient import TestClient

from drama_api.main import app


def test_app_starts(db_schema):
    with TestClient(app) as client:
        response = client.get("/health")
        assert response.status_code == 200


def test_health_endpoint(client):
    response = client.get("/health")
    data = response.json()
    assert response.status_code == 200
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["service"] == "drama-llm-api"
    assert "timestamp" in data
    assert "uptime" in data


def test_health_reports_unreachable_database(client, monkeypatch):
    async def broken():
        return False

    monkeypatch.setattr("drama_api.main.check_connection", broken)
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"
    assert response.json()["database"] == "disconnected"


def test_api_info_lists_endpoints(client):
    response = client.get("/api")
    data = response.json()
    assert response.status_code == 200
    assert data["endpoints"]["auth"] == "/api/auth"
    assert data["endpoints"]["conversations"] == "/api/conversations"


def test_unknown_route_returns_envelope(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Route not found"}


def test_request_id_is_echoed(client):
    response = client.get("/api", headers={"x-request-id": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"

    generated = client.get("/api").headers["x-request-id"]
    assert generated and generated != "abc-123"
