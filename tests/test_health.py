from fastapi.testclient import TestClient

from reefing.config import settings
from reefing.main import app


def test_root_banner(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Reefing API"


def test_health_is_public(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "API is running"
    assert "timestamp" in body["data"]


def test_security_headers(client):
    response = client.get("/api/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


def test_db_check_requires_auth(client):
    assert client.get("/api/health/db").status_code == 401


def test_db_check(client, alice):
    response = client.get("/api/health/db", headers=alice)
    assert response.status_code == 200
    assert response.json()["data"] == {"database": "ok"}


def test_s3_check(client, alice):
    response = client.get("/api/health/s3", headers=alice)
    assert response.status_code == 200
    assert response.json()["data"] == {"bucket": "reefing-test"}


def test_s3_check_failure_is_500(client, alice, storage):
    storage.bucket_reachable = False
    response = client.get("/api/health/s3", headers=alice)
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Object storage unreachable"}


def test_unhandled_errors_use_the_envelope(client, alice, create_aquarium, db):
    aquarium = create_aquarium(alice)
    db.fail_tables["aquarium_photos"] = "select"

    with TestClient(app, raise_server_exceptions=False) as raw_client:
        response = raw_client.get(f"/api/aquariums/{aquarium['id']}/photos", headers=alice)

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["error"] == "Internal server error"


def test_unhandled_error_detail_stays_in_the_logs(client, alice, create_aquarium, db, monkeypatch, caplog):
    monkeypatch.setattr(settings, "environment", "development")
    aquarium = create_aquarium(alice)
    db.fail_tables["aquarium_photos"] = "select"

    with TestClient(app, raise_server_exceptions=False) as raw_client:
        response = raw_client.get(f"/api/aquariums/{aquarium['id']}/photos", headers=alice)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
    assert "connection refused" not in response.text
    assert "connection refused" in caplog.text
