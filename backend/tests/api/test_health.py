"""Tests for health and status endpoints."""

from lostfound import main


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "db": "ok"}


def test_status(client):
    status = client.get("/api/status").json()

    assert status["db_ok"] is True
    assert status["archival_sweeper_running"] is False
    assert "conflict" in status["claim_statuses"]


def test_health_degraded_when_db_unreachable(client, monkeypatch):
    monkeypatch.setattr(main, "ping", lambda db_path: False)

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "degraded", "db": "unavailable"}
