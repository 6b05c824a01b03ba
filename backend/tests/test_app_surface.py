import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from travel_admin import main
from travel_admin.main import app


def test_preflight_for_allowed_origin() -> None:
    response = TestClient(app).options(
        "/api/admin/users",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "PATCH",
            "Access-Control-Request-Headers": "authorization",
        },
    )

    assert response.status_code == 204
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-headers"] == "authorization"
    assert "PATCH" in response.headers["access-control-allow-methods"]


def test_preflight_for_unknown_origin_gets_no_cors_headers() -> None:
    response = TestClient(app).options(
        "/api/admin/users",
        headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 204
    assert "access-control-allow-origin" not in response.headers


def test_health_ok(monkeypatch: pytest.MonkeyPatch) -> None:
    async def healthy(_engine) -> None:
        return None

    monkeypatch.setattr(main, "check_database_connection", healthy)

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_reports_database_outage(monkeypatch: pytest.MonkeyPatch) -> None:
    async def unreachable(_engine) -> None:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(main, "check_database_connection", unreachable)

    response = TestClient(app).get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "error"}


def test_unknown_route_uses_error_envelope() -> None:
    response = TestClient(app).get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"
