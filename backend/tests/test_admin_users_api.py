from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from tests.account_helpers import FakeAuditPort, FakeUserPort, make_account
from travel_admin.dependencies import get_audit_port, get_identity_provider, get_user_port
from travel_admin.domain.ports.identity import IdentityProfile
from travel_admin.main import app
from travel_admin.security.token_inspection import create_access_token


class FakeIdentityProvider:
    def __init__(self, accounts: list[IdentityProfile] | None = None) -> None:
        self.accounts = accounts or []

    async def verify_id_token(self, id_token: str) -> IdentityProfile:
        raise AssertionError("not used")

    async def list_accounts(self) -> list[IdentityProfile]:
        return self.accounts


@pytest.fixture
def port() -> FakeUserPort:
    return FakeUserPort(
        make_account("root", "SuperAdmin", category="Admin", age_days=0),
        make_account("admin", "Admin", category="Admin", age_days=1),
        make_account("admin2", "Admin", age_days=2),
        make_account("staff", "Staff", age_days=3),
        make_account("user", "User", age_days=4),
        make_account("gone", "Agent", age_days=5, is_active=False),
    )


@pytest.fixture
def audit() -> FakeAuditPort:
    return FakeAuditPort()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def client(
    port: FakeUserPort, audit: FakeAuditPort, identity_provider: FakeIdentityProvider
) -> Iterator[TestClient]:
    app.dependency_overrides[get_user_port] = lambda: port
    app.dependency_overrides[get_audit_port] = lambda: audit
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(uid: str, role: str = "User") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(uid, role)}"}


def test_list_requires_token(client: TestClient) -> None:
    response = client.get("/api/admin/users")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_ERROR"


def test_list_rejects_garbage_token(client: TestClient) -> None:
    response = client.get("/api/admin/users", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401


def test_list_users_for_admin(client: TestClient) -> None:
    response = client.get("/api/admin/users", headers=auth("admin", "Admin"))

    assert response.status_code == 200
    users = response.json()["users"]
    assert [user["uid"] for user in users][:2] == ["gone", "user"]
    first = users[0]
    assert first["metadata"]["isActive"] is False
    assert set(first["profile"]) == {"firstName", "lastName", "gender", "dateOfBirth", "mobile", "avatar"}


def test_list_users_forbidden_for_staff(client: TestClient) -> None:
    response = client.get("/api/admin/users", headers=auth("staff"))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"


def test_stored_role_wins_over_token_claim(client: TestClient) -> None:
    response = client.get("/api/admin/users", headers=auth("staff", "SuperAdmin"))

    assert response.status_code == 403


def test_deactivated_actor_is_rejected(client: TestClient) -> None:
    response = client.get("/api/auth/me", headers=auth("gone"))

    assert response.status_code == 403


def test_unknown_actor_is_unauthenticated(client: TestClient) -> None:
    response = client.get("/api/admin/users", headers=auth("nobody", "Admin"))

    assert response.status_code == 401


def test_admin_sets_staff_category(client: TestClient, port: FakeUserPort) -> None:
    response = client.patch(
        "/api/admin/users/staff",
        json={"category": "Support"},
        headers=auth("admin"),
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert port.accounts["staff"].category == "Support"


def test_admin_cannot_change_super_admin_role(
    client: TestClient, port: FakeUserPort, audit: FakeAuditPort
) -> None:
    response = client.patch(
        "/api/admin/users/root",
        json={"role": "Admin"},
        headers=auth("admin"),
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "POLICY_DENIED"
    assert error["message"] == "Admins cannot modify SuperAdmin"
    assert error["details"] == {"reason": "CannotModifySuperAdmin"}
    assert port.accounts["root"].role == "SuperAdmin"
    assert audit.events[0][0] == "permission_denied"


def test_admin_may_reactivate_super_admin(client: TestClient, port: FakeUserPort) -> None:
    response = client.patch(
        "/api/admin/users/root", json={"isActive": True}, headers=auth("admin")
    )

    assert response.status_code == 200

    response = client.patch(
        "/api/admin/users/root", json={"isActive": False}, headers=auth("admin")
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"reason": "CannotDeactivateSuperAdmin"}
    assert port.accounts["root"].is_active is True


def test_patch_nested_profile(client: TestClient, port: FakeUserPort) -> None:
    response = client.patch(
        "/api/admin/users/user",
        json={"profile": {"firstName": "Ann", "dateOfBirth": "1990-01-01"}},
        headers=auth("root"),
    )

    assert response.status_code == 200
    assert port.accounts["user"].first_name == "Ann"
    assert port.accounts["user"].date_of_birth == "1990-01-01"


@pytest.mark.parametrize(
    "body",
    [
        {"role": "Overlord"},
        {"isActive": "maybe"},
        {"nickname": "x"},
        {"profile": {"gender": "Unknown"}},
    ],
)
def test_patch_rejects_malformed_body(client: TestClient, body: dict) -> None:
    response = client.patch("/api/admin/users/user", json=body, headers=auth("root"))

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_patch_missing_target_is_404(client: TestClient) -> None:
    response = client.patch(
        "/api/admin/users/ghost", json={"category": ""}, headers=auth("admin")
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_empty_patch_is_ok(client: TestClient, port: FakeUserPort) -> None:
    response = client.patch("/api/admin/users/staff", json={}, headers=auth("admin"))

    assert response.status_code == 200
    assert port.commits == 0


def test_super_admin_deletes_admin(client: TestClient, port: FakeUserPort) -> None:
    response = client.delete("/api/admin/users/admin2", headers=auth("root"))

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert "admin2" not in port.accounts


def test_admin_cannot_delete_admin(client: TestClient, port: FakeUserPort) -> None:
    response = client.delete("/api/admin/users/admin2", headers=auth("admin"))

    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"reason": "AdminDeleteRestricted"}
    assert "admin2" in port.accounts


def test_staff_cannot_delete(client: TestClient, port: FakeUserPort) -> None:
    response = client.delete("/api/admin/users/user", headers=auth("staff"))

    assert response.status_code == 403
    assert "user" in port.accounts


def test_role_catalog_marks_assignable_roles(client: TestClient) -> None:
    response = client.get("/api/admin/roles", headers=auth("admin"))

    assert response.status_code == 200
    roles = response.json()["roles"]
    assert [role["name"] for role in roles] == [
        "SuperAdmin", "Admin", "Staff", "Partner", "Agent", "User"
    ]
    assert roles[0]["assignable"] is False
    assert all(role["assignable"] for role in roles[1:])
    assert roles[2]["categories"] == ["Accounts", "Support", "Key Manager", "Research", "Media", "Sales"]


def test_role_catalog_forbidden_for_user(client: TestClient) -> None:
    response = client.get("/api/admin/roles", headers=auth("user"))

    assert response.status_code == 403


def test_sync_is_super_admin_only(client: TestClient) -> None:
    response = client.post("/api/admin/sync-users", headers=auth("admin"))

    assert response.status_code == 403


def test_sync_users(
    client: TestClient, port: FakeUserPort, identity_provider: FakeIdentityProvider
) -> None:
    identity_provider.accounts = [
        IdentityProfile(uid="staff", email="staff@example.com"),
        IdentityProfile(uid="fresh", email="fresh@example.com", display_name="Fresh Face"),
    ]

    response = client.post("/api/admin/sync-users", headers=auth("root"))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User sync completed"
    assert body["results"] == {
        "total": 2,
        "created": 1,
        "updated": 1,
        "errors": 0,
        "errors_list": [],
    }
    assert port.accounts["fresh"].role == "User"
