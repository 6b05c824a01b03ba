import pytest

from travel_admin.auth import rbac_contract
from travel_admin.auth.rbac_contract import (
    ADMIN_DELETABLE_ROLES,
    ALL_ROLES,
    DASHBOARD_ROUTES,
    PRIVILEGED_ROLES,
    ROLE_CATEGORIES,
    ROLE_RANK,
    Role,
    dashboard_for,
    is_valid_category,
    parse_role,
)


def test_six_roles_with_unique_ranks() -> None:
    assert ALL_ROLES == {"SuperAdmin", "Admin", "Staff", "Partner", "Agent", "User"}
    assert sorted(ROLE_RANK.values()) == [1, 2, 3, 4, 5, 6]
    assert ROLE_RANK[Role.SUPER_ADMIN] > ROLE_RANK[Role.ADMIN] > ROLE_RANK[Role.USER]


def test_every_role_has_categories_and_dashboard() -> None:
    for role in Role:
        assert ROLE_CATEGORIES[role]
        assert DASHBOARD_ROUTES[role].startswith("/")


def test_admin_deletable_roles_are_not_privileged() -> None:
    assert ADMIN_DELETABLE_ROLES == {Role.STAFF, Role.PARTNER, Role.AGENT}
    assert PRIVILEGED_ROLES.isdisjoint(ADMIN_DELETABLE_ROLES)


def test_parse_role_accepts_exact_names_only() -> None:
    assert parse_role("Agent") is Role.AGENT
    with pytest.raises(ValueError, match="Invalid role 'superadmin'"):
        parse_role("superadmin")
    with pytest.raises(ValueError):
        parse_role("Root")


@pytest.mark.parametrize(
    ("role", "category", "expected"),
    [
        (Role.STAFF, "Support", True),
        (Role.STAFF, "Supplier", False),
        (Role.PARTNER, "Service Provider", True),
        (Role.AGENT, "B2B", True),
        (Role.USER, "Default", True),
        (Role.ADMIN, "Sales", False),
        (Role.AGENT, "", True),
    ],
)
def test_is_valid_category(role: Role, category: str, expected: bool) -> None:
    assert is_valid_category(role, category) is expected


def test_dashboard_for_falls_back_to_public_user() -> None:
    assert dashboard_for("SuperAdmin") == "/superadmin/admin"
    assert dashboard_for(Role.PARTNER) == "/users/partner"
    assert dashboard_for("unknown") == "/users/publicuser"
    assert dashboard_for(None) == "/users/publicuser"


def test_contract_validation_reports_missing_dashboard(monkeypatch: pytest.MonkeyPatch) -> None:
    broken = dict(DASHBOARD_ROUTES)
    broken.pop(Role.AGENT)
    monkeypatch.setattr(rbac_contract, "DASHBOARD_ROUTES", broken)

    with pytest.raises(RuntimeError, match="Role 'Agent' has no dashboard route"):
        rbac_contract._validate_contract()


def test_contract_validation_rejects_duplicate_ranks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(rbac_contract, "ROLE_RANK", {**ROLE_RANK, Role.USER: 2})

    with pytest.raises(RuntimeError, match="Role ranks must be unique"):
        rbac_contract._validate_contract()
