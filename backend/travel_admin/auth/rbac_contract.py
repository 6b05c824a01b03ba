"""
Role contract for the travel admin platform.

Defines the closed set of roles, their rank, the categories each role may
carry and the dashboard each role lands on. The authorization rules that act
on these roles live in ``policy.py``; this module only holds the tables.

The tables are validated when the module is imported and a broken table
raises ``RuntimeError``, so a bad edit fails at startup instead of at request
time.
"""
from __future__ import annotations

from enum import Enum
from typing import Final


class Role(str, Enum):
    """Access level attached to a user account, highest first."""

    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    STAFF = "Staff"
    PARTNER = "Partner"
    AGENT = "Agent"
    USER = "User"


# Rank is informational; policy checks compare role identity, not rank
ROLE_RANK: Final[dict[Role, int]] = {
    Role.SUPER_ADMIN: 6,
    Role.ADMIN: 5,
    Role.STAFF: 4,
    Role.PARTNER: 3,
    Role.AGENT: 2,
    Role.USER: 1,
}

ALL_ROLES: Final[frozenset[str]] = frozenset(role.value for role in Role)

# Roles allowed onto the admin surface at all
PRIVILEGED_ROLES: Final[frozenset[Role]] = frozenset({Role.SUPER_ADMIN, Role.ADMIN})

# The only roles an Admin may delete (allow-list, not deny-list)
ADMIN_DELETABLE_ROLES: Final[frozenset[Role]] = frozenset(
    {Role.STAFF, Role.PARTNER, Role.AGENT}
)

ROLE_CATEGORIES: Final[dict[Role, tuple[str, ...]]] = {
    Role.SUPER_ADMIN: ("Admin",),
    Role.ADMIN: ("Admin",),
    Role.STAFF: ("Accounts", "Support", "Key Manager", "Research", "Media", "Sales"),
    Role.PARTNER: ("Supplier", "Service Provider"),
    Role.AGENT: ("Distributor", "Franchise", "B2B"),
    Role.USER: ("Default",),
}

DASHBOARD_ROUTES: Final[dict[Role, str]] = {
    Role.SUPER_ADMIN: "/superadmin/admin",
    Role.ADMIN: "/users/admin",
    Role.STAFF: "/users/staff",
    Role.PARTNER: "/users/partner",
    Role.AGENT: "/users/agent",
    Role.USER: "/users/publicuser",
}

SUPER_ADMIN_CATEGORY: Final[str] = "Admin"
DEFAULT_GENDER: Final[str] = "Other"
GENDERS: Final[frozenset[str]] = frozenset({"Male", "Female", "Other"})


def parse_role(value: str) -> Role:
    """
    Convert a stored or submitted role string into a ``Role``.

    Raises:
        ValueError: If the value is not one of the six roles
    """
    try:
        return Role(value)
    except ValueError:
        raise ValueError(
            f"Invalid role '{value}'. Must be one of: {', '.join(sorted(ALL_ROLES))}"
        ) from None


def categories_for(role: Role) -> tuple[str, ...]:
    return ROLE_CATEGORIES[role]


def is_valid_category(role: Role, category: str) -> bool:
    """An empty category is always accepted; otherwise it must belong to the role."""
    return category == "" or category in ROLE_CATEGORIES[role]


def dashboard_for(role: Role | str | None) -> str:
    try:
        return DASHBOARD_ROUTES[Role(role)] if role is not None else DASHBOARD_ROUTES[Role.USER]
    except ValueError:
        return DASHBOARD_ROUTES[Role.USER]


def _validate_contract() -> None:
    """Validate the role tables at module import time."""
    errors = []

    for role in Role:
        if role not in ROLE_RANK:
            errors.append(f"Role '{role.value}' has no rank")
        if not ROLE_CATEGORIES.get(role):
            errors.append(f"Role '{role.value}' has no categories")
        if role not in DASHBOARD_ROUTES:
            errors.append(f"Role '{role.value}' has no dashboard route")

    ranks = list(ROLE_RANK.values())
    if len(set(ranks)) != len(ranks):
        errors.append("Role ranks must be unique")

    if not PRIVILEGED_ROLES.isdisjoint(ADMIN_DELETABLE_ROLES):
        errors.append("Admin-deletable roles must not include privileged roles")

    if SUPER_ADMIN_CATEGORY not in ROLE_CATEGORIES.get(Role.SUPER_ADMIN, ()):
        errors.append("SuperAdmin category must be listed for SuperAdmin")

    if errors:
        raise RuntimeError(
            "Role contract validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )


_validate_contract()
