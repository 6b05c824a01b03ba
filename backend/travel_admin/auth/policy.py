"""
Authorization policy for user management.

Every admin endpoint asks this module whether an operation is permitted
instead of repeating role checks inline. Functions here are pure: they take
the acting role, the target's current role and the proposed change, and
return a ``Decision``. Nothing here touches the store.

Rules are evaluated in a fixed order per operation and the first denial wins.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .rbac_contract import (
    ADMIN_DELETABLE_ROLES,
    PRIVILEGED_ROLES,
    Role,
    is_valid_category,
    parse_role,
)


class Operation(str, Enum):
    LIST_USERS = "list_users"
    CHANGE_ROLE = "change_role"
    CHANGE_CATEGORY = "change_category"
    CHANGE_ACTIVE_STATUS = "change_active_status"
    CHANGE_PROFILE = "change_profile"
    DELETE_USER = "delete_user"


class DenialReason(str, Enum):
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CANNOT_ASSIGN_SUPER_ADMIN = "CannotAssignSuperAdmin"
    CANNOT_MODIFY_SUPER_ADMIN = "CannotModifySuperAdmin"
    CANNOT_DEACTIVATE_SUPER_ADMIN = "CannotDeactivateSuperAdmin"
    ADMIN_DELETE_RESTRICTED = "AdminDeleteRestricted"
    INVALID_CATEGORY = "InvalidCategory"


DENIAL_MESSAGES: dict[DenialReason, str] = {
    DenialReason.FORBIDDEN: "Forbidden",
    DenialReason.NOT_FOUND: "User not found",
    DenialReason.CANNOT_ASSIGN_SUPER_ADMIN: "Admins cannot assign SuperAdmin",
    DenialReason.CANNOT_MODIFY_SUPER_ADMIN: "Admins cannot modify SuperAdmin",
    DenialReason.CANNOT_DEACTIVATE_SUPER_ADMIN: "Admins cannot deactivate SuperAdmin",
    DenialReason.ADMIN_DELETE_RESTRICTED: "Admins can only delete Staff, Partner, and Agent users",
    DenialReason.INVALID_CATEGORY: "Category is not valid for this role",
}

# PATCH fields in the order their rules are evaluated
UPDATE_FIELD_ORDER: tuple[tuple[str, Operation], ...] = (
    ("role", Operation.CHANGE_ROLE),
    ("category", Operation.CHANGE_CATEGORY),
    ("is_active", Operation.CHANGE_ACTIVE_STATUS),
    ("profile", Operation.CHANGE_PROFILE),
)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenialReason | None = None
    # Set by authorize_update to the field rule that produced the denial
    operation: Operation | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    @property
    def message(self) -> str | None:
        return DENIAL_MESSAGES[self.reason] if self.reason is not None else None


ALLOWED = Decision.allow()


def _coerce_role(value: Role | str | None) -> Role | None:
    """Unknown or missing roles carry no privilege."""
    if value is None or isinstance(value, Role):
        return value
    try:
        return parse_role(value)
    except ValueError:
        return None


def can_list_users(acting_role: Role | str | None) -> Decision:
    role = _coerce_role(acting_role)
    if role not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    return ALLOWED


def can_change_role(
    acting_role: Role | str | None,
    target_role: Role | str,
    new_role: Role | str,
) -> Decision:
    acting = _coerce_role(acting_role)
    if acting not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    if acting is Role.ADMIN:
        if _coerce_role(new_role) is Role.SUPER_ADMIN:
            return Decision.deny(DenialReason.CANNOT_ASSIGN_SUPER_ADMIN)
        if _coerce_role(target_role) is Role.SUPER_ADMIN:
            return Decision.deny(DenialReason.CANNOT_MODIFY_SUPER_ADMIN)
    return ALLOWED


def can_change_category(
    acting_role: Role | str | None, target_role: Role | str
) -> Decision:
    acting = _coerce_role(acting_role)
    if acting not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    if acting is Role.ADMIN and _coerce_role(target_role) is Role.SUPER_ADMIN:
        return Decision.deny(DenialReason.CANNOT_MODIFY_SUPER_ADMIN)
    return ALLOWED


def can_change_active_status(
    acting_role: Role | str | None, target_role: Role | str, new_value: bool
) -> Decision:
    acting = _coerce_role(acting_role)
    if acting not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    # Only deactivation is blocked; an Admin may still reactivate a SuperAdmin
    if (
        acting is Role.ADMIN
        and _coerce_role(target_role) is Role.SUPER_ADMIN
        and new_value is False
    ):
        return Decision.deny(DenialReason.CANNOT_DEACTIVATE_SUPER_ADMIN)
    return ALLOWED


def can_change_profile(
    acting_role: Role | str | None, target_role: Role | str
) -> Decision:
    acting = _coerce_role(acting_role)
    if acting not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    if acting is Role.ADMIN and _coerce_role(target_role) is Role.SUPER_ADMIN:
        return Decision.deny(DenialReason.CANNOT_MODIFY_SUPER_ADMIN)
    return ALLOWED


def can_delete_user(
    acting_role: Role | str | None, target_role: Role | str | None
) -> Decision:
    """``target_role`` is None when the target record does not exist."""
    acting = _coerce_role(acting_role)
    if acting not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    if target_role is None:
        return Decision.deny(DenialReason.NOT_FOUND)
    if acting is Role.ADMIN and _coerce_role(target_role) not in ADMIN_DELETABLE_ROLES:
        return Decision.deny(DenialReason.ADMIN_DELETE_RESTRICTED)
    return ALLOWED


def evaluate(
    acting_role: Role | str | None,
    operation: Operation,
    target_role: Role | str | None = None,
    change: Any = None,
) -> Decision:
    """
    Decide whether ``acting_role`` may perform ``operation``.

    Args:
        acting_role: Role of the authenticated user performing the operation
        operation: The operation being attempted
        target_role: Current role of the target record, None if it does not exist
        change: The proposed value (new role for CHANGE_ROLE, new flag for
            CHANGE_ACTIVE_STATUS); ignored by the other operations

    Returns:
        Decision: ``allowed`` or the first denial reason that applies
    """
    if operation is Operation.LIST_USERS:
        return can_list_users(acting_role)

    if operation is Operation.DELETE_USER:
        return can_delete_user(acting_role, target_role)

    if _coerce_role(acting_role) not in PRIVILEGED_ROLES:
        return Decision.deny(DenialReason.FORBIDDEN)
    if target_role is None:
        return Decision.deny(DenialReason.NOT_FOUND)

    if operation is Operation.CHANGE_ROLE:
        return can_change_role(acting_role, target_role, change)
    if operation is Operation.CHANGE_CATEGORY:
        return can_change_category(acting_role, target_role)
    if operation is Operation.CHANGE_ACTIVE_STATUS:
        return can_change_active_status(acting_role, target_role, bool(change))
    if operation is Operation.CHANGE_PROFILE:
        return can_change_profile(acting_role, target_role)

    raise ValueError(f"Unknown operation '{operation}'")


def authorize_update(
    acting_role: Role | str | None,
    target_role: Role | str | None,
    changes: Mapping[str, Any],
) -> Decision:
    """
    Authorize a partial update as a single unit.

    ``changes`` holds only the fields the caller supplied (``role``,
    ``category``, ``is_active``, ``profile``). Each is checked in the fixed
    field order and the first denial is returned. A supplied category must
    also belong to the role the record will have once the update is applied.
    Every denial carries the operation of the field that produced it; a
    ``Forbidden`` or ``NotFound`` denial carries the first supplied field's.
    """
    first_operation = next(
        (operation for field_name, operation in UPDATE_FIELD_ORDER if field_name in changes),
        Operation.CHANGE_PROFILE,
    )
    if _coerce_role(acting_role) not in PRIVILEGED_ROLES:
        return replace(Decision.deny(DenialReason.FORBIDDEN), operation=first_operation)
    if target_role is None:
        return replace(Decision.deny(DenialReason.NOT_FOUND), operation=first_operation)

    for field_name, operation in UPDATE_FIELD_ORDER:
        if field_name not in changes:
            continue
        decision = evaluate(acting_role, operation, target_role, changes[field_name])
        if not decision.allowed:
            return replace(decision, operation=operation)

    if "category" in changes:
        resulting_role = _coerce_role(changes.get("role") or target_role)
        if resulting_role is None or not is_valid_category(
            resulting_role, changes["category"]
        ):
            return replace(
                Decision.deny(DenialReason.INVALID_CATEGORY),
                operation=Operation.CHANGE_CATEGORY,
            )

    return ALLOWED


def assignable_roles(acting_role: Role | str | None) -> list[Role]:
    """Roles ``acting_role`` may assign to a target that is not a SuperAdmin."""
    return [
        role
        for role in Role
        if can_change_role(acting_role, Role.USER, role).allowed
    ]
