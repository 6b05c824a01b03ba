import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ...auth.policy import (
    Decision,
    DenialReason,
    Operation,
    authorize_update,
    can_delete_user,
    can_list_users,
)
from ...auth.rbac_contract import Role, is_valid_category
from ...domain.ports.audit import AuditPort
from ...domain.ports.user import UserAccountData, UserPort
from ...schemas.user import UserRecordRead
from .guard import raise_for_decision

logger = logging.getLogger("travel_admin.admin")

DEFAULT_LIST_LIMIT = 200

# Denials that say something about the target, worth keeping in the audit trail
_AUDITED_REASONS = frozenset(DenialReason) - {DenialReason.NOT_FOUND}


def snapshot(account: UserAccountData) -> dict[str, Any]:
    return UserRecordRead.from_account(account).model_dump(mode="json", by_alias=True)


async def _deny(
    decision: Decision,
    *,
    actor: UserAccountData,
    target_id: str,
    operation: Operation,
    audit: AuditPort | None,
) -> None:
    if audit is not None and decision.reason in _AUDITED_REASONS:
        await audit.log_policy_denied(
            actor_id=actor.id,
            user_id=target_id,
            operation=operation.value,
            reason=decision.reason.value,
        )
    raise_for_decision(
        decision, actor_id=actor.id, target_id=target_id, operation=operation.value
    )


async def list_users(
    user_port: UserPort,
    actor: UserAccountData,
    *,
    limit: int = DEFAULT_LIST_LIMIT,
) -> Sequence[UserAccountData]:
    """Return the first ``limit`` accounts, newest first."""
    raise_for_decision(
        can_list_users(actor.role),
        actor_id=actor.id,
        target_id=None,
        operation=Operation.LIST_USERS.value,
    )
    return await user_port.list_recent(limit)


def _apply_changes(
    account: UserAccountData, actor: UserAccountData, changes: Mapping[str, Any]
) -> None:
    if "role" in changes:
        new_role = Role(changes["role"])
        account.role = new_role.value
        account.assigned_by = actor.id
        if "category" not in changes and not is_valid_category(new_role, account.category):
            account.category = ""
    if "category" in changes:
        account.category = changes["category"]
    if "is_active" in changes:
        account.is_active = changes["is_active"]
    for field_name, value in changes.get("profile", {}).items():
        setattr(account, field_name, value)


async def update_user(
    user_port: UserPort,
    actor: UserAccountData,
    target_id: str,
    changes: Mapping[str, Any],
    *,
    audit: AuditPort | None = None,
) -> UserAccountData:
    """
    Apply an admin's partial update to another account.

    The whole update is authorized before anything is written; a single
    denied field rejects the request and leaves the record untouched.

    Args:
        user_port: Store access
        actor: The authenticated account performing the update
        target_id: Id of the account being changed
        changes: Supplied fields only (``role``, ``category``, ``is_active``,
            ``profile`` as a dict of profile fields)
        audit: Optional audit recorder

    Raises:
        PermissionError: Actor is not SuperAdmin or Admin
        NotFoundError: Target does not exist
        PolicyDeniedError: Actor may not make this change on this target
    """
    target = await user_port.get_by_id(target_id)
    decision = authorize_update(
        actor.role, target.role if target is not None else None, changes
    )
    if not decision.allowed:
        await _deny(
            decision,
            actor=actor,
            target_id=target_id,
            operation=decision.operation,
            audit=audit,
        )

    if not changes:
        return target

    before = snapshot(target)
    try:
        _apply_changes(target, actor, changes)
        if audit is not None:
            await audit.log_user_update(
                actor_id=actor.id,
                user_id=target_id,
                before=before,
                after=snapshot(target),
            )
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    logger.info(
        "user_updated actor=%s target=%s fields=%s",
        actor.id,
        target_id,
        ",".join(sorted(changes)),
    )
    return target


async def delete_user(
    user_port: UserPort,
    actor: UserAccountData,
    target_id: str,
    *,
    audit: AuditPort | None = None,
) -> None:
    """Permanently remove an account. There is no soft-delete or tombstone."""
    target = await user_port.get_by_id(target_id)
    decision = can_delete_user(actor.role, target.role if target is not None else None)
    if not decision.allowed:
        await _deny(
            decision,
            actor=actor,
            target_id=target_id,
            operation=Operation.DELETE_USER,
            audit=audit,
        )

    before = snapshot(target)
    try:
        # Audit first: the entry must exist before the actor row could vanish
        if audit is not None:
            await audit.log_user_delete(actor_id=actor.id, user_id=target_id, before=before)
        await user_port.delete(target)
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    logger.info("user_deleted actor=%s target=%s role=%s", actor.id, target_id, before["role"])
