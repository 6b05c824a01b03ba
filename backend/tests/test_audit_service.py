from unittest.mock import AsyncMock, MagicMock

import pytest

from travel_admin.models.audit_log import AuditLog
from travel_admin.services.audit import AuditService


def make_session() -> MagicMock:
    session = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.mark.anyio
async def test_user_update_is_flushed_with_the_change_not_committed() -> None:
    session = make_session()

    await AuditService(session).log_user_update(
        actor_id="admin", user_id="t1", before={"role": "User"}, after={"role": "Staff"}
    )

    entry = session.add.call_args.args[0]
    assert isinstance(entry, AuditLog)
    assert entry.action == "user.update"
    assert entry.entity_type == "user"
    assert entry.entity_id == "t1"
    assert entry.actor_id == "admin"
    assert entry.after == {"role": "Staff"}
    session.flush.assert_awaited_once()
    session.commit.assert_not_awaited()


@pytest.mark.anyio
async def test_user_delete_keeps_before_snapshot() -> None:
    session = make_session()

    await AuditService(session).log_user_delete(actor_id="root", user_id="t1", before={"uid": "t1"})

    entry = session.add.call_args.args[0]
    assert entry.action == "user.delete"
    assert entry.before == {"uid": "t1"}
    assert entry.after is None


@pytest.mark.anyio
async def test_policy_denial_is_committed_on_its_own() -> None:
    session = make_session()

    await AuditService(session).log_policy_denied(
        actor_id="admin", user_id="root", operation="delete_user", reason="AdminDeleteRestricted"
    )

    entry = session.add.call_args.args[0]
    assert entry.action == "permission_denied"
    assert entry.reason == "AdminDeleteRestricted"
    assert entry.after == {"operation": "delete_user"}
    session.commit.assert_awaited_once()


@pytest.mark.anyio
async def test_policy_denial_write_failure_is_logged_not_raised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    session = make_session()
    session.flush.side_effect = RuntimeError("db down")

    with caplog.at_level("ERROR", logger="travel_admin.audit"):
        await AuditService(session).log_policy_denied(
            actor_id="admin", user_id="root", operation="change_role", reason="CannotModifySuperAdmin"
        )

    session.rollback.assert_awaited_once()
    assert any("Failed to record policy denial" in record.getMessage() for record in caplog.records)
