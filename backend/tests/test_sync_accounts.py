from datetime import datetime, timezone

import pytest

from tests.account_helpers import FakeUserPort, make_account
from travel_admin.domain.ports.identity import IdentityProfile
from travel_admin.use_cases.accounts.sync_accounts import sync_accounts

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.mark.anyio
async def test_sync_counts_created_updated_and_errors(caplog: pytest.LogCaptureFixture) -> None:
    existing = make_account("u1", "Partner", email="old@example.com", avatar="http://img/keep.png")
    port = FakeUserPort(existing)
    port.fail_on_create.add("u3")
    identities = [
        IdentityProfile(uid="u1", email="p@example.com"),
        IdentityProfile(uid="u2", email="root@example.com", display_name="Root User"),
        IdentityProfile(uid="u3", email="broken@example.com"),
    ]

    with caplog.at_level("INFO", logger="travel_admin.accounts"):
        report = await sync_accounts(
            port, identities, super_admin_emails=["root@example.com"], now=NOW
        )

    assert (report.total, report.created, report.updated, report.errors) == (3, 1, 1, 1)
    assert report.errors_list == ["Error processing user broken@example.com: store unavailable"]
    assert port.rollbacks == 1
    assert port.commits == 2

    assert existing.role == "Partner"
    assert existing.email == "p@example.com"
    assert existing.avatar == "http://img/keep.png"
    assert existing.last_login_at == NOW

    created = port.accounts["u2"]
    assert created.role == "SuperAdmin"
    assert created.first_name == "Root"
    assert any("Account sync completed" in record.getMessage() for record in caplog.records)


@pytest.mark.anyio
async def test_sync_refreshes_avatar_from_provider() -> None:
    existing = make_account("u1", avatar="http://img/old.png")
    port = FakeUserPort(existing)

    await sync_accounts(
        port,
        [IdentityProfile(uid="u1", email="u1@example.com", photo_url="http://img/new.png")],
        super_admin_emails=[],
        now=NOW,
    )

    assert existing.avatar == "http://img/new.png"


@pytest.mark.anyio
async def test_sync_of_nothing_reports_zeroes() -> None:
    report = await sync_accounts(FakeUserPort(), [], super_admin_emails=[])

    assert (report.total, report.created, report.updated, report.errors) == (0, 0, 0, 0)
    assert report.errors_list == []


@pytest.mark.anyio
async def test_sync_reports_errors_when_rollback_also_fails() -> None:
    port = FakeUserPort()
    port.fail_on_create.add("u1")

    async def broken_rollback() -> None:
        raise RuntimeError("connection lost")

    port.rollback = broken_rollback
    identities = [
        IdentityProfile(uid="u1", email="broken@example.com"),
        IdentityProfile(uid="u2", email="fine@example.com"),
    ]

    report = await sync_accounts(port, identities, super_admin_emails=[], now=NOW)

    assert report.errors == 1
    assert report.created == 1
    assert report.errors_list[0].startswith("Error processing user broken@example.com")
