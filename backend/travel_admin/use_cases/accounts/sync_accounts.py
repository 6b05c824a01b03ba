import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ...domain.ports.identity import IdentityProfile
from ...domain.ports.user import UserPort
from .provision_account import new_account_fields, rollback_quietly

logger = logging.getLogger("travel_admin.accounts")


@dataclass
class SyncReport:
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0
    errors_list: list[str] = field(default_factory=list)


async def sync_accounts(
    user_port: UserPort,
    identities: Iterable[IdentityProfile],
    *,
    super_admin_emails: Iterable[str],
    now: datetime | None = None,
) -> SyncReport:
    """
    Bring the user store in line with the identity provider's account list.

    Each identity is committed on its own so one bad record does not undo the
    rest. Existing records get their email, avatar and ``last_login_at``
    refreshed; roles are left alone.
    """
    now = now or datetime.now(timezone.utc)
    super_admin_emails = list(super_admin_emails)
    identities = list(identities)
    report = SyncReport(total=len(identities))
    logger.info("Starting account sync total=%d", report.total)

    for identity in identities:
        try:
            existing = await user_port.get_by_id(identity.uid)
            if existing is not None:
                existing.last_login_at = now
                existing.email = identity.email or ""
                existing.avatar = identity.photo_url or existing.avatar or ""
                await user_port.commit()
                report.updated += 1
                logger.debug("Updated account email=%s", identity.email)
            else:
                account = await user_port.create(
                    **new_account_fields(identity, super_admin_emails, now)
                )
                await user_port.commit()
                report.created += 1
                logger.debug(
                    "Created account email=%s role=%s", identity.email, account.role
                )
        except Exception as exc:
            await rollback_quietly(user_port)
            report.errors += 1
            message = f"Error processing user {identity.email}: {exc}"
            report.errors_list.append(message)
            logger.error(message)

    logger.info(
        "Account sync completed total=%d created=%d updated=%d errors=%d",
        report.total,
        report.created,
        report.updated,
        report.errors,
    )
    return report
