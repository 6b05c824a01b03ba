import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ...auth.rbac_contract import DEFAULT_GENDER, SUPER_ADMIN_CATEGORY, Role
from ...domain.ports.identity import IdentityProfile
from ...domain.ports.user import UserAccountData, UserPort

logger = logging.getLogger("travel_admin.accounts")


@dataclass(frozen=True)
class ProvisionResult:
    role: Role
    account: UserAccountData | None
    created: bool
    # False when the store write failed and ``role`` is derived from the allow-list only
    persisted: bool


def is_super_admin_email(email: str, super_admin_emails: Iterable[str]) -> bool:
    normalized = email.strip().lower()
    if not normalized:
        return False
    return normalized in {candidate.strip().lower() for candidate in super_admin_emails}


def initial_role(email: str, super_admin_emails: Iterable[str]) -> Role:
    return Role.SUPER_ADMIN if is_super_admin_email(email, super_admin_emails) else Role.USER


def split_display_name(display_name: str | None) -> tuple[str, str]:
    """First token is the first name; everything after the first space is the last name."""
    if not display_name:
        return "", ""
    first, _, rest = display_name.partition(" ")
    return first, rest


def new_account_fields(
    identity: IdentityProfile,
    super_admin_emails: Iterable[str],
    now: datetime,
) -> dict[str, Any]:
    role = initial_role(identity.email, super_admin_emails)
    first_name, last_name = split_display_name(identity.display_name)
    return {
        "id": identity.uid,
        "email": identity.email,
        "role": role.value,
        "category": SUPER_ADMIN_CATEGORY if role is Role.SUPER_ADMIN else "",
        "first_name": first_name,
        "last_name": last_name,
        "gender": DEFAULT_GENDER,
        "date_of_birth": "",
        "mobile": "",
        "avatar": identity.photo_url or "",
        "is_active": True,
        "email_verified": identity.email_verified,
        "created_at": now,
        "last_login_at": now,
        "permissions": [],
        "assigned_by": "",
    }


async def rollback_quietly(user_port: UserPort) -> None:
    try:
        await user_port.rollback()
    except Exception:
        logger.exception("Rollback after failed account write also failed")


async def provision_account(
    user_port: UserPort,
    identity: IdentityProfile,
    *,
    super_admin_emails: Iterable[str],
    now: datetime | None = None,
) -> ProvisionResult:
    """
    Create or refresh the account record for a successful sign-in.

    New identities get a record whose role comes from the administrator
    allow-list. Returning identities only get ``last_login_at`` bumped (and
    avatar/email filled in when no avatar is stored); their role is never
    recomputed, so an edited role survives and the provider cannot raise it.

    If the store write fails the error is logged and a transient result is
    returned with the allow-list role, so the sign-in itself can proceed.
    """
    now = now or datetime.now(timezone.utc)
    super_admin_emails = list(super_admin_emails)

    try:
        existing = await user_port.get_by_id(identity.uid)
        if existing is not None:
            existing.last_login_at = now
            if not existing.avatar:
                existing.avatar = identity.photo_url or ""
                existing.email = identity.email or existing.email
            await user_port.commit()
            return ProvisionResult(
                role=Role(existing.role), account=existing, created=False, persisted=True
            )

        account = await user_port.create(
            **new_account_fields(identity, super_admin_emails, now)
        )
        await user_port.commit()
    except Exception:
        logger.exception(
            "Account provisioning failed uid=%s email=%s; continuing with transient role",
            identity.uid,
            identity.email,
        )
        await rollback_quietly(user_port)
        return ProvisionResult(
            role=initial_role(identity.email, super_admin_emails),
            account=None,
            created=False,
            persisted=False,
        )

    logger.info(
        "Provisioned account uid=%s email=%s role=%s",
        identity.uid,
        identity.email,
        account.role,
    )
    return ProvisionResult(
        role=Role(account.role), account=account, created=True, persisted=True
    )
