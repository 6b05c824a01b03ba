from collections.abc import Mapping
from typing import Any

from ...domain.ports.user import UserAccountData, UserPort
from ...schemas.user import PROFILE_FIELDS


async def update_own_profile(
    user_port: UserPort,
    account: UserAccountData,
    profile_changes: Mapping[str, Any],
) -> UserAccountData:
    unknown = set(profile_changes) - set(PROFILE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    if not profile_changes:
        return account

    try:
        for field_name, value in profile_changes.items():
            setattr(account, field_name, value)
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise
    return account
