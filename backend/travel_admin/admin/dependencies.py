"""Role gates for admin endpoints that have no per-target policy check."""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, HTTPException, Request, status

from ..auth.rbac_contract import Role
from ..dependencies import get_current_user
from ..domain.ports.user import UserAccountData

logger = logging.getLogger("travel_admin.admin")


def require_roles(*roles: Role) -> Callable:
    """
    Build a dependency that admits only accounts holding one of ``roles``.

    Returns the acting account so handlers can use it directly.
    """
    allowed = frozenset(roles)

    async def dependency(
        request: Request,
        user: UserAccountData = Depends(get_current_user),
    ) -> UserAccountData:
        if user.role not in {role.value for role in allowed}:
            logger.warning(
                "policy_denied actor=%s path=%s role=%s reason=Forbidden",
                user.id,
                request.url.path,
                user.role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden"
            )
        return user

    return dependency


require_privileged = require_roles(Role.SUPER_ADMIN, Role.ADMIN)
require_super_admin = require_roles(Role.SUPER_ADMIN)
