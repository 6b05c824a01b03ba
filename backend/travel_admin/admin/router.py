"""
Admin user-management endpoints.

Per-target rules (who may change or delete whom) are decided by
``auth.policy`` inside the use cases. Endpoints without a target use the role
gates from ``admin.dependencies``.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth.policy import assignable_roles
from ..auth.rbac_contract import ROLE_RANK, Role, categories_for
from ..config import settings
from ..dependencies import (
    get_audit_port,
    get_current_user,
    get_identity_provider,
    get_user_port,
)
from ..domain.ports.audit import AuditPort
from ..domain.ports.identity import IdentityProviderPort
from ..domain.ports.user import UserAccountData, UserPort
from ..schemas.role import RoleCatalog, RoleRead, SyncResponse, SyncResults
from ..schemas.user import AdminUserUpdate, OkResponse, UserListResponse, UserRecordRead
from ..use_cases.accounts.sync_accounts import sync_accounts
from ..use_cases.admin.manage_users import delete_user, list_users, update_user
from .dependencies import require_privileged, require_super_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=UserListResponse)
async def get_users(
    user_port: UserPort = Depends(get_user_port),
    actor: UserAccountData = Depends(get_current_user),
) -> UserListResponse:
    accounts = await list_users(user_port, actor, limit=settings.user_list_limit)
    return UserListResponse(
        users=[UserRecordRead.from_account(account) for account in accounts]
    )


@router.patch("/users/{user_id}", response_model=OkResponse)
async def patch_user(
    user_id: str,
    payload: AdminUserUpdate,
    user_port: UserPort = Depends(get_user_port),
    audit: AuditPort = Depends(get_audit_port),
    actor: UserAccountData = Depends(get_current_user),
) -> OkResponse:
    await update_user(user_port, actor, user_id, payload.changes(), audit=audit)
    return OkResponse()


@router.delete("/users/{user_id}", response_model=OkResponse)
async def remove_user(
    user_id: str,
    user_port: UserPort = Depends(get_user_port),
    audit: AuditPort = Depends(get_audit_port),
    actor: UserAccountData = Depends(get_current_user),
) -> OkResponse:
    await delete_user(user_port, actor, user_id, audit=audit)
    return OkResponse()


@router.get("/roles", response_model=RoleCatalog)
async def get_roles(
    actor: UserAccountData = Depends(require_privileged),
) -> RoleCatalog:
    assignable = set(assignable_roles(actor.role))
    return RoleCatalog(
        roles=[
            RoleRead(
                name=role,
                rank=ROLE_RANK[role],
                categories=list(categories_for(role)),
                assignable=role in assignable,
            )
            for role in sorted(Role, key=ROLE_RANK.__getitem__, reverse=True)
        ]
    )


@router.post("/sync-users", response_model=SyncResponse)
async def sync_users(
    user_port: UserPort = Depends(get_user_port),
    identity_provider: IdentityProviderPort = Depends(get_identity_provider),
    _: UserAccountData = Depends(require_super_admin),
) -> SyncResponse:
    identities = await identity_provider.list_accounts()
    report = await sync_accounts(
        user_port, identities, super_admin_emails=settings.super_admin_emails
    )
    return SyncResponse(
        message="User sync completed",
        results=SyncResults(
            total=report.total,
            created=report.created,
            updated=report.updated,
            errors=report.errors,
            errors_list=report.errors_list,
        ),
    )
