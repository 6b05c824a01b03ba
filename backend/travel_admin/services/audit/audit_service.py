import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ...crud.audit_log import AuditLogRepository

logger = logging.getLogger("travel_admin.audit")


class AuditService:
    """Records admin actions on user accounts.

    Entries for successful changes are flushed into the caller's session and
    commit together with the change they describe. Denials are committed on
    their own because no change follows them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_repo = AuditLogRepository(session)

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        actor_id: str | None = None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        reason: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ):
        return await self.audit_repo.create(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            before=before,
            after=after,
            reason=reason,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def log_user_update(
        self,
        actor_id: str,
        user_id: str,
        before: dict[str, Any],
        after: dict[str, Any],
    ) -> None:
        await self.log(
            action="user.update",
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            before=before,
            after=after,
        )

    async def log_user_delete(
        self, actor_id: str, user_id: str, before: dict[str, Any]
    ) -> None:
        await self.log(
            action="user.delete",
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            before=before,
            after=None,
        )

    async def log_policy_denied(
        self,
        actor_id: str | None,
        user_id: str,
        operation: str,
        reason: str,
    ) -> None:
        """Best-effort: a failed audit write must not change the denial response."""
        try:
            await self.log(
                action="permission_denied",
                entity_type="user",
                entity_id=user_id,
                actor_id=actor_id,
                after={"operation": operation},
                reason=reason,
            )
            await self.session.commit()
        except Exception:
            logger.exception(
                "Failed to record policy denial actor=%s target=%s reason=%s",
                actor_id,
                user_id,
                reason,
            )
            await self.session.rollback()
