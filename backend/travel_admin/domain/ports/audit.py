from __future__ import annotations

from typing import Any, Protocol


class AuditPort(Protocol):
    async def log_user_update(
        self,
        actor_id: str,
        user_id: str,
        before: dict[str, Any],
        after: dict[str, Any],
    ) -> None:
        ...

    async def log_user_delete(
        self, actor_id: str, user_id: str, before: dict[str, Any]
    ) -> None:
        ...

    async def log_policy_denied(
        self,
        actor_id: str | None,
        user_id: str,
        operation: str,
        reason: str,
    ) -> None:
        ...
