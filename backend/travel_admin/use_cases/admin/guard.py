import logging
from typing import Any

from ...auth.policy import Decision, DenialReason
from ...errors import NotFoundError, PermissionError, PolicyDeniedError

logger = logging.getLogger("travel_admin.admin")


def raise_for_decision(
    decision: Decision,
    *,
    actor_id: str | None,
    target_id: str | None,
    operation: str,
) -> None:
    """Translate a policy denial into the matching ``AppError``."""
    if decision.allowed:
        return

    reason = decision.reason
    details: dict[str, Any] = {"reason": reason.value if reason else None}
    logger.warning(
        "policy_denied actor=%s target=%s operation=%s reason=%s",
        actor_id,
        target_id,
        operation,
        details["reason"],
    )

    if reason is DenialReason.FORBIDDEN:
        raise PermissionError(details=details)
    if reason is DenialReason.NOT_FOUND:
        raise NotFoundError(decision.message, details=details)
    raise PolicyDeniedError(decision.message, details=details)
