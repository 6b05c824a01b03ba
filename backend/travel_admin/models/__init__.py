from .base import Base
from .user_account import UserAccount
from .audit_log import AuditLog

__all__ = [
    "Base",
    "UserAccount",
    "AuditLog",
]
