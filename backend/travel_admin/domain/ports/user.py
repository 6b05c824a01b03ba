from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence


class UserAccountData(Protocol):
    id: str
    email: str
    role: str
    category: str
    first_name: str
    last_name: str
    gender: str
    date_of_birth: str
    mobile: str
    avatar: str
    is_active: bool
    email_verified: bool
    created_at: datetime
    last_login_at: datetime
    permissions: list[str]
    assigned_by: str


class UserPort(Protocol):
    async def get_by_id(self, user_id: str) -> UserAccountData | None:
        ...

    async def list_recent(self, limit: int) -> Sequence[UserAccountData]:
        ...

    async def create(self, **fields: Any) -> UserAccountData:
        ...

    async def delete(self, account: UserAccountData) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
