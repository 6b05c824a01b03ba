from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.user import UserPort
from ..models.user_account import UserAccount


class UserAccountRepository(UserPort):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: str) -> UserAccount | None:
        return await self.session.get(UserAccount, user_id)

    async def list_recent(self, limit: int) -> list[UserAccount]:
        result = await self.session.execute(
            select(UserAccount).order_by(UserAccount.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, **fields: Any) -> UserAccount:
        account = UserAccount(**fields)
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def delete(self, account: UserAccount) -> None:
        await self.session.delete(account)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
