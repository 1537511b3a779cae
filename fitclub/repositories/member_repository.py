from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fitclub.models.member import Member


class MemberRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, member_id: int) -> Optional[Member]:
        result = await self.db.execute(select(Member).where(Member.id == member_id))
        return result.scalar_one_or_none()

    async def get_by_auth_id(self, auth_id: str) -> Optional[Member]:
        """Участник по sub из токена хостинга авторизации."""
        result = await self.db.execute(select(Member).where(Member.auth_id == auth_id))
        return result.scalar_one_or_none()
