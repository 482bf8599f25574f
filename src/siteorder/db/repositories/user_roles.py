from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import UserRole


class UserRoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def role_for(self, user_id: str) -> str | None:
        stmt = select(UserRole.role).where(UserRole.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()
