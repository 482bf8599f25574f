from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import UserPackage


class UserPackageRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        user_id: str,
        package_id: uuid.UUID,
        order_id: uuid.UUID | None,
        duration_months: int,
        started_at: datetime,
        expires_at: datetime,
    ) -> UserPackage:
        up = UserPackage(
            user_id=user_id,
            package_id=package_id,
            order_id=order_id,
            duration_months=duration_months,
            started_at=started_at,
            activated_at=started_at,
            expires_at=expires_at,
            status="active",
        )
        self._session.add(up)
        await self._session.flush()
        return up

    async def get_by_order_id(self, order_id: uuid.UUID) -> UserPackage | None:
        res = await self._session.execute(
            select(UserPackage).where(UserPackage.order_id == order_id)
        )
        return res.scalar_one_or_none()
