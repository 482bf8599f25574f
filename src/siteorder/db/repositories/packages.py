from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Package


class PackageRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_public(self) -> list[Package]:
        stmt = select(Package).where(Package.is_active.is_(True), Package.show_on_public.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, package_id: uuid.UUID) -> Package | None:
        return await self._session.get(Package, package_id)
