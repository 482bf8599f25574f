from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import DomainPricingSettings


class PricingSettingsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def default_package_id(self) -> uuid.UUID | None:
        row = await self._session.get(DomainPricingSettings, True)
        return row.default_package_id if row is not None else None
