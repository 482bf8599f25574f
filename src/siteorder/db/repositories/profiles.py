from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Profile


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def mark_paid(self, user_id: str, *, now: datetime) -> Profile | None:
        # Profiles are created at sign-up; a missing row is left alone.
        profile = await self._session.get(Profile, user_id, with_for_update=True)
        if profile is None:
            return None
        profile.account_status = "active"
        profile.payment_active = True
        profile.updated_at = now
        await self._session.flush()
        return profile
