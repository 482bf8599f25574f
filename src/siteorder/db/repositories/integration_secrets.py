"""
siteorder.db.repositories.integration_secrets

Repository for gateway credentials.

Responsibilities:
- Read plaintext secrets (`iv == "plain"`) for a provider/name pair.
- Upsert and delete secrets for super-admin management.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import IntegrationSecret

PLAIN_IV = "plain"


class IntegrationSecretRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, provider: str, name: str) -> IntegrationSecret | None:
        stmt = select(IntegrationSecret).where(
            IntegrationSecret.provider == provider, IntegrationSecret.name == name
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_plain(self, *, provider: str, name: str) -> str | None:
        """
        Return the trimmed plaintext value, or None when the row is missing,
        encrypted (iv other than "plain"), or blank.
        """

        row = await self.get(provider=provider, name=name)
        if row is None or row.iv != PLAIN_IV:
            return None
        value = (row.ciphertext or "").strip()
        return value or None

    async def upsert_plain(self, *, provider: str, name: str, value: str) -> IntegrationSecret:
        row = await self.get(provider=provider, name=name)
        if row is not None:
            row.ciphertext = value
            row.iv = PLAIN_IV
            row.updated_at = datetime.utcnow()
            await self._session.flush()
            return row

        row = IntegrationSecret(provider=provider, name=name, ciphertext=value, iv=PLAIN_IV)
        self._session.add(row)
        await self._session.flush()
        return row

    async def delete(self, *, provider: str, name: str) -> None:
        stmt = delete(IntegrationSecret).where(
            IntegrationSecret.provider == provider, IntegrationSecret.name == name
        )
        await self._session.execute(stmt)


# --- Module Notes -----------------------------------------------------------
# Encrypted storage is not implemented; rows with another iv are treated as absent.
