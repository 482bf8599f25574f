"""
siteorder.services.integration_secrets

Super-admin management of gateway credentials.

Responsibilities:
- Report whether a credential is configured (never its value).
- Validate and store credentials as plaintext rows (iv="plain").
- Clear credentials.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import PaymentEnv
from siteorder.db.repositories.integration_secrets import IntegrationSecretRepo
from siteorder.observability.logging import get_logger
from siteorder.payments import midtrans, xendit

log = get_logger(__name__)

Validator = Callable[[Any], str]

# provider -> secret name -> validator
SECRET_VALIDATORS: dict[str, dict[str, Validator]] = {
    xendit.PROVIDER: {
        xendit.API_KEY_NAME: xendit.validate_secret_key,
        xendit.CALLBACK_TOKEN_NAME: xendit.validate_callback_token,
    },
    midtrans.PROVIDER: {
        name: (lambda v, _env=env: midtrans.validate_server_key(v, env=_env))
        for env, name in midtrans.SERVER_KEY_NAMES.items()
    },
}

DEFAULT_SECRET_NAMES = {
    xendit.PROVIDER: xendit.API_KEY_NAME,
    midtrans.PROVIDER: midtrans.SERVER_KEY_NAMES[PaymentEnv.sandbox],
}


class UnknownSecret(ValueError):
    pass


class SecretAdminService:
    def __init__(self, *, session: AsyncSession, provider: str) -> None:
        if provider not in SECRET_VALIDATORS:
            raise UnknownSecret(f"Unknown provider: {provider}")
        self._session = session
        self._provider = provider
        self._repo = IntegrationSecretRepo(session)

    def _validator(self, name: str) -> Validator:
        try:
            return SECRET_VALIDATORS[self._provider][name]
        except KeyError:
            raise UnknownSecret(f"Unknown secret name: {name}") from None

    async def status(self, name: str) -> dict[str, Any]:
        self._validator(name)
        row = await self._repo.get(provider=self._provider, name=name)
        updated_at: datetime | None = row.updated_at if row is not None else None
        return {
            "configured": row is not None,
            "updated_at": updated_at.isoformat() if updated_at else None,
        }

    async def set(self, name: str, value: Any, *, actor: str) -> None:
        # Validators raise ValueError with a user-facing message.
        clean = self._validator(name)(value)
        await self._repo.upsert_plain(provider=self._provider, name=name, value=clean)
        await self._session.commit()
        log.info("integration_secret_set", provider=self._provider, name=name, actor=actor)

    async def clear(self, name: str, *, actor: str) -> None:
        self._validator(name)
        await self._repo.delete(provider=self._provider, name=name)
        await self._session.commit()
        log.info("integration_secret_cleared", provider=self._provider, name=name, actor=actor)
