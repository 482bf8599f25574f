"""
tests.conftest

Shared fixtures: a test-mode app on a throwaway sqlite file, an in-process
HTTP client, and helpers to seed rows and mint bearer tokens.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteorder.api.app import create_app
from siteorder.auth.jwt import JwtConfig, issue_token
from siteorder.db.models import (
    DomainPricingSettings,
    IntegrationSecret,
    Order,
    OrderStatus,
    Package,
    PaymentProvider,
    Profile,
    UserRole,
)
from siteorder.settings import Settings

MIDTRANS_PRODUCTION_KEY = "Mid-server-production-0001"
MIDTRANS_SANDBOX_KEY = "SB-Mid-server-sandbox-0001"
XENDIT_CALLBACK_TOKEN = "xendit-callback-token-0001"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'siteorder-test.db'}",
        domain_check_url="http://domains.test/functions/v1/domainr-check",
        jwt_secret="test-secret",
    )


@pytest.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not run lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def sessionmaker(app: FastAPI) -> async_sessionmaker[AsyncSession]:
    return app.state.sessionmaker


@pytest.fixture
def auth_headers(settings: Settings):
    def make(subject: str, roles: list[str] | None = None) -> dict[str, str]:
        token = issue_token(
            cfg=JwtConfig.from_settings(settings),
            subject=subject,
            roles=roles or [],
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}"}

    return make


class Seed:
    """Row factories; each call commits in its own session."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def _add(self, obj: Any) -> Any:
        async with self._sessionmaker() as session:
            session.add(obj)
            await session.commit()
        return obj

    async def package(self, name: str = "Website Only", **kw: Any) -> Package:
        kw.setdefault("type", "website")
        kw.setdefault("price", 1_500_000)
        kw.setdefault("is_active", True)
        kw.setdefault("show_on_public", True)
        return await self._add(Package(name=name, **kw))

    async def default_package(self, package: Package) -> DomainPricingSettings:
        return await self._add(DomainPricingSettings(id=True, default_package_id=package.id))

    async def profile(self, user_id: str) -> Profile:
        return await self._add(Profile(id=user_id, account_status="pending", payment_active=False))

    async def role(self, user_id: str, role: str) -> UserRole:
        return await self._add(UserRole(user_id=user_id, role=role))

    async def secret(self, provider: str, name: str, value: str, iv: str = "plain") -> IntegrationSecret:
        return await self._add(IntegrationSecret(provider=provider, name=name, ciphertext=value, iv=iv))

    async def midtrans_keys(self) -> None:
        await self.secret("midtrans", "server_key_production", MIDTRANS_PRODUCTION_KEY)
        await self.secret("midtrans", "server_key_sandbox", MIDTRANS_SANDBOX_KEY)

    async def order(
        self,
        *,
        user_id: str | None = "user-1",
        years: int | None = 1,
        provider: PaymentProvider = PaymentProvider.midtrans,
        reference: str | None = None,
        status: OrderStatus = OrderStatus.pending,
        package_id: uuid.UUID | None = None,
    ) -> Order:
        reference = reference or f"SO-{uuid.uuid4().hex[:12].upper()}"
        order = Order(
            user_id=user_id,
            subscription_years=years,
            gross_amount=1_500_000,
            currency="IDR",
            status=status,
            payment_provider=provider,
            package_id=package_id,
        )
        if provider == PaymentProvider.midtrans:
            order.midtrans_order_id = reference
        else:
            order.xendit_external_id = reference
        return await self._add(order)


@pytest.fixture
def seed(sessionmaker: async_sessionmaker[AsyncSession]) -> Seed:
    return Seed(sessionmaker)
