"""
siteorder.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and outbound clients.
- Encapsulate app.state access patterns (engine/sessionmaker/http client).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteorder.services.domain_suggestions import DomainSuggestionClient
from siteorder.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # Set by `create_app`; falls back to env-driven settings outside the app.
    return getattr(request.app.state, "settings", None) or get_settings()


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created on app startup in `siteorder.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit is owned by the service layer.
    async with session_factory() as session:
        yield session


def http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http  # type: ignore[attr-defined]


def domain_suggestion_client(
    http: httpx.AsyncClient = Depends(http_client),
    settings: Settings = Depends(settings_dep),
) -> DomainSuggestionClient:
    return DomainSuggestionClient(
        http=http,
        url=settings.domain_check_url,
        api_key=settings.domain_check_api_key,
        timeout_s=settings.domain_check_timeout_s,
    )
