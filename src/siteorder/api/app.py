"""
siteorder.api.app

FastAPI app factory for the ordering & payments service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine, HTTP client).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from siteorder import __version__
from siteorder.api.errors import install_error_handlers
from siteorder.api.routers.admin_integrations import router as admin_integrations_router
from siteorder.api.routers.dev_auth import router as dev_auth_router
from siteorder.api.routers.domains import router as domains_router
from siteorder.api.routers.health import router as health_router
from siteorder.api.routers.orders import router as orders_router
from siteorder.api.routers.packages import router as packages_router
from siteorder.api.routers.webhooks import router as webhooks_router
from siteorder.db.init_db import init_db
from siteorder.db.session import create_engine, create_sessionmaker
from siteorder.observability.logging import configure_logging, get_logger
from siteorder.observability.middleware import RequestContextMiddleware
from siteorder.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.http = httpx.AsyncClient()
        if settings.env in ("dev", "test"):
            # Prod schema is managed by Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await app.state.http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Website Ordering & Payments",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "content-type", "x-client-info", "apikey", "x-request-id"],
    )
    install_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(packages_router)
    app.include_router(domains_router)
    app.include_router(orders_router)
    app.include_router(webhooks_router)
    app.include_router(admin_integrations_router)
    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic stays in routers/services.
