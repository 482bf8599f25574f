"""
siteorder.api.routers.admin_integrations

Super-admin management of payment gateway credentials.

Responsibilities:
- `get`: report whether a credential is configured and when it changed.
- `set`: validate and store a credential.
- `clear`: remove a credential.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from siteorder.api.deps import db_session
from siteorder.api.errors import error_response, internal_error
from siteorder.auth.deps import require_super_admin
from siteorder.auth.models import Principal
from siteorder.services.integration_secrets import (
    DEFAULT_SECRET_NAMES,
    SecretAdminService,
    UnknownSecret,
)

router = APIRouter(prefix="/v1/admin/integrations", tags=["admin"])


class SecretAction(BaseModel):
    action: str
    name: str | None = None
    # `api_key` is what the settings page sends for Xendit; `value` covers other names.
    api_key: str | None = None
    value: str | None = None


@router.post("/{provider}")
async def manage_integration_secret(
    provider: str,
    body: SecretAction,
    principal: Principal = Depends(require_super_admin),
    session: AsyncSession = Depends(db_session),
) -> Any:
    if provider not in DEFAULT_SECRET_NAMES:
        return error_response(HTTP_404_NOT_FOUND, "Unknown provider")
    name = body.name or DEFAULT_SECRET_NAMES[provider]

    try:
        svc = SecretAdminService(session=session, provider=provider)
        if body.action == "get":
            return await svc.status(name)
        if body.action == "set":
            value = body.api_key if body.api_key is not None else body.value
            await svc.set(name, value, actor=principal.subject)
            return {"ok": True}
        if body.action == "clear":
            await svc.clear(name, actor=principal.subject)
            return {"ok": True}
        return error_response(HTTP_400_BAD_REQUEST, "Unknown action")
    except (UnknownSecret, ValueError) as e:
        # Validation messages are safe to echo back.
        return error_response(HTTP_400_BAD_REQUEST, str(e))
    except Exception as e:
        return internal_error(e, event="integration_secret_failed")
