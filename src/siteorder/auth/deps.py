"""
siteorder.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Gate admin endpoints on the caller's role row (`user_roles`).
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from siteorder.api.deps import db_session, settings_dep
from siteorder.auth.jwt import JwtConfig, JwtValidationError, principal_from_token
from siteorder.auth.models import SUPER_ADMIN_ROLE, Principal
from siteorder.db.repositories.user_roles import UserRoleRepo
from siteorder.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        return principal_from_token(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized") from e


async def require_super_admin(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> Principal:
    # The role table is authoritative; token role claims are not trusted here.
    role = await UserRoleRepo(session).role_for(principal.subject)
    if role != SUPER_ADMIN_ROLE:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Forbidden")
    return principal


# --- Module Notes -----------------------------------------------------------
# Webhook endpoints are unauthenticated at this layer; they verify gateway
# signatures/tokens themselves (see `siteorder.payments`).
