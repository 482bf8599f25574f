"""
siteorder.auth.jwt

Bearer tokens for storefront users.

Responsibilities:
- Mint HS256 tokens for local checkout testing (`/v1/dev/token`) and tests.
- Turn a presented token into a `Principal` (user id + role claims).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from siteorder.auth.models import Principal
from siteorder.settings import Settings

_REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    roles: list[str],
    ttl: timedelta = timedelta(hours=1),
) -> str:
    issued = datetime.now(tz=UTC)
    return jwt.encode(
        {
            "iss": cfg.issuer,
            "aud": cfg.audience,
            "sub": subject,
            "roles": roles,
            "iat": int(issued.timestamp()),
            "exp": int((issued + ttl).timestamp()),
        },
        cfg.secret,
        algorithm=cfg.alg,
    )


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={"require": _REQUIRED_CLAIMS},
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


def principal_from_token(*, cfg: JwtConfig, token: str) -> Principal:
    """
    The `sub` claim is the user id shared by orders, profiles and
    user_packages; a blank one is rejected. A non-list `roles` claim counts
    as no roles.
    """

    claims = decode_and_validate(cfg=cfg, token=token)
    user_id = str(claims.get("sub") or "").strip()
    if not user_id:
        raise JwtValidationError("Token has no subject")
    roles = claims.get("roles")
    if not isinstance(roles, list):
        roles = []
    return Principal(subject=user_id, roles=frozenset(str(r) for r in roles))
