"""
siteorder.api.routers.packages

Public package catalog for the ordering page.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.api.deps import db_session
from siteorder.observability.logging import get_logger
from siteorder.services.packages import PackageCard, list_website_packages

log = get_logger(__name__)

router = APIRouter(prefix="/v1/packages", tags=["packages"])


class PackageCardResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    description: str | None = None
    price: float | None = None
    price_formatted: str
    highlights: list[str] = Field(default_factory=list)
    is_recommended: bool = False

    @classmethod
    def from_card(cls, card: PackageCard) -> PackageCardResponse:
        p = card.package
        return cls(
            id=p.id,
            name=p.name,
            type=p.type,
            description=p.description,
            price=p.price,
            price_formatted=card.price_formatted,
            highlights=card.highlights,
            is_recommended=bool(p.is_recommended),
        )


@router.get("/website", response_model=list[PackageCardResponse])
async def website_packages(session: AsyncSession = Depends(db_session)) -> list[Any]:
    # A failed read renders as "no packages" on the ordering page.
    try:
        cards = await list_website_packages(session)
    except SQLAlchemyError:
        log.exception("package_listing_failed")
        return []
    return [PackageCardResponse.from_card(c) for c in cards]
