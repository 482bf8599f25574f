from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_502_BAD_GATEWAY

from siteorder.api.deps import domain_suggestion_client
from siteorder.api.errors import error_response
from siteorder.services.domain_suggestions import DomainLookupError, DomainSuggestionClient

router = APIRouter(prefix="/v1/domains", tags=["domains"])


@router.get("/suggestions")
async def domain_suggestions(
    q: str = Query(default="", max_length=253),
    client: DomainSuggestionClient = Depends(domain_suggestion_client),
) -> Any:
    try:
        items = await client.lookup(q)
    except DomainLookupError as e:
        return error_response(HTTP_502_BAD_GATEWAY, str(e))
    return {"items": [it.as_dict() for it in items]}
