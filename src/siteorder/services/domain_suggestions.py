"""
siteorder.services.domain_suggestions

Domain availability suggestions.

Responsibilities:
- Call the remote availability function with a free-text query.
- Normalise its items into `DomainSuggestion` values.
- Offer a debounced, cancellable lookup helper for interactive callers
  (search-as-you-type).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from siteorder.observability.logging import get_logger

log = get_logger(__name__)

DomainSuggestionStatus = Literal["available", "unavailable", "premium", "unknown"]

_STATUSES: frozenset[str] = frozenset({"available", "unavailable", "premium", "unknown"})

DEFAULT_ERROR = "Failed to fetch domain suggestions"


class DomainLookupError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class DomainSuggestion:
    domain: str
    status: DomainSuggestionStatus
    price_usd: float | None
    currency: str | None

    def as_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "status": self.status,
            "price_usd": self.price_usd,
            "currency": self.currency,
        }


def normalize_item(item: Any) -> DomainSuggestion:
    it = item if isinstance(item, dict) else {}
    domain = it.get("domain")
    status = it.get("status")
    price = it.get("price_usd")
    currency = it.get("currency")
    return DomainSuggestion(
        domain="" if domain is None else str(domain),
        status=status if status in _STATUSES else "unknown",
        # bool is an int subclass; it is not a price.
        price_usd=float(price)
        if isinstance(price, int | float) and not isinstance(price, bool)
        else None,
        currency=str(currency) if currency else None,
    )


def normalize_items(data: Any) -> list[DomainSuggestion]:
    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    return [normalize_item(it) for it in items]


class DomainSuggestionClient:
    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        url: str,
        api_key: str = "",
        timeout_s: float = 10.0,
    ) -> None:
        self._http = http
        self._url = url
        self._api_key = api_key
        self._timeout_s = timeout_s

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}", "apikey": self._api_key}

    async def lookup(self, query: str) -> list[DomainSuggestion]:
        q = (query or "").strip()
        if not q:
            return []
        try:
            r = await self._http.post(
                self._url,
                json={"query": q},
                headers=self._headers(),
                timeout=self._timeout_s,
            )
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("domain_lookup_failed", query=q, error=str(e))
            raise DomainLookupError(str(e) or DEFAULT_ERROR) from e
        return normalize_items(data)


@dataclass(slots=True)
class SuggestionState:
    loading: bool = False
    error: str | None = None
    items: list[DomainSuggestion] = field(default_factory=list)


class DebouncedSuggestions:
    """
    Debounced lookups: each `submit` replaces the pending one, and only the
    last query issued within `debounce` seconds reaches the client. State is
    readable at any time via `state`.
    """

    def __init__(self, client: DomainSuggestionClient, *, debounce: float = 0.45) -> None:
        self._client = client
        self._debounce = debounce
        self._task: asyncio.Task[None] | None = None
        self.state = SuggestionState()

    def submit(self, query: str) -> None:
        q = (query or "").strip()
        self._cancel()
        if not q:
            self.state = SuggestionState()
            return
        self._task = asyncio.get_running_loop().create_task(self._run(q))

    async def _run(self, query: str) -> None:
        await asyncio.sleep(self._debounce)
        self.state = SuggestionState(loading=True, error=None, items=self.state.items)
        try:
            items = await self._client.lookup(query)
        except Exception as e:
            # Nobody may await this task, so every failure lands in state.
            # Cancellation is a BaseException and still propagates.
            if not isinstance(e, DomainLookupError):
                log.exception("domain_suggestions_failed", query=query)
            self.state = SuggestionState(error=str(e) or DEFAULT_ERROR)
            return
        self.state = SuggestionState(items=items)

    async def wait(self) -> None:
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def close(self) -> None:
        self._cancel()
