"""
siteorder.services.packages

Website package catalog shown on the ordering page.

Responsibilities:
- Select the public website packages by their well-known names, in display order.
- Derive display fields (IDR price text, feature highlights).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Package
from siteorder.db.repositories.packages import PackageRepo

TARGET_NAMES: tuple[str, ...] = (
    "Website Only",
    "Website + Content Growth",
    "Website + Full Digital Marketing",
)

MAX_HIGHLIGHTS = 3


def format_idr(value: float | int | None) -> str:
    # id-ID grouping: "." as thousands separator, no decimals; halves round up.
    rounded = math.floor(float(value or 0) + 0.5)
    return "Rp " + f"{rounded:,}".replace(",", ".")


def normalize_name(name: str) -> str:
    return name.strip().lower()


def resolve_target_name(name: str | None) -> str | None:
    if not name:
        return None
    n = normalize_name(name)
    return next((t for t in TARGET_NAMES if normalize_name(t) == n), None)


def target_rank(name: str | None) -> float:
    target = resolve_target_name(name)
    return math.inf if target is None else TARGET_NAMES.index(target)


def feature_snippet(features: Any) -> list[str]:
    if not isinstance(features, list):
        return []
    items = [x.strip() if isinstance(x, str) else "" for x in features]
    return [x for x in items if x][:MAX_HIGHLIGHTS]


@dataclass(frozen=True, slots=True)
class PackageCard:
    package: Package
    price_formatted: str
    highlights: list[str]


def build_card(package: Package) -> PackageCard:
    return PackageCard(
        package=package,
        price_formatted=format_idr(package.price),
        highlights=feature_snippet(package.features),
    )


async def list_website_packages(session: AsyncSession) -> list[PackageCard]:
    rows = await PackageRepo(session).list_public()
    selected = sorted(
        (p for p in rows if resolve_target_name(p.name) is not None),
        key=lambda p: target_rank(p.name),
    )
    return [build_card(p) for p in selected]
