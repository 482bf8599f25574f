from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from siteorder.db.repositories.packages import PackageRepo
from siteorder.services.packages import (
    feature_snippet,
    format_idr,
    resolve_target_name,
    target_rank,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "Rp 0"),
        (None, "Rp 0"),
        (999, "Rp 999"),
        (1500000, "Rp 1.500.000"),
        (1234567.5, "Rp 1.234.568"),
        (2500.49, "Rp 2.500"),
    ],
)
def test_format_idr(value, expected) -> None:
    assert format_idr(value) == expected


def test_feature_snippet_keeps_first_three_strings() -> None:
    assert feature_snippet([" SEO ", "", 3, "Hosting", None, "SSL", "Email"]) == [
        "SEO",
        "Hosting",
        "SSL",
    ]
    assert feature_snippet("SEO, Hosting") == []
    assert feature_snippet(None) == []


def test_target_names_match_case_and_whitespace_insensitively() -> None:
    assert resolve_target_name("  website only ") == "Website Only"
    assert resolve_target_name("WEBSITE + FULL DIGITAL MARKETING") == (
        "Website + Full Digital Marketing"
    )
    assert resolve_target_name("Website Pro") is None
    assert target_rank("Website + Content Growth") == 1
    assert target_rank("Website Pro") == float("inf")


@pytest.mark.asyncio
async def test_website_packages_are_filtered_and_ordered(client: httpx.AsyncClient, seed) -> None:
    await seed.package("Website + Full Digital Marketing", price=5_000_000)
    await seed.package(
        "website only",
        price=1_500_000,
        description="A fast landing site",
        features=["Responsive", "SSL", "", "Hosting", "Email"],
        is_recommended=True,
    )
    await seed.package("Website + Content Growth", price=3_000_000, show_on_public=False)
    await seed.package("Website + Content Growth", price=3_250_000)
    await seed.package("Website + Content Growth", price=2_000_000, is_active=False)
    await seed.package("Logo Design", price=500_000)

    r = await client.get("/v1/packages/website")
    assert r.status_code == 200
    cards = r.json()
    assert [c["name"] for c in cards] == [
        "website only",
        "Website + Content Growth",
        "Website + Full Digital Marketing",
    ]
    first = cards[0]
    assert first["price_formatted"] == "Rp 1.500.000"
    assert first["highlights"] == ["Responsive", "SSL", "Hosting"]
    assert first["is_recommended"] is True
    assert first["description"] == "A fast landing site"
    assert cards[1]["price_formatted"] == "Rp 3.250.000"
    assert cards[2]["highlights"] == []


@pytest.mark.asyncio
async def test_no_packages_yields_empty_list(client: httpx.AsyncClient) -> None:
    r = await client.get("/v1/packages/website")
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_failed_package_read_yields_empty_list(
    client: httpx.AsyncClient, seed, monkeypatch
) -> None:
    await seed.package("Website Only")

    async def broken_list_public(self) -> list:
        raise OperationalError("SELECT packages", {}, Exception("database is locked"))

    monkeypatch.setattr(PackageRepo, "list_public", broken_list_public)

    r = await client.get("/v1/packages/website")
    assert r.status_code == 200
    assert r.json() == []
