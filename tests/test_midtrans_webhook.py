"""
tests.test_midtrans_webhook

Midtrans notification endpoint: signature check, order status mapping and
subscription activation.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from siteorder.db.models import Order, OrderStatus, PaymentEnv, Profile, UserPackage
from siteorder.db.repositories.orders import OrderRepo
from siteorder.payments.midtrans import compute_signature

from .conftest import MIDTRANS_PRODUCTION_KEY, MIDTRANS_SANDBOX_KEY

URL = "/v1/webhooks/midtrans"


def notification(
    order_id: str,
    *,
    transaction_status: str = "settlement",
    server_key: str = MIDTRANS_PRODUCTION_KEY,
    status_code: str = "200",
    gross_amount: str = "1500000.00",
    **extra: Any,
) -> dict[str, Any]:
    body = {
        "order_id": order_id,
        "status_code": status_code,
        "gross_amount": gross_amount,
        "transaction_status": transaction_status,
        "fraud_status": "accept",
        "payment_type": "credit_card",
        "transaction_id": "trx-0001",
        "signature_key": compute_signature(
            order_id=order_id,
            status_code=status_code,
            gross_amount=gross_amount,
            server_key=server_key,
        ),
    }
    body.update(extra)
    return body


async def _order(sessionmaker, order_id) -> Order:
    async with sessionmaker() as s:
        return await s.get(Order, order_id)


async def _entitlements(sessionmaker, user_id: str) -> list[UserPackage]:
    async with sessionmaker() as s:
        stmt = select(UserPackage).where(UserPackage.user_id == user_id)
        return list((await s.execute(stmt)).scalars().all())


@pytest.mark.asyncio
async def test_settlement_marks_paid_and_activates_subscription(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    pkg = await seed.package()
    await seed.default_package(pkg)
    await seed.profile("user-1")
    order = await seed.order(user_id="user-1", years=2)

    r = await client.post(URL, json=notification(order.midtrans_order_id))
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    stored = await _order(sessionmaker, order.id)
    assert stored.status == OrderStatus.paid
    assert stored.payment_env == PaymentEnv.production
    assert stored.midtrans_transaction_status == "settlement"
    assert stored.midtrans_fraud_status == "accept"
    assert stored.midtrans_payment_type == "credit_card"
    assert stored.midtrans_transaction_id == "trx-0001"
    assert stored.paid_at is not None

    [up] = await _entitlements(sessionmaker, "user-1")
    assert up.package_id == pkg.id
    assert up.order_id == order.id
    assert up.duration_months == 24
    assert up.status == "active"
    assert up.activated_at == up.started_at
    assert up.expires_at.year == up.started_at.year + 2

    async with sessionmaker() as s:
        profile = await s.get(Profile, "user-1")
    assert profile.account_status == "active"
    assert profile.payment_active is True


@pytest.mark.asyncio
async def test_replayed_settlement_does_not_duplicate_entitlement(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    await seed.default_package(await seed.package())
    order = await seed.order(user_id="user-1", years=1)

    body = notification(order.midtrans_order_id, transaction_status="capture")
    for _ in range(2):
        r = await client.post(URL, json=body)
        assert r.status_code == 200

    assert len(await _entitlements(sessionmaker, "user-1")) == 1


@pytest.mark.asyncio
async def test_sandbox_signature_sets_sandbox_env(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    order = await seed.order(years=None)

    r = await client.post(
        URL, json=notification(order.midtrans_order_id, server_key=MIDTRANS_SANDBOX_KEY)
    )
    assert r.status_code == 200
    stored = await _order(sessionmaker, order.id)
    assert stored.payment_env == PaymentEnv.sandbox
    assert stored.status == OrderStatus.paid


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("transaction_status", "expected"),
    [
        ("deny", OrderStatus.failed),
        ("cancel", OrderStatus.failed),
        ("expire", OrderStatus.failed),
        ("pending", OrderStatus.pending),
        ("authorize", OrderStatus.pending),
    ],
)
async def test_non_paid_statuses(
    client: httpx.AsyncClient, seed, sessionmaker, transaction_status, expected
) -> None:
    await seed.midtrans_keys()
    await seed.default_package(await seed.package())
    order = await seed.order(user_id="user-1", years=1)

    r = await client.post(
        URL, json=notification(order.midtrans_order_id, transaction_status=transaction_status)
    )
    assert r.status_code == 200
    assert (await _order(sessionmaker, order.id)).status == expected
    assert await _entitlements(sessionmaker, "user-1") == []


@pytest.mark.asyncio
async def test_invalid_signature_is_rejected(client: httpx.AsyncClient, seed) -> None:
    await seed.midtrans_keys()
    order = await seed.order()

    r = await client.post(
        URL, json=notification(order.midtrans_order_id, server_key="Mid-server-someone-else")
    )
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid signature"}


@pytest.mark.asyncio
async def test_encrypted_or_missing_keys_cannot_verify(client: httpx.AsyncClient, seed) -> None:
    # Only iv="plain" rows are readable.
    await seed.secret("midtrans", "server_key_production", MIDTRANS_PRODUCTION_KEY, iv="aes-gcm")
    order = await seed.order()

    r = await client.post(URL, json=notification(order.midtrans_order_id))
    assert r.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["order_id", "status_code", "gross_amount", "signature_key"])
async def test_missing_signed_field_is_400(client: httpx.AsyncClient, missing: str) -> None:
    body = notification("SO-1")
    body[missing] = "   "
    r = await client.post(URL, json=body)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid payload"}


@pytest.mark.asyncio
async def test_non_object_body_is_400(client: httpx.AsyncClient) -> None:
    r = await client.post(URL, json=["not", "an", "object"])
    assert r.status_code == 400

    r = await client.post(URL, content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid payload"}


@pytest.mark.asyncio
async def test_numeric_fields_are_stringified(client: httpx.AsyncClient, seed, sessionmaker) -> None:
    await seed.midtrans_keys()
    order = await seed.order(years=None)
    body = notification(order.midtrans_order_id, status_code="200", gross_amount="1500000")
    body["status_code"] = 200
    body["gross_amount"] = 1500000

    r = await client.post(URL, json=body)
    assert r.status_code == 200
    assert (await _order(sessionmaker, order.id)).status == OrderStatus.paid


@pytest.mark.asyncio
async def test_unknown_order_is_acknowledged(client: httpx.AsyncClient, seed) -> None:
    await seed.midtrans_keys()
    r = await client.post(URL, json=notification("SO-DOES-NOT-EXIST"))
    assert r.status_code == 200
    assert r.json() == {"ok": True, "ignored": True}


@pytest.mark.asyncio
async def test_paid_without_default_package_skips_activation(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    order = await seed.order(user_id="user-1", years=1)

    r = await client.post(URL, json=notification(order.midtrans_order_id))
    assert r.status_code == 200
    assert (await _order(sessionmaker, order.id)).status == OrderStatus.paid
    assert await _entitlements(sessionmaker, "user-1") == []


@pytest.mark.asyncio
async def test_guest_order_is_paid_without_entitlement(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    await seed.default_package(await seed.package())
    order = await seed.order(user_id=None, years=1)

    r = await client.post(URL, json=notification(order.midtrans_order_id))
    assert r.status_code == 200
    assert (await _order(sessionmaker, order.id)).status == OrderStatus.paid
    async with sessionmaker() as s:
        assert (await s.execute(select(UserPackage))).scalars().all() == []


@pytest.mark.asyncio
async def test_settlement_after_pending_keeps_single_entitlement(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    await seed.default_package(await seed.package())
    order = await seed.order(user_id="user-1", years=1)

    for transaction_status in ("settlement", "pending", "settlement"):
        r = await client.post(
            URL, json=notification(order.midtrans_order_id, transaction_status=transaction_status)
        )
        assert r.status_code == 200, (transaction_status, r.json())

    stored = await _order(sessionmaker, order.id)
    assert stored.status == OrderStatus.paid
    assert stored.midtrans_transaction_status == "settlement"
    [up] = await _entitlements(sessionmaker, "user-1")
    assert up.order_id == order.id


@pytest.mark.asyncio
async def test_repaid_order_keeps_first_paid_at(
    client: httpx.AsyncClient, seed, sessionmaker
) -> None:
    await seed.midtrans_keys()
    order = await seed.order(user_id="user-1", years=1)

    await client.post(URL, json=notification(order.midtrans_order_id))
    first_paid_at = (await _order(sessionmaker, order.id)).paid_at
    await client.post(URL, json=notification(order.midtrans_order_id, transaction_status="expire"))
    assert (await _order(sessionmaker, order.id)).status == OrderStatus.failed

    await client.post(URL, json=notification(order.midtrans_order_id, transaction_status="capture"))
    stored = await _order(sessionmaker, order.id)
    assert stored.status == OrderStatus.paid
    assert stored.paid_at == first_paid_at


@pytest.mark.asyncio
async def test_database_error_body_omits_statement(
    client: httpx.AsyncClient, seed, monkeypatch
) -> None:
    await seed.midtrans_keys()
    order = await seed.order(user_id="user-1", years=1)

    async def failing_lookup(self, midtrans_order_id: str) -> Order:
        raise IntegrityError(
            "INSERT INTO user_packages (user_id) VALUES (?)",
            ("user-1",),
            Exception("UNIQUE constraint failed: user_packages.order_id"),
        )

    monkeypatch.setattr(OrderRepo, "get_by_midtrans_order_id", failing_lookup)

    r = await client.post(URL, json=notification(order.midtrans_order_id))
    assert r.status_code == 500
    assert r.json() == {"error": "UNIQUE constraint failed: user_packages.order_id"}
