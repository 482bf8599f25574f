"""
siteorder.db.repositories.orders

Repository for `Order` entities.

Responsibilities:
- Create orders with a gateway reference.
- Look orders up by the reference a gateway echoes back in its notification.
- Lock order rows for webhook reconciliation.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Order, OrderStatus, PaymentProvider


class OrderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: str | None,
        package_id: uuid.UUID,
        subscription_years: int,
        gross_amount: int,
        provider: PaymentProvider,
        reference: str,
        domain: str | None = None,
    ) -> Order:
        order = Order(
            user_id=user_id,
            package_id=package_id,
            subscription_years=subscription_years,
            gross_amount=gross_amount,
            currency="IDR",
            domain=domain,
            status=OrderStatus.pending,
            payment_provider=provider,
        )
        if provider == PaymentProvider.midtrans:
            order.midtrans_order_id = reference
        else:
            order.xendit_external_id = reference
        self._session.add(order)
        await self._session.flush()
        return order

    async def get(self, order_id: uuid.UUID) -> Order | None:
        return await self._session.get(Order, order_id)

    async def get_by_midtrans_order_id(self, midtrans_order_id: str) -> Order | None:
        # Row lock: concurrent notifications for one order are applied one at a time.
        stmt = (
            select(Order)
            .where(Order.midtrans_order_id == midtrans_order_id)
            .with_for_update()
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_xendit_external_id(self, external_id: str) -> Order | None:
        stmt = select(Order).where(Order.xendit_external_id == external_id).with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def update(self, order: Order, **fields: Any) -> Order:
        for name, value in fields.items():
            setattr(order, name, value)
        await self._session.flush()
        return order
