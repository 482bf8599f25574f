"""
siteorder.api.routers.orders

Order placement and status for signed-in customers.

Responsibilities:
- Place a pending order for a package + duration with a chosen gateway.
- Expose order status (polled by the checkout page after payment).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from siteorder.api.deps import db_session, settings_dep
from siteorder.auth.deps import get_principal
from siteorder.auth.models import Principal
from siteorder.db.models import Order, PaymentProvider
from siteorder.db.repositories.orders import OrderRepo
from siteorder.services.orders import (
    PAYMENT_CONFIRMATION_NOTE,
    IncompleteSelection,
    OrderSelection,
    OrderService,
    PackageNotFound,
)
from siteorder.services.packages import format_idr
from siteorder.settings import Settings

router = APIRouter(prefix="/v1/orders", tags=["orders"])


class PlaceOrderRequest(BaseModel):
    package_id: uuid.UUID
    subscription_years: int | None = Field(default=None, ge=1)
    domain: str | None = Field(default=None, max_length=253)
    provider: PaymentProvider = PaymentProvider.midtrans


class PaymentConfirmation(BaseModel):
    amount_formatted: str
    note: str


class OrderResponse(BaseModel):
    id: uuid.UUID
    status: str
    package_id: uuid.UUID | None
    domain: str | None
    subscription_years: int | None
    gross_amount: int
    currency: str
    amount_formatted: str
    payment_provider: str | None
    payment_env: str | None
    gateway_reference: str | None
    paid_at: datetime | None
    payment_confirmation: PaymentConfirmation

    @classmethod
    def from_order(cls, order: Order) -> OrderResponse:
        amount = format_idr(order.gross_amount)
        return cls(
            id=order.id,
            status=order.status.value,
            package_id=order.package_id,
            domain=order.domain,
            subscription_years=order.subscription_years,
            gross_amount=order.gross_amount,
            currency=order.currency,
            amount_formatted=amount,
            payment_provider=order.payment_provider.value if order.payment_provider else None,
            payment_env=order.payment_env.value if order.payment_env else None,
            gateway_reference=order.midtrans_order_id or order.xendit_external_id,
            paid_at=order.paid_at,
            payment_confirmation=PaymentConfirmation(
                amount_formatted=amount, note=PAYMENT_CONFIRMATION_NOTE
            ),
        )


@router.post("", response_model=OrderResponse, status_code=201)
async def place_order(
    body: PlaceOrderRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> OrderResponse:
    selection = OrderSelection().choose_package(body.package_id)
    if body.subscription_years is not None:
        selection = selection.choose_years(body.subscription_years)

    svc = OrderService(session=session, max_years=settings.max_subscription_years)
    try:
        order = await svc.place(
            user_id=principal.subject,
            selection=selection,
            provider=body.provider,
            domain=body.domain,
        )
    except PackageNotFound as e:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=str(e)) from e
    except IncompleteSelection as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return OrderResponse.from_order(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> OrderResponse:
    order = await OrderRepo(session).get(order_id)
    if order is None or (order.user_id != principal.subject and not principal.is_admin):
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Order not found")
    return OrderResponse.from_order(order)
