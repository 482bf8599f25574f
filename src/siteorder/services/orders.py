"""
siteorder.services.orders

Order placement (transaction owner).

Responsibilities:
- Validate the package/duration selection and price the order.
- Create a pending order carrying the reference the chosen gateway will echo back.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Order, PaymentProvider
from siteorder.db.repositories.orders import OrderRepo
from siteorder.db.repositories.packages import PackageRepo
from siteorder.observability.logging import get_logger
from siteorder.services.packages import resolve_target_name

log = get_logger(__name__)

PAYMENT_CONFIRMATION_NOTE = "During 3DS verification, Midtrans may display the amount in IDR."


class OrderError(Exception):
    pass


class PackageNotFound(OrderError):
    pass


class IncompleteSelection(OrderError):
    pass


@dataclass(frozen=True, slots=True)
class OrderSelection:
    """
    Package + duration chosen on the ordering page. Picking a different
    package clears the duration so it has to be confirmed again.
    """

    package_id: uuid.UUID | None = None
    subscription_years: int | None = None

    def choose_package(self, package_id: uuid.UUID) -> OrderSelection:
        if package_id == self.package_id:
            return self
        return OrderSelection(package_id=package_id, subscription_years=None)

    def choose_years(self, years: int) -> OrderSelection:
        return replace(self, subscription_years=years)

    @property
    def is_complete(self) -> bool:
        return self.package_id is not None and bool(self.subscription_years)


def new_gateway_reference() -> str:
    return f"SO-{uuid.uuid4().hex[:20].upper()}"


class OrderService:
    def __init__(self, *, session: AsyncSession, max_years: int) -> None:
        self._session = session
        self._max_years = max_years
        self._orders = OrderRepo(session)
        self._packages = PackageRepo(session)

    async def place(
        self,
        *,
        user_id: str | None,
        selection: OrderSelection,
        provider: PaymentProvider,
        domain: str | None = None,
    ) -> Order:
        if not selection.is_complete:
            raise IncompleteSelection("Choose a package and a subscription duration")
        years = int(selection.subscription_years or 0)
        if not 1 <= years <= self._max_years:
            raise IncompleteSelection(f"subscription_years must be between 1 and {self._max_years}")

        package = await self._packages.get(selection.package_id)  # type: ignore[arg-type]
        if (
            package is None
            or not package.is_active
            or not package.show_on_public
            or resolve_target_name(package.name) is None
        ):
            raise PackageNotFound("Package not found")

        gross_amount = math.floor(float(package.price or 0) * years + 0.5)
        order = await self._orders.create(
            user_id=user_id,
            package_id=package.id,
            subscription_years=years,
            gross_amount=gross_amount,
            provider=provider,
            reference=new_gateway_reference(),
            domain=(domain or "").strip().lower() or None,
        )
        await self._session.commit()
        log.info(
            "order_placed",
            order_id=str(order.id),
            provider=provider.value,
            gross_amount=gross_amount,
            subscription_years=years,
        )
        return order
