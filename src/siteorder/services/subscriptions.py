"""
siteorder.services.subscriptions

Subscription activation after a confirmed payment.

Responsibilities:
- Grant the default package as a `user_packages` entitlement for the paid duration.
- Flip the user's profile to active/paid.
"""

from __future__ import annotations

import calendar
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Order, UserPackage
from siteorder.db.repositories.pricing import PricingSettingsRepo
from siteorder.db.repositories.profiles import ProfileRepo
from siteorder.db.repositories.user_packages import UserPackageRepo
from siteorder.observability.logging import get_logger

log = get_logger(__name__)


def add_months(value: datetime, months: int) -> datetime:
    """
    Calendar month arithmetic; the day is clamped to the target month's
    length (Feb 29 + 12 months -> Feb 28).
    """

    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class SubscriptionService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._pricing = PricingSettingsRepo(session)
        self._profiles = ProfileRepo(session)
        self._user_packages = UserPackageRepo(session)

    async def activate_for_order(self, order: Order, *, now: datetime) -> UserPackage | None:
        """
        Returns the order's entitlement, or None when the order does not
        qualify (guest order, no duration, no default package configured).
        An order that already holds an entitlement gets it back unchanged.
        The caller commits.
        """

        years = int(order.subscription_years or 0)
        if not order.user_id or years <= 0:
            return None

        existing = await self._user_packages.get_by_order_id(order.id)
        if existing is not None:
            log.info("subscription_already_active", order_id=str(order.id))
            return existing

        package_id = await self._pricing.default_package_id()
        if package_id is None:
            log.warning("subscription_skipped_no_default_package", order_id=str(order.id))
            return None

        duration_months = years * 12
        entitlement = await self._user_packages.add(
            user_id=order.user_id,
            package_id=package_id,
            order_id=order.id,
            duration_months=duration_months,
            started_at=now,
            expires_at=add_months(now, duration_months),
        )
        await self._profiles.mark_paid(order.user_id, now=now)

        log.info(
            "subscription_activated",
            order_id=str(order.id),
            user_id=order.user_id,
            duration_months=duration_months,
        )
        return entitlement
