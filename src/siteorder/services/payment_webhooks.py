"""
siteorder.services.payment_webhooks

Gateway notification reconciliation (transaction owner).

Responsibilities:
- Authenticate Midtrans notifications (signature) and Xendit callbacks (token).
- Apply the gateway's status onto the matching order.
- Activate the subscription when an order becomes paid.

Unknown orders are acknowledged as ignored so gateways stop retrying.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from siteorder.db.models import Order, OrderStatus, PaymentEnv, PaymentProvider
from siteorder.db.repositories.integration_secrets import IntegrationSecretRepo
from siteorder.db.repositories.orders import OrderRepo
from siteorder.observability.logging import get_logger
from siteorder.payments import midtrans, xendit
from siteorder.services.subscriptions import SubscriptionService

log = get_logger(__name__)


class WebhookAuthError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class WebhookResult:
    ignored: bool = False

    def as_body(self) -> dict[str, bool]:
        return {"ok": True, "ignored": True} if self.ignored else {"ok": True}


class PaymentWebhookService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._orders = OrderRepo(session)
        self._secrets = IntegrationSecretRepo(session)
        self._subscriptions = SubscriptionService(session)

    async def handle_midtrans(self, notification: midtrans.MidtransNotification) -> WebhookResult:
        server_keys = {
            env: await self._secrets.get_plain(provider=midtrans.PROVIDER, name=name)
            for env, name in midtrans.SERVER_KEY_NAMES.items()
        }
        env = midtrans.match_environment(notification, server_keys)
        if env is None:
            log.warning("midtrans_signature_rejected", midtrans_order_id=notification.order_id)
            raise WebhookAuthError("Invalid signature")

        order = await self._orders.get_by_midtrans_order_id(notification.order_id)
        if order is None:
            log.info("midtrans_order_unknown", midtrans_order_id=notification.order_id)
            return WebhookResult(ignored=True)

        new_status = notification.order_status
        await self._orders.update(
            order,
            payment_provider=PaymentProvider.midtrans,
            payment_env=env,
            midtrans_transaction_status=notification.transaction_status,
            midtrans_fraud_status=notification.fraud_status,
            midtrans_payment_type=notification.payment_type,
            midtrans_transaction_id=notification.transaction_id,
            status=new_status,
        )
        await self._finish(order)
        log.info(
            "midtrans_notification_applied",
            order_id=str(order.id),
            payment_env=env.value,
            transaction_status=notification.transaction_status,
            status=new_status.value,
        )
        return WebhookResult()

    async def handle_xendit(
        self, callback: xendit.XenditInvoiceCallback, *, callback_token: str | None
    ) -> WebhookResult:
        expected = await self._secrets.get_plain(
            provider=xendit.PROVIDER, name=xendit.CALLBACK_TOKEN_NAME
        )
        if not xendit.verify_callback_token(callback_token, expected):
            log.warning("xendit_callback_token_rejected", external_id=callback.external_id)
            raise WebhookAuthError("Invalid callback token")

        order = await self._orders.get_by_xendit_external_id(callback.external_id)
        if order is None:
            log.info("xendit_order_unknown", external_id=callback.external_id)
            return WebhookResult(ignored=True)

        api_key = await self._secrets.get_plain(provider=xendit.PROVIDER, name=xendit.API_KEY_NAME)
        env: PaymentEnv | None = xendit.environment_for_api_key(api_key) or order.payment_env

        new_status = callback.order_status
        await self._orders.update(
            order,
            payment_provider=PaymentProvider.xendit,
            payment_env=env,
            xendit_invoice_id=callback.invoice_id or order.xendit_invoice_id,
            xendit_status=callback.status,
            xendit_payment_method=callback.payment_method,
            status=new_status,
        )
        await self._finish(order)
        log.info(
            "xendit_callback_applied",
            order_id=str(order.id),
            xendit_status=callback.status,
            status=new_status.value,
        )
        return WebhookResult()

    async def _finish(self, order: Order) -> None:
        # An order can leave paid and come back (pending/refund, out-of-order
        # delivery); the entitlement is keyed on the order, not on the transition.
        if order.status == OrderStatus.paid:
            now = datetime.utcnow()
            if order.paid_at is None:
                await self._orders.update(order, paid_at=now)
            await self._subscriptions.activate_for_order(order, now=now)
        await self._session.commit()


# --- Module Notes -----------------------------------------------------------
# A paid order that later receives a failure status keeps its entitlement and
# its first `paid_at`; refunds/chargebacks are handled outside this service.
