"""
siteorder.api.routers.webhooks

Inbound payment gateway notifications.

Responsibilities:
- Parse gateway payloads (400 on malformed input).
- Delegate verification + reconciliation to `PaymentWebhookService`.
- Map auth failures to 401 and anything unexpected to 500.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED

from siteorder.api.deps import db_session
from siteorder.api.errors import error_response, internal_error
from siteorder.payments.midtrans import InvalidNotification, MidtransNotification
from siteorder.payments.xendit import InvalidCallback, XenditInvoiceCallback
from siteorder.services.payment_webhooks import PaymentWebhookService, WebhookAuthError

router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"])


@router.post("/midtrans")
async def midtrans_notification(
    body: Any = Body(default=None),
    session: AsyncSession = Depends(db_session),
) -> Any:
    try:
        notification = MidtransNotification.from_payload(body)
    except InvalidNotification as e:
        return error_response(HTTP_400_BAD_REQUEST, str(e))

    try:
        result = await PaymentWebhookService(session=session).handle_midtrans(notification)
    except WebhookAuthError as e:
        return error_response(HTTP_401_UNAUTHORIZED, str(e))
    except Exception as e:
        return internal_error(e, event="midtrans_webhook_failed")
    return result.as_body()


@router.post("/xendit")
async def xendit_invoice_callback(
    body: Any = Body(default=None),
    x_callback_token: str | None = Header(default=None),
    session: AsyncSession = Depends(db_session),
) -> Any:
    try:
        callback = XenditInvoiceCallback.from_payload(body)
    except InvalidCallback as e:
        return error_response(HTTP_400_BAD_REQUEST, str(e))

    try:
        result = await PaymentWebhookService(session=session).handle_xendit(
            callback, callback_token=x_callback_token
        )
    except WebhookAuthError as e:
        return error_response(HTTP_401_UNAUTHORIZED, str(e))
    except Exception as e:
        return internal_error(e, event="xendit_webhook_failed")
    return result.as_body()


# --- Module Notes -----------------------------------------------------------
# Malformed payloads are rejected before any secret is read, so probing the
# endpoint with garbage never touches the credential rows.
