"""
siteorder.payments.xendit

Xendit invoice callback helpers.

Responsibilities:
- Verify the `x-callback-token` header against the stored token.
- Map invoice statuses onto an order status.
- Validate secret API keys and callback tokens before they are stored.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Any

from siteorder.db.models import OrderStatus, PaymentEnv

PROVIDER = "xendit"
API_KEY_NAME = "api_key"
CALLBACK_TOKEN_NAME = "callback_token"

PAID_STATUSES = frozenset({"PAID", "SETTLED"})
FAILED_STATUSES = frozenset({"EXPIRED", "FAILED"})


class InvalidCallback(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class XenditInvoiceCallback:
    external_id: str
    status: str
    invoice_id: str | None = None
    payment_method: str | None = None

    @classmethod
    def from_payload(cls, body: Any) -> XenditInvoiceCallback:
        if not isinstance(body, dict):
            raise InvalidCallback("Invalid payload")
        external_id = _text(body.get("external_id"))
        status = _text(body.get("status")).upper()
        if not external_id or not status:
            raise InvalidCallback("Invalid payload")
        return cls(
            external_id=external_id,
            status=status,
            invoice_id=_text(body.get("id")) or None,
            payment_method=_text(body.get("payment_method")) or None,
        )

    @property
    def order_status(self) -> OrderStatus:
        if self.status in PAID_STATUSES:
            return OrderStatus.paid
        if self.status in FAILED_STATUSES:
            return OrderStatus.failed
        return OrderStatus.pending


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def verify_callback_token(received: str | None, expected: str | None) -> bool:
    if not received or not expected:
        return False
    return hmac.compare_digest(received.strip().encode(), expected.encode())


def environment_for_api_key(api_key: str | None) -> PaymentEnv | None:
    if not api_key:
        return None
    if api_key.startswith("xnd_production_"):
        return PaymentEnv.production
    return PaymentEnv.sandbox


def _check_shape(value: str, field: str) -> None:
    if any(c.isspace() for c in value) or not 8 <= len(value) <= 256:
        raise ValueError(f"Invalid {field} format")


def validate_secret_key(value: Any) -> str:
    api_key = _text(value)
    if not api_key:
        raise ValueError("api_key is required")
    _check_shape(api_key, "api_key")

    # The invoice API needs the secret key (xnd_development_... / xnd_production_...).
    if not api_key.startswith("xnd_"):
        raise ValueError("Invalid Xendit key. Use a key that starts with 'xnd_'")
    if api_key.startswith("xnd_public_"):
        raise ValueError(
            "Invalid Xendit key for server-side usage. Please paste the Xendit *Secret* API Key "
            "(xnd_development_... / xnd_production_...), not the public key."
        )
    return api_key


def validate_callback_token(value: Any) -> str:
    token = _text(value)
    if not token:
        raise ValueError("callback_token is required")
    _check_shape(token, "callback_token")
    return token
