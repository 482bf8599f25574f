"""
siteorder.payments.midtrans

Midtrans HTTP notification helpers.

Responsibilities:
- Extract the signed fields of a notification body.
- Compute/verify `signature_key` (SHA-512 over order_id + status_code +
  gross_amount + server_key).
- Map `transaction_status` onto an order status.
- Validate server key formats for sandbox/production.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any

from siteorder.db.models import OrderStatus, PaymentEnv

PROVIDER = "midtrans"

SERVER_KEY_NAMES: dict[PaymentEnv, str] = {
    PaymentEnv.production: "server_key_production",
    PaymentEnv.sandbox: "server_key_sandbox",
}

PAID_STATUSES = frozenset({"settlement", "capture"})
FAILED_STATUSES = frozenset({"deny", "cancel", "expire"})


class InvalidNotification(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class MidtransNotification:
    order_id: str
    status_code: str
    gross_amount: str
    signature_key: str
    transaction_status: str | None = None
    fraud_status: str | None = None
    payment_type: str | None = None
    transaction_id: str | None = None

    @classmethod
    def from_payload(cls, body: Any) -> MidtransNotification:
        if not isinstance(body, dict):
            raise InvalidNotification("Invalid payload")

        required = {
            k: _text(body.get(k))
            for k in ("order_id", "status_code", "gross_amount", "signature_key")
        }
        if not all(required.values()):
            raise InvalidNotification("Invalid payload")

        return cls(
            **required,
            transaction_status=_text(body.get("transaction_status")) or None,
            fraud_status=_text(body.get("fraud_status")) or None,
            payment_type=_text(body.get("payment_type")) or None,
            transaction_id=_text(body.get("transaction_id")) or None,
        )

    @property
    def order_status(self) -> OrderStatus:
        return order_status_for(self.transaction_status)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def compute_signature(*, order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(notification: MidtransNotification, *, server_key: str) -> bool:
    expected = compute_signature(
        order_id=notification.order_id,
        status_code=notification.status_code,
        gross_amount=notification.gross_amount,
        server_key=server_key,
    )
    return hmac.compare_digest(expected.encode(), notification.signature_key.encode())


def match_environment(
    notification: MidtransNotification, server_keys: dict[PaymentEnv, str | None]
) -> PaymentEnv | None:
    """
    Return the environment whose server key signed the notification,
    trying production before sandbox.
    """

    for env in (PaymentEnv.production, PaymentEnv.sandbox):
        key = server_keys.get(env)
        if key and verify_signature(notification, server_key=key):
            return env
    return None


def order_status_for(transaction_status: str | None) -> OrderStatus:
    if transaction_status in PAID_STATUSES:
        return OrderStatus.paid
    if transaction_status in FAILED_STATUSES:
        return OrderStatus.failed
    return OrderStatus.pending


def validate_server_key(value: Any, *, env: PaymentEnv) -> str:
    key = _text(value)
    if not key:
        raise ValueError("server_key is required")
    if any(c.isspace() for c in key) or not 8 <= len(key) <= 256:
        raise ValueError("Invalid server_key format")
    prefix = "SB-Mid-server-" if env == PaymentEnv.sandbox else "Mid-server-"
    if not key.startswith(prefix):
        raise ValueError(f"Invalid Midtrans {env.value} server key. Use a key that starts with '{prefix}'")
    return key
