"""
siteorder.db.models

Persistence schema for ordering and subscriptions.

Responsibilities:
- Define ORM models for the record store:
  - Package: sellable website packages
  - Order: purchase intent + gateway reconciliation fields
  - UserPackage: entitlement granted after payment
  - Profile: per-user account flags
  - IntegrationSecret: gateway credentials (plaintext, iv="plain")
  - UserRole: role assignment (super_admin)
  - DomainPricingSettings: singleton pricing/config row
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from siteorder.db.base import Base


def _utcnow() -> datetime:
    # Naive UTC timestamps, consistent across sqlite and postgres.
    return datetime.utcnow()


class OrderStatus(enum.StrEnum):
    pending = "pending"
    paid = "paid"
    failed = "failed"


class PaymentProvider(enum.StrEnum):
    midtrans = "midtrans"
    xendit = "xendit"


class PaymentEnv(enum.StrEnum):
    sandbox = "sandbox"
    production = "production"


class Package(Base):
    __tablename__ = "packages"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False, default="website")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    features: Mapped[Any] = mapped_column(JSON, nullable=True)
    is_recommended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    show_on_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Guest checkouts have no user; they never receive an entitlement.
    user_id: Mapped[str | None] = mapped_column(String(256), nullable=True, index=True)
    package_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("packages.id"), nullable=True
    )
    domain: Mapped[str | None] = mapped_column(String(253), nullable=True)
    subscription_years: Mapped[int | None] = mapped_column(nullable=True)

    gross_amount: Mapped[int] = mapped_column(nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="IDR")

    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus), nullable=False, default=OrderStatus.pending, index=True
    )
    payment_provider: Mapped[PaymentProvider | None] = mapped_column(
        Enum(PaymentProvider), nullable=True
    )
    payment_env: Mapped[PaymentEnv | None] = mapped_column(Enum(PaymentEnv), nullable=True)

    midtrans_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    midtrans_transaction_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    midtrans_fraud_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    midtrans_payment_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    midtrans_transaction_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    xendit_external_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True, unique=True
    )
    xendit_invoice_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    xendit_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    xendit_payment_method: Mapped[str | None] = mapped_column(String(64), nullable=True)

    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class UserPackage(Base):
    __tablename__ = "user_packages"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    package_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("packages.id"), nullable=False
    )
    order_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("orders.id"), nullable=True, unique=True
    )
    duration_months: Mapped[int] = mapped_column(nullable=False)
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    activated_at: Mapped[datetime] = mapped_column(nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")

    __table_args__ = (Index("ix_user_packages_user_expires", "user_id", "expires_at"),)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    account_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    payment_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class IntegrationSecret(Base):
    __tablename__ = "integration_secrets"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    # "plain" marks an unencrypted value; anything else is not readable by this service.
    iv: Mapped[str] = mapped_column(String(64), nullable=False, default="plain")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("provider", "name", name="uq_integration_secrets_provider_name"),)


class UserRole(Base):
    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)


class DomainPricingSettings(Base):
    __tablename__ = "domain_pricing_settings"

    # Singleton row: the only valid key is True.
    id: Mapped[bool] = mapped_column(Boolean, primary_key=True, default=True)
    default_package_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("packages.id"), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


# --- Module Notes -----------------------------------------------------------
# Uniqueness of gateway references and (provider, name) secrets is enforced by
# the database; repositories rely on it rather than re-checking.
