"""
Entitlements component - Data models.

Subscriptions, the vendor registry and top-up packs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.domain.entities import (
    Vendor,
    VendorAdditionalLeads,
    VendorPlanSubscription,
)

@dataclass(frozen=True)
class EntitlementConfig:
    """rules.subscriptions and rules.top_ups."""

    renewal_reminder_days: int = 7
    summary_horizon_days: int = 30
    top_up_pack_size: int = 10
    top_up_pack_price: float = 1500.0


# --- Errors ---


@dataclass(frozen=True)
class EntitlementError:
    """Entitlement operation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class SubscribeInput:
    vendor_id: UUID
    plan_id: str


@dataclass(frozen=True)
class RenewInput:
    subscription_id: UUID
    vendor_id: UUID | None = None


@dataclass(frozen=True)
class CancelInput:
    subscription_id: UUID
    vendor_id: UUID | None = None


@dataclass(frozen=True)
class AutoRenewalInput:
    subscription_id: UUID
    enabled: bool
    vendor_id: UUID | None = None


@dataclass(frozen=True)
class TopUpInput:
    vendor_id: UUID
    packs: int = 1


# --- Output Models ---


@dataclass(frozen=True)
class SubscriptionOutput:
    """Output from a subscription operation."""

    subscription: VendorPlanSubscription | None
    errors: tuple[EntitlementError, ...]
    success: bool


@dataclass(frozen=True)
class VendorOutput:
    vendor: Vendor | None
    errors: tuple[EntitlementError, ...]
    success: bool


@dataclass(frozen=True)
class TopUpOutput:
    pack: VendorAdditionalLeads | None
    errors: tuple[EntitlementError, ...]
    success: bool


@dataclass(frozen=True)
class ExpirationSummary:
    """
    Counts of ACTIVE subscriptions by how soon they end.

    active_but_expired counts rows still stored as ACTIVE whose end_date has
    passed; they grant nothing but are reported for cleanup.
    """

    as_of: datetime
    expiring_within_7_days: int
    expiring_within_30_days: int
    active_but_expired: int
