from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
VendorStatus = Literal["active", "deactivated"]
LeadStatus = Literal["AVAILABLE", "ASSIGNED", "CLOSED"]
SubscriptionStatus = Literal["ACTIVE", "INACTIVE", "CANCELLED"]
QuotaWindow = Literal["daily", "weekly", "yearly"]
GrantSource = Literal["quota", "top_up"]

QUOTA_WINDOWS: tuple[QuotaWindow, ...] = ("daily", "weekly", "yearly")


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Vendors ---

class Vendor(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    display_name: str
    status: VendorStatus = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


# --- Leads ---

class BuyerContact(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None


class Lead(BaseModel):
    """
    A buyer requirement.

    owning_vendor_id set => Direct lead: visible to that vendor only,
    never purchasable. Contact fields are always stored; disclosure is
    decided by the disclosure resolver.
    """

    id: UUID = Field(default_factory=uuid4)
    title: str
    category: str | None = None
    location: str | None = None
    quantity: str | None = None
    budget: str | None = None
    price: float | None = None
    buyer: BuyerContact
    owning_vendor_id: UUID | None = None
    status: LeadStatus = "AVAILABLE"
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_direct(self) -> bool:
        return self.owning_vendor_id is not None


class LeadPurchase(BaseModel):
    """Immutable grant record. (vendor_id, lead_id) is unique."""

    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    lead_id: UUID
    amount: float = 0.0
    funded_by: GrantSource = "quota"
    granted_at: datetime = Field(default_factory=utcnow)


# --- Plans & Subscriptions ---

class VendorPlan(BaseModel):
    id: str
    name: str
    daily_limit: int
    weekly_limit: int
    yearly_limit: int
    duration_days: int = 365
    price: float = 0.0
    is_active: bool = True


class VendorPlanSubscription(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    plan_id: str
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus = "ACTIVE"
    plan_duration_days: int = 365
    auto_renewal_enabled: bool = False
    renewal_notification_sent: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_active_at(self, now: datetime) -> bool:
        # Expiry is derived from end_date, never trusted from status alone.
        return self.status == "ACTIVE" and self.end_date > now

    def days_remaining(self, now: datetime) -> int:
        if self.end_date <= now:
            return 0
        delta = self.end_date - now
        return delta.days + (1 if delta.seconds or delta.microseconds else 0)


class VendorLeadQuota(BaseModel):
    """
    Per-vendor consumption counters, one row per vendor.

    version is bumped on every write and used for compare-and-set.
    """

    vendor_id: UUID
    plan_id: str | None = None
    daily_used: int = 0
    daily_limit: int = 0
    weekly_used: int = 0
    weekly_limit: int = 0
    yearly_used: int = 0
    yearly_limit: int = 0
    last_reset_date: datetime = Field(default_factory=utcnow)
    version: int = 0
    updated_at: datetime = Field(default_factory=utcnow)

    def used(self, window: QuotaWindow) -> int:
        return int(getattr(self, f"{window}_used"))

    def limit(self, window: QuotaWindow) -> int:
        return int(getattr(self, f"{window}_limit"))

    def remaining(self, window: QuotaWindow) -> int:
        return max(0, self.limit(window) - self.used(window))


class VendorAdditionalLeads(BaseModel):
    """Top-up pack, e.g. 10 extra leads for a flat fee."""

    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    leads_purchased: int
    leads_remaining: int
    amount_paid: float
    created_at: datetime = Field(default_factory=utcnow)
