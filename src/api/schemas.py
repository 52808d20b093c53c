from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

# --- Shared Enums/Types ---
LeadStatus = Literal["AVAILABLE", "ASSIGNED", "CLOSED"]
SubscriptionStatus = Literal["ACTIVE", "INACTIVE", "CANCELLED"]
QuotaWindow = Literal["daily", "weekly", "yearly"]


# --- Errors ---
class ErrorItem(BaseModel):
    code: str
    message: str
    field: str | None = None


class PurchaseErrorResponse(BaseModel):
    code: str
    message: str
    window: QuotaWindow | None = None
    resets_at: datetime | None = None


# --- Leads ---
class LeadCreateRequest(BaseModel):
    title: str
    buyer_name: str
    buyer_email: str | None = None
    buyer_phone: str | None = None
    category: str | None = None
    location: str | None = None
    quantity: str | None = None
    budget: str | None = None
    price: float | None = None


class DirectLeadCreateRequest(BaseModel):
    title: str
    buyer_name: str
    buyer_email: str | None = None
    buyer_phone: str | None = None
    category: str | None = None
    location: str | None = None
    quantity: str | None = None
    budget: str | None = None


class LeadViewResponse(BaseModel):
    id: UUID
    title: str
    category: str | None
    location: str | None
    quantity: str | None
    budget: str | None
    price: float | None
    status: LeadStatus
    created_at: datetime
    is_direct: bool
    contact_revealed: bool
    buyer_name: str | None = None
    buyer_email: str | None = None
    buyer_phone: str | None = None


class OwnedLeadResponse(BaseModel):
    lead: LeadViewResponse
    source: Literal["Direct", "Purchased"]
    acquired_at: datetime


class PurchaseResponse(BaseModel):
    lead_id: UUID
    grant: Literal["purchased", "top_up", "direct"]
    purchase_id: UUID | None = None
    amount: float | None = None
    funded_by: Literal["quota", "top_up"] | None = None
    granted_at: datetime | None = None


class PurchaseStatsResponse(BaseModel):
    total_purchases: int
    total_spent: float


# --- Plans & Subscriptions ---
class PlanResponse(BaseModel):
    id: str
    name: str
    daily_limit: int
    weekly_limit: int
    yearly_limit: int
    duration_days: int
    price: float


class SubscribeRequest(BaseModel):
    plan_id: str


class AutoRenewalRequest(BaseModel):
    enabled: bool


class SubscriptionResponse(BaseModel):
    id: UUID
    vendor_id: UUID
    plan_id: str
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    is_active: bool
    days_remaining: int
    auto_renewal_enabled: bool
    renewal_notification_sent: bool


class WindowUsageResponse(BaseModel):
    window: QuotaWindow
    used: int
    limit: int
    remaining: int
    resets_at: datetime


class QuotaResponse(BaseModel):
    vendor_id: UUID
    as_of: datetime
    entitled: bool
    can_purchase: bool
    plan_id: str | None
    windows: list[WindowUsageResponse]
    exhausted_window: QuotaWindow | None
    top_up_remaining: int


class TopUpRequest(BaseModel):
    packs: int = Field(1, ge=1, le=100)


class TopUpResponse(BaseModel):
    id: UUID
    leads_purchased: int
    leads_remaining: int
    amount_paid: float
    balance: int


class TopUpPackResponse(BaseModel):
    id: UUID
    leads_purchased: int
    leads_remaining: int
    amount_paid: float
    created_at: datetime


class TopUpListResponse(BaseModel):
    balance: int
    packs: list[TopUpPackResponse]


# --- Admin ---
class VendorCreateRequest(BaseModel):
    display_name: str


class VendorResponse(BaseModel):
    id: UUID
    display_name: str
    status: Literal["active", "deactivated"]
    created_at: datetime


class ExpiringResponse(BaseModel):
    as_of: datetime
    expiring_within_7_days: int
    expiring_within_30_days: int
    active_but_expired: int
    due_for_reminder: list[SubscriptionResponse]
