"""
Admission component - Data models.

Purchase outcomes are values: every denial carries a machine-checkable
code and, for quota denials, the exhausted window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import UUID

from src.components.quota import QuotaConfig
from src.domain.entities import LeadPurchase, QuotaWindow

PurchaseErrorCode = Literal[
    "not_entitled",
    "already_owned",
    "quota_exceeded",
    "lead_not_available",
    "concurrency_conflict",
]

# purchased: charged to the window quota; top_up: drawn from a top-up pack;
# direct: the vendor owns the lead, nothing recorded.
GrantKind = Literal["purchased", "top_up", "direct"]

TopUpPolicy = Literal["separate", "overflow"]

ERROR_MESSAGES: dict[PurchaseErrorCode, str] = {
    "not_entitled": "Please subscribe to a plan first",
    "already_owned": "You already own this lead",
    "quota_exceeded": "Lead limit reached",
    "lead_not_available": "This lead is not available",
    "concurrency_conflict": "Please try again",
}

WINDOW_MESSAGES: dict[QuotaWindow, str] = {
    "daily": "Daily limit reached - resets at midnight",
    "weekly": "Weekly limit reached - resets on Monday",
    "yearly": "Yearly limit reached - resets at the start of the next quota year",
}


@dataclass(frozen=True)
class AdmissionConfig:
    max_cas_retries: int = 3
    top_up_policy: TopUpPolicy = "separate"
    max_buyers_per_lead: int | None = None
    default_lead_price: float = 0.0
    quota: QuotaConfig = field(default_factory=QuotaConfig)


@dataclass(frozen=True)
class PurchaseError:
    code: PurchaseErrorCode
    message: str
    window: QuotaWindow | None = None
    resets_at: datetime | None = None

    @classmethod
    def of(
        cls,
        code: PurchaseErrorCode,
        window: QuotaWindow | None = None,
        resets_at: datetime | None = None,
    ) -> PurchaseError:
        message = WINDOW_MESSAGES[window] if window else ERROR_MESSAGES[code]
        return cls(code=code, message=message, window=window, resets_at=resets_at)


@dataclass(frozen=True)
class PurchaseInput:
    vendor_id: UUID
    lead_id: UUID


@dataclass(frozen=True)
class PurchaseOutcome:
    """
    Result of purchase().

    success with grant="direct" has no purchase row: the vendor already
    owns the lead.
    """

    vendor_id: UUID
    lead_id: UUID
    success: bool
    purchase: LeadPurchase | None = None
    grant: GrantKind | None = None
    error: PurchaseError | None = None

    @classmethod
    def granted(
        cls, vendor_id: UUID, lead_id: UUID, purchase: LeadPurchase | None, grant: GrantKind
    ) -> PurchaseOutcome:
        return cls(
            vendor_id=vendor_id,
            lead_id=lead_id,
            success=True,
            purchase=purchase,
            grant=grant,
        )

    @classmethod
    def denied(cls, vendor_id: UUID, lead_id: UUID, error: PurchaseError) -> PurchaseOutcome:
        return cls(vendor_id=vendor_id, lead_id=lead_id, success=False, error=error)
