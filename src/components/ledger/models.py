"""
Ledger component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.domain.entities import GrantSource, LeadPurchase


@dataclass(frozen=True)
class PurchaseStats:
    vendor_id: UUID
    total_purchases: int
    total_spent: float


@dataclass(frozen=True)
class LedgerError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class RecordPurchaseInput:
    vendor_id: UUID
    lead_id: UUID
    amount: float
    funded_by: GrantSource = "quota"


@dataclass(frozen=True)
class PurchaseOutput:
    purchase: LeadPurchase | None
    errors: tuple[LedgerError, ...]
    success: bool
