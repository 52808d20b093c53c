"""
Catalog component - Data models.

LeadVisibility is a closed set of variants computed by the catalog, so
callers never infer a lead's relation to a vendor from nullable fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

from src.domain.entities import Lead

# --- Visibility ---


@dataclass(frozen=True)
class MarketplaceVisibility:
    """Open lead the vendor has not bought."""

    kind: Literal["marketplace"] = "marketplace"


@dataclass(frozen=True)
class DirectVisibility:
    owner_id: UUID
    kind: Literal["direct"] = "direct"


@dataclass(frozen=True)
class PurchasedVisibility:
    purchase_id: UUID
    acquired_at: datetime
    kind: Literal["purchased"] = "purchased"


LeadVisibility = MarketplaceVisibility | DirectVisibility | PurchasedVisibility

LeadSource = Literal["Direct", "Purchased"]


@dataclass(frozen=True)
class OwnedLead:
    lead: Lead
    source: LeadSource
    acquired_at: datetime


# --- Errors & Config ---


@dataclass(frozen=True)
class CatalogError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CatalogConfig:
    listing_limit: int = 100


# --- Input Models ---


@dataclass(frozen=True)
class CreateLeadInput:
    """Buyer requirement arriving from intake."""

    title: str
    buyer_name: str
    buyer_email: str | None = None
    buyer_phone: str | None = None
    category: str | None = None
    location: str | None = None
    quantity: str | None = None
    budget: str | None = None
    price: float | None = None


@dataclass(frozen=True)
class CreateDirectLeadInput:
    """Lead a vendor raises for its own external buyer."""

    owning_vendor_id: UUID
    title: str
    buyer_name: str
    buyer_email: str | None = None
    buyer_phone: str | None = None
    category: str | None = None
    location: str | None = None
    quantity: str | None = None
    budget: str | None = None


@dataclass(frozen=True)
class LeadOutput:
    lead: Lead | None
    errors: tuple[CatalogError, ...]
    success: bool
