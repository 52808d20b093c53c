"""
Disclosure component - Buyer contact gating.

The only path to buyer name, email or phone. A vendor sees contact
fields for a lead it owns directly or has purchased; nothing else
reveals them. Read-only: no writes, no failure modes.
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from src.domain.entities import Lead

from .models import LeadView
from .ports import PurchaseLookupPort


def may_reveal(vendor_id: UUID, lead: Lead, purchased: bool) -> bool:
    """Pure decision given whether the ledger holds (vendor, lead)."""
    return lead.owning_vendor_id == vendor_id or purchased


def can_reveal(vendor_id: UUID, lead: Lead, ledger: PurchaseLookupPort) -> bool:
    if lead.owning_vendor_id == vendor_id:
        return True
    return ledger.has_purchased(vendor_id, lead.id)


def to_view(lead: Lead, revealed: bool) -> LeadView:
    view = LeadView(
        id=lead.id,
        title=lead.title,
        category=lead.category,
        location=lead.location,
        quantity=lead.quantity,
        budget=lead.budget,
        price=lead.price,
        status=lead.status,
        created_at=lead.created_at,
        is_direct=lead.is_direct,
        contact_revealed=revealed,
    )
    if not revealed:
        return view
    return replace(
        view,
        buyer_name=lead.buyer.name,
        buyer_email=lead.buyer.email,
        buyer_phone=lead.buyer.phone,
    )


class DisclosureResolver:
    def __init__(self, ledger: PurchaseLookupPort) -> None:
        self._ledger = ledger

    def can_reveal(self, vendor_id: UUID, lead: Lead) -> bool:
        return can_reveal(vendor_id, lead, self._ledger)

    def view_for(self, vendor_id: UUID, lead: Lead) -> LeadView:
        return to_view(lead, self.can_reveal(vendor_id, lead))
