"""
Catalog component - Intake entry points.

Shell Layer - converts input models to service calls.
"""

from __future__ import annotations

from src.domain.entities import BuyerContact

from ._impl import CatalogService
from .models import CreateDirectLeadInput, CreateLeadInput, LeadOutput


def _buyer(name: str, email: str | None, phone: str | None) -> BuyerContact:
    return BuyerContact(name=name.strip(), email=email, phone=phone)


def run_create_marketplace_lead(
    input_data: CreateLeadInput,
    service: CatalogService,
) -> LeadOutput:
    """Create an open marketplace lead from a buyer requirement."""
    lead, errors = service.create_marketplace_lead(
        title=input_data.title,
        buyer=_buyer(input_data.buyer_name, input_data.buyer_email, input_data.buyer_phone),
        category=input_data.category,
        location=input_data.location,
        quantity=input_data.quantity,
        budget=input_data.budget,
        price=input_data.price,
    )
    return LeadOutput(lead=lead, errors=tuple(errors), success=lead is not None)


def run_create_direct_lead(
    input_data: CreateDirectLeadInput,
    service: CatalogService,
) -> LeadOutput:
    """Create a lead owned by the quoting vendor."""
    lead, errors = service.create_direct_lead(
        owning_vendor_id=input_data.owning_vendor_id,
        title=input_data.title,
        buyer=_buyer(input_data.buyer_name, input_data.buyer_email, input_data.buyer_phone),
        category=input_data.category,
        location=input_data.location,
        quantity=input_data.quantity,
        budget=input_data.budget,
    )
    return LeadOutput(lead=lead, errors=tuple(errors), success=lead is not None)
