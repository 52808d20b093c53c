"""
Catalog component - Lead intake, marketplace listing and visibility.
"""

from ._impl import CatalogService, validate_lead_data
from .component import run_create_direct_lead, run_create_marketplace_lead
from .models import (
    CatalogConfig,
    CatalogError,
    CreateDirectLeadInput,
    CreateLeadInput,
    DirectVisibility,
    LeadOutput,
    LeadSource,
    LeadVisibility,
    MarketplaceVisibility,
    OwnedLead,
    PurchasedVisibility,
)

__all__ = [
    # Entry points
    "run_create_marketplace_lead",
    "run_create_direct_lead",
    # Service
    "CatalogService",
    "validate_lead_data",
    # Models
    "CatalogConfig",
    "CatalogError",
    "CreateLeadInput",
    "CreateDirectLeadInput",
    "LeadOutput",
    "LeadSource",
    "OwnedLead",
    # Visibility
    "LeadVisibility",
    "MarketplaceVisibility",
    "DirectVisibility",
    "PurchasedVisibility",
]
