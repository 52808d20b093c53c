"""
Admission component - Purchase entry point.
"""

from __future__ import annotations

from ._impl import AdmissionController
from .models import PurchaseInput, PurchaseOutcome


def run_purchase(
    input_data: PurchaseInput,
    controller: AdmissionController,
) -> PurchaseOutcome:
    """Purchase a lead for a vendor. Denials are returned, not raised."""
    return controller.purchase(input_data.vendor_id, input_data.lead_id)
