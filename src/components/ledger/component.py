"""
Ledger component - Entry points.

Shell Layer - converts input models to service calls.
"""

from __future__ import annotations

from uuid import UUID

from src.core.ports.db import DuplicatePurchaseError

from ._impl import LedgerService
from .models import LedgerError, PurchaseOutput, PurchaseStats, RecordPurchaseInput


def run_record_purchase(
    input_data: RecordPurchaseInput,
    service: LedgerService,
) -> PurchaseOutput:
    """Append a purchase row, reporting a repeated pair as already_owned."""
    if input_data.amount < 0:
        error = LedgerError(
            code="invalid_amount", message="Amount cannot be negative", field="amount"
        )
        return PurchaseOutput(purchase=None, errors=(error,), success=False)
    try:
        purchase = service.record_purchase(
            input_data.vendor_id,
            input_data.lead_id,
            amount=input_data.amount,
            funded_by=input_data.funded_by,
        )
    except DuplicatePurchaseError:
        error = LedgerError(code="already_owned", message="You already own this lead")
        return PurchaseOutput(purchase=None, errors=(error,), success=False)
    return PurchaseOutput(purchase=purchase, errors=(), success=True)


def run_stats(vendor_id: UUID, service: LedgerService) -> PurchaseStats:
    return service.stats(vendor_id)
