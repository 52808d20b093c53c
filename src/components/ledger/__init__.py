"""
Ledger component - Exactly-once purchase records.
"""

from ._impl import LedgerService
from .component import run_record_purchase, run_stats
from .models import LedgerError, PurchaseOutput, PurchaseStats, RecordPurchaseInput

__all__ = [
    # Entry points
    "run_record_purchase",
    "run_stats",
    # Service
    "LedgerService",
    # Models
    "LedgerError",
    "PurchaseOutput",
    "PurchaseStats",
    "RecordPurchaseInput",
]
