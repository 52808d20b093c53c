"""
Admission component - Quota-gated, exactly-once lead purchase.
"""

from ._impl import AdmissionController
from .component import run_purchase
from .models import (
    ERROR_MESSAGES,
    WINDOW_MESSAGES,
    AdmissionConfig,
    GrantKind,
    PurchaseError,
    PurchaseErrorCode,
    PurchaseInput,
    PurchaseOutcome,
    TopUpPolicy,
)

__all__ = [
    # Entry point
    "run_purchase",
    # Controller
    "AdmissionController",
    "AdmissionConfig",
    # Models
    "GrantKind",
    "PurchaseError",
    "PurchaseErrorCode",
    "PurchaseInput",
    "PurchaseOutcome",
    "TopUpPolicy",
    "ERROR_MESSAGES",
    "WINDOW_MESSAGES",
]
