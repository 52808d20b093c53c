# lead-marketplace - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.db import (
    DuplicatePurchaseError,
    LeadRepoPort,
    PurchaseRepoPort,
    QuotaConflictError,
    QuotaRepoPort,
    SubscriptionRepoPort,
    TopUpRepoPort,
    UnitOfWorkFactory,
    UnitOfWorkPort,
    VendorRepoPort,
)
from src.core.ports.time import ClockPort

__all__ = [
    # DB
    "DuplicatePurchaseError",
    "LeadRepoPort",
    "PurchaseRepoPort",
    "QuotaConflictError",
    "QuotaRepoPort",
    "SubscriptionRepoPort",
    "TopUpRepoPort",
    "UnitOfWorkFactory",
    "UnitOfWorkPort",
    "VendorRepoPort",
    # Time
    "ClockPort",
]
