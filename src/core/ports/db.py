"""
Marketplace Database Port Interfaces.

Protocol-based interfaces for repository operations.
Implementations: SQLite (src.adapters.sqlite).

Invariants enforced at this layer:
- (vendor_id, lead_id) is unique in the purchase ledger
- at most one ACTIVE subscription row per vendor
- quota writes are compare-and-set on the row version
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from src.domain.entities import (
    Lead,
    LeadPurchase,
    LeadStatus,
    Vendor,
    VendorAdditionalLeads,
    VendorLeadQuota,
    VendorPlanSubscription,
)

# -----------------------------------------------------------------------------
# Storage-level errors
# -----------------------------------------------------------------------------


class DuplicatePurchaseError(Exception):
    """The ledger already holds a row for this (vendor, lead) pair."""

    def __init__(self, vendor_id: UUID, lead_id: UUID):
        super().__init__(f"Vendor {vendor_id} already purchased lead {lead_id}")
        self.vendor_id = vendor_id
        self.lead_id = lead_id


class QuotaConflictError(Exception):
    """A compare-and-set on the quota row lost against a concurrent writer."""


# -----------------------------------------------------------------------------
# Vendors
# -----------------------------------------------------------------------------


class VendorRepoPort(Protocol):
    """Vendors are never deleted, only deactivated."""

    def get_by_id(self, vendor_id: UUID) -> Vendor | None:
        ...

    def save(self, vendor: Vendor) -> Vendor:
        """Insert or update (upsert)."""
        ...

    def list_all(self) -> list[Vendor]:
        ...


# -----------------------------------------------------------------------------
# Leads
# -----------------------------------------------------------------------------


class LeadRepoPort(Protocol):
    def get_by_id(self, lead_id: UUID) -> Lead | None:
        ...

    def save(self, lead: Lead) -> Lead:
        """Insert a new lead. Leads are immutable apart from status."""
        ...

    def update_status(self, lead_id: UUID, status: LeadStatus) -> bool:
        """Returns False if the lead does not exist."""
        ...

    def list_marketplace(
        self,
        exclude_purchased_by: UUID,
        limit: int | None,
        category: str | None = None,
    ) -> list[Lead]:
        """
        AVAILABLE leads with no owning vendor that the given vendor has not
        purchased, newest first. A limit of None returns every match.
        """
        ...

    def list_direct(self, owning_vendor_id: UUID) -> list[Lead]:
        """Leads addressed to the vendor, newest first."""
        ...


# -----------------------------------------------------------------------------
# Purchase Ledger
# -----------------------------------------------------------------------------


class PurchaseRepoPort(Protocol):
    """Append-only. Rows are never updated or deleted."""

    def exists(self, vendor_id: UUID, lead_id: UUID) -> bool:
        ...

    def get(self, vendor_id: UUID, lead_id: UUID) -> LeadPurchase | None:
        ...

    def insert(self, purchase: LeadPurchase) -> LeadPurchase:
        """Raises DuplicatePurchaseError if the pair already exists."""
        ...

    def list_for_vendor(self, vendor_id: UUID) -> list[tuple[LeadPurchase, Lead]]:
        """Purchases joined with their leads, newest grant first."""
        ...

    def count_for_lead(self, lead_id: UUID) -> int:
        ...

    def totals_for_vendor(self, vendor_id: UUID) -> tuple[int, float]:
        """(number of purchases, total amount)."""
        ...


# -----------------------------------------------------------------------------
# Subscriptions
# -----------------------------------------------------------------------------


class SubscriptionRepoPort(Protocol):
    def get_by_id(self, subscription_id: UUID) -> VendorPlanSubscription | None:
        ...

    def get_active_row(self, vendor_id: UUID) -> VendorPlanSubscription | None:
        """The row stored as ACTIVE, whether or not its end_date has passed."""
        ...

    def list_for_vendor(self, vendor_id: UUID) -> list[VendorPlanSubscription]:
        """Newest start_date first."""
        ...

    def insert(self, sub: VendorPlanSubscription) -> VendorPlanSubscription:
        ...

    def update(self, sub: VendorPlanSubscription) -> VendorPlanSubscription:
        ...

    def list_active_ending_between(
        self, start: datetime, end: datetime
    ) -> list[VendorPlanSubscription]:
        ...

    def count_active_ended_before(self, moment: datetime) -> int:
        ...


# -----------------------------------------------------------------------------
# Quota
# -----------------------------------------------------------------------------


class QuotaRepoPort(Protocol):
    def get(self, vendor_id: UUID) -> VendorLeadQuota | None:
        ...

    def reinitialize(self, quota: VendorLeadQuota) -> VendorLeadQuota:
        """Insert or overwrite the vendor's row, bumping its version."""
        ...

    def compare_and_set_counters(
        self, quota: VendorLeadQuota, expected_version: int
    ) -> bool:
        """
        Write used counters and last_reset_date if the stored version still
        equals expected_version. Returns False on a lost race.
        """
        ...

    def increment_if_headroom(
        self, vendor_id: UUID, expected_version: int, now: datetime
    ) -> bool:
        """
        Add one to all three windows if the version matches and every window
        is below its limit. Returns False otherwise.
        """
        ...


# -----------------------------------------------------------------------------
# Top-ups
# -----------------------------------------------------------------------------


class TopUpRepoPort(Protocol):
    def insert(self, pack: VendorAdditionalLeads) -> VendorAdditionalLeads:
        ...

    def list_for_vendor(self, vendor_id: UUID) -> list[VendorAdditionalLeads]:
        ...

    def remaining_for_vendor(self, vendor_id: UUID) -> int:
        ...

    def consume_one(self, vendor_id: UUID) -> bool:
        """Decrement the oldest pack that still has leads. False if none."""
        ...


# -----------------------------------------------------------------------------
# Unit of Work
# -----------------------------------------------------------------------------


class UnitOfWorkPort(Protocol):
    """
    One connection, one transaction. begin() takes the write lock; an
    exception inside the with-block rolls back.
    """

    def __enter__(self) -> UnitOfWorkPort:
        ...

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        ...

    def begin(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    @property
    def vendors(self) -> VendorRepoPort:
        ...

    @property
    def leads(self) -> LeadRepoPort:
        ...

    @property
    def purchases(self) -> PurchaseRepoPort:
        ...

    @property
    def subscriptions(self) -> SubscriptionRepoPort:
        ...

    @property
    def quotas(self) -> QuotaRepoPort:
        ...

    @property
    def top_ups(self) -> TopUpRepoPort:
        ...


class UnitOfWorkFactory(Protocol):
    def __call__(self) -> UnitOfWorkPort:
        ...
