"""
Entitlements component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import VendorPlan, VendorPlanSubscription


class PlanCatalogPort(Protocol):
    """Read-only source of plan definitions."""

    def get(self, plan_id: str) -> VendorPlan | None:
        ...

    def list_plans(self, include_inactive: bool = False) -> list[VendorPlan]:
        ...


class RenewalNotifierPort(Protocol):
    """Delivers renewal reminders. Returns False if delivery failed."""

    def send_renewal_reminder(
        self,
        subscription: VendorPlanSubscription,
        plan: VendorPlan | None,
        days_remaining: int,
    ) -> bool:
        ...
