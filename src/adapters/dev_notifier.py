"""
Dev Notifier Adapter.

Logs renewal reminders instead of delivering them. Implements
RenewalNotifierPort; reminders are kept in memory for test assertions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from src.domain.entities import VendorPlan, VendorPlanSubscription

logger = logging.getLogger(__name__)


@dataclass
class SentReminder:
    """Record of a logged reminder."""

    subscription_id: UUID
    vendor_id: UUID
    plan_name: str
    end_date: datetime
    days_remaining: int


@dataclass
class DevNotifierAdapter:
    sent: list[SentReminder] = field(default_factory=list)
    log_level: int = logging.INFO

    def send_renewal_reminder(
        self,
        subscription: VendorPlanSubscription,
        plan: VendorPlan | None,
        days_remaining: int,
    ) -> bool:
        plan_name = plan.name if plan else subscription.plan_id
        self.sent.append(
            SentReminder(
                subscription_id=subscription.id,
                vendor_id=subscription.vendor_id,
                plan_name=plan_name,
                end_date=subscription.end_date,
                days_remaining=days_remaining,
            )
        )
        logger.log(
            self.log_level,
            "RENEWAL REMINDER (dev): vendor=%s plan=%s ends=%s days_remaining=%s",
            subscription.vendor_id,
            plan_name,
            subscription.end_date.isoformat(),
            days_remaining,
        )
        return True

    # --- Test Helper Methods ---

    def reminders_for(self, vendor_id: UUID) -> list[SentReminder]:
        return [r for r in self.sent if r.vendor_id == vendor_id]

    def clear(self) -> None:
        self.sent.clear()
