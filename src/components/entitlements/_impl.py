"""
EntitlementService - vendor registry, subscriptions and top-up packs.

A vendor is entitled while it is active and holds an ACTIVE subscription
whose end_date lies in the future. Expiry is derived at read time; no job
flips expired rows.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from src.core.ports.db import UnitOfWorkFactory, UnitOfWorkPort
from src.core.ports.time import ClockPort
from src.domain.entities import (
    Vendor,
    VendorAdditionalLeads,
    VendorLeadQuota,
    VendorPlan,
    VendorPlanSubscription,
)
from src.domain.state import SubscriptionAction, transition

from .models import EntitlementConfig, EntitlementError, ExpirationSummary
from .ports import PlanCatalogPort, RenewalNotifierPort

logger = logging.getLogger(__name__)


def validate_display_name(display_name: str) -> list[EntitlementError]:
    if not display_name or not display_name.strip():
        return [
            EntitlementError(
                code="display_name_required",
                message="Display name is required",
                field="display_name",
            )
        ]
    if len(display_name) > 200:
        return [
            EntitlementError(
                code="display_name_too_long",
                message="Display name must be 200 characters or less",
                field="display_name",
            )
        ]
    return []


def initial_quota(vendor_id: UUID, plan: VendorPlan, now: datetime) -> VendorLeadQuota:
    """Fresh counters carrying the plan's limits."""
    return VendorLeadQuota(
        vendor_id=vendor_id,
        plan_id=plan.id,
        daily_limit=plan.daily_limit,
        weekly_limit=plan.weekly_limit,
        yearly_limit=plan.yearly_limit,
        last_reset_date=now,
        updated_at=now,
    )


def _not_found(subscription_id: UUID) -> list[EntitlementError]:
    return [
        EntitlementError(
            code="subscription_not_found",
            message=f"Subscription {subscription_id} not found",
        )
    ]


class EntitlementService:
    """
    Entitlement store.

    Every mutation runs in a single unit of work so a subscribe (supersede
    + insert + quota reset) is all-or-nothing.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        plans: PlanCatalogPort,
        config: EntitlementConfig | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._plans = plans
        self._config = config or EntitlementConfig()

    # --- Vendors ---

    def register_vendor(
        self, display_name: str
    ) -> tuple[Vendor | None, list[EntitlementError]]:
        errors = validate_display_name(display_name)
        if errors:
            return None, errors

        now = self._clock.now_utc()
        vendor = Vendor(display_name=display_name.strip(), created_at=now, updated_at=now)
        with self._uow_factory() as uow:
            saved = uow.vendors.save(vendor)
        logger.info("Registered vendor %s", saved.id)
        return saved, []

    def get_vendor(self, vendor_id: UUID) -> Vendor | None:
        with self._uow_factory() as uow:
            return uow.vendors.get_by_id(vendor_id)

    def list_vendors(self) -> list[Vendor]:
        with self._uow_factory() as uow:
            return uow.vendors.list_all()

    def deactivate_vendor(
        self, vendor_id: UUID
    ) -> tuple[Vendor | None, list[EntitlementError]]:
        """Deactivated vendors keep their rows but lose their entitlement."""
        with self._uow_factory() as uow:
            vendor = uow.vendors.get_by_id(vendor_id)
            if vendor is None:
                return None, [
                    EntitlementError(
                        code="vendor_not_found",
                        message=f"Vendor {vendor_id} not found",
                    )
                ]
            if not vendor.is_active:
                return vendor, []
            updated = vendor.model_copy(
                update={"status": "deactivated", "updated_at": self._clock.now_utc()}
            )
            uow.vendors.save(updated)
        logger.info("Deactivated vendor %s", vendor_id)
        return updated, []

    # --- Plans ---

    def list_plans(self, include_inactive: bool = False) -> list[VendorPlan]:
        return self._plans.list_plans(include_inactive=include_inactive)

    # --- Subscriptions ---

    def get_active_subscription(self, vendor_id: UUID) -> VendorPlanSubscription | None:
        """The ACTIVE row, or None if there is none or it has expired."""
        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            sub = uow.subscriptions.get_active_row(vendor_id)
        if sub is None or not sub.is_active_at(now):
            return None
        return sub

    def is_entitled(self, vendor_id: UUID) -> bool:
        vendor = self.get_vendor(vendor_id)
        if vendor is None or not vendor.is_active:
            return False
        return self.get_active_subscription(vendor_id) is not None

    def days_remaining(self, vendor_id: UUID) -> int:
        sub = self.get_active_subscription(vendor_id)
        if sub is None:
            return 0
        return sub.days_remaining(self._clock.now_utc())

    def history(self, vendor_id: UUID) -> list[VendorPlanSubscription]:
        with self._uow_factory() as uow:
            return uow.subscriptions.list_for_vendor(vendor_id)

    def subscribe(
        self, vendor_id: UUID, plan_id: str
    ) -> tuple[VendorPlanSubscription | None, list[EntitlementError]]:
        """
        Start a plan for the vendor.

        Any ACTIVE row is superseded (set INACTIVE) before the new row is
        inserted, and the quota row is reset to the new plan's limits, all
        inside one transaction.
        """
        plan = self._plans.get(plan_id)
        if plan is None:
            return None, [
                EntitlementError(
                    code="plan_not_found",
                    message=f"Plan '{plan_id}' not found",
                    field="plan_id",
                )
            ]
        if not plan.is_active:
            return None, [
                EntitlementError(
                    code="plan_inactive",
                    message=f"Plan '{plan_id}' is no longer offered",
                    field="plan_id",
                )
            ]

        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            uow.begin()
            vendor = uow.vendors.get_by_id(vendor_id)
            if vendor is None or not vendor.is_active:
                return None, [
                    EntitlementError(
                        code="vendor_not_found",
                        message=f"Vendor {vendor_id} not found or deactivated",
                    )
                ]

            current = uow.subscriptions.get_active_row(vendor_id)
            if current is not None:
                uow.subscriptions.update(transition(current, "supersede", now))

            sub = VendorPlanSubscription(
                vendor_id=vendor_id,
                plan_id=plan.id,
                start_date=now,
                end_date=now + timedelta(days=plan.duration_days),
                plan_duration_days=plan.duration_days,
                created_at=now,
                updated_at=now,
            )
            uow.subscriptions.insert(sub)
            uow.quotas.reinitialize(initial_quota(vendor_id, plan, now))
            uow.commit()

        logger.info(
            "Vendor %s subscribed to %s until %s (superseded=%s)",
            vendor_id,
            plan.id,
            sub.end_date.isoformat(),
            current.id if current else None,
        )
        return sub, []

    def renew(
        self, subscription_id: UUID, vendor_id: UUID | None = None
    ) -> tuple[VendorPlanSubscription | None, list[EntitlementError]]:
        """Extend end_date by one plan duration from the current end_date."""
        return self._apply(subscription_id, "renew", vendor_id)

    def cancel(
        self, subscription_id: UUID, vendor_id: UUID | None = None
    ) -> tuple[VendorPlanSubscription | None, list[EntitlementError]]:
        return self._apply(subscription_id, "cancel", vendor_id)

    def set_auto_renewal(
        self,
        subscription_id: UUID,
        enabled: bool,
        vendor_id: UUID | None = None,
    ) -> tuple[VendorPlanSubscription | None, list[EntitlementError]]:
        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            uow.begin()
            sub = self._load(uow, subscription_id, vendor_id)
            if sub is None:
                return None, _not_found(subscription_id)
            if sub.status != "ACTIVE":
                return None, [
                    EntitlementError(
                        code="invalid_transition",
                        message=f"Auto-renewal cannot change on a {sub.status} subscription",
                    )
                ]
            updated = sub.model_copy(
                update={"auto_renewal_enabled": enabled, "updated_at": now}
            )
            uow.subscriptions.update(updated)
            uow.commit()
        return updated, []

    def _apply(
        self,
        subscription_id: UUID,
        action: SubscriptionAction,
        vendor_id: UUID | None,
    ) -> tuple[VendorPlanSubscription | None, list[EntitlementError]]:
        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            uow.begin()
            sub = self._load(uow, subscription_id, vendor_id)
            if sub is None:
                return None, _not_found(subscription_id)
            try:
                updated = transition(sub, action, now)
            except ValueError as e:
                return None, [EntitlementError(code="invalid_transition", message=str(e))]
            uow.subscriptions.update(updated)
            uow.commit()

        logger.info(
            "Subscription %s %s: %s -> %s, end_date=%s",
            subscription_id,
            action,
            sub.status,
            updated.status,
            updated.end_date.isoformat(),
        )
        return updated, []

    @staticmethod
    def _load(
        uow: UnitOfWorkPort, subscription_id: UUID, vendor_id: UUID | None
    ) -> VendorPlanSubscription | None:
        sub = uow.subscriptions.get_by_id(subscription_id)
        if sub is None:
            return None
        # Another vendor's subscription is reported as missing.
        if vendor_id is not None and sub.vendor_id != vendor_id:
            return None
        return sub

    # --- Top-ups ---

    def purchase_top_up(
        self, vendor_id: UUID, packs: int = 1
    ) -> tuple[VendorAdditionalLeads | None, list[EntitlementError]]:
        """Buy extra lead packs. Requires an unexpired subscription."""
        if packs < 1:
            return None, [
                EntitlementError(
                    code="packs_invalid",
                    message="At least one pack must be purchased",
                    field="packs",
                )
            ]

        now = self._clock.now_utc()
        size = self._config.top_up_pack_size * packs
        with self._uow_factory() as uow:
            uow.begin()
            vendor = uow.vendors.get_by_id(vendor_id)
            sub = uow.subscriptions.get_active_row(vendor_id)
            if (
                vendor is None
                or not vendor.is_active
                or sub is None
                or not sub.is_active_at(now)
            ):
                return None, [
                    EntitlementError(
                        code="not_entitled",
                        message="Please subscribe to a plan first",
                    )
                ]
            pack = uow.top_ups.insert(
                VendorAdditionalLeads(
                    vendor_id=vendor_id,
                    leads_purchased=size,
                    leads_remaining=size,
                    amount_paid=self._config.top_up_pack_price * packs,
                    created_at=now,
                )
            )
            uow.commit()

        logger.info("Vendor %s bought %s top-up leads", vendor_id, size)
        return pack, []

    def top_up_balance(self, vendor_id: UUID) -> int:
        with self._uow_factory() as uow:
            return uow.top_ups.remaining_for_vendor(vendor_id)

    def list_top_ups(self, vendor_id: UUID) -> list[VendorAdditionalLeads]:
        with self._uow_factory() as uow:
            return uow.top_ups.list_for_vendor(vendor_id)

    # --- Expiration & Reminders ---

    def expiration_summary(self) -> ExpirationSummary:
        now = self._clock.now_utc()
        horizon = self._config.summary_horizon_days
        with self._uow_factory() as uow:
            within_7 = uow.subscriptions.list_active_ending_between(
                now, now + timedelta(days=7)
            )
            within_horizon = uow.subscriptions.list_active_ending_between(
                now, now + timedelta(days=horizon)
            )
            expired = uow.subscriptions.count_active_ended_before(now)
        return ExpirationSummary(
            as_of=now,
            expiring_within_7_days=len(within_7),
            expiring_within_30_days=len(within_horizon),
            active_but_expired=expired,
        )

    def due_for_reminder(self) -> list[VendorPlanSubscription]:
        """
        ACTIVE subscriptions ending within renewal_reminder_days that have
        not been notified since their last renewal.
        """
        now = self._clock.now_utc()
        window_end = now + timedelta(days=self._config.renewal_reminder_days)
        with self._uow_factory() as uow:
            candidates = uow.subscriptions.list_active_ending_between(now, window_end)
        return [
            s
            for s in candidates
            if s.is_active_at(now) and not s.renewal_notification_sent
        ]

    def mark_renewal_notified(self, subscription_id: UUID) -> bool:
        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            uow.begin()
            sub = uow.subscriptions.get_by_id(subscription_id)
            if sub is None:
                return False
            uow.subscriptions.update(
                sub.model_copy(
                    update={"renewal_notification_sent": True, "updated_at": now}
                )
            )
            uow.commit()
        return True

    def send_renewal_reminders(
        self, notifier: RenewalNotifierPort
    ) -> list[VendorPlanSubscription]:
        """Notify every due subscription; only delivered ones are marked."""
        now = self._clock.now_utc()
        sent: list[VendorPlanSubscription] = []
        for sub in self.due_for_reminder():
            plan = self._plans.get(sub.plan_id)
            if not notifier.send_renewal_reminder(sub, plan, sub.days_remaining(now)):
                logger.warning("Renewal reminder for %s was not delivered", sub.id)
                continue
            self.mark_renewal_notified(sub.id)
            sent.append(sub)
        logger.info("Sent %s renewal reminders", len(sent))
        return sent
