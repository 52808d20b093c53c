"""
AdmissionController - quota-gated, exactly-once lead purchase.

Each attempt runs inside one write transaction:
1. availability (missing, closed, someone else's direct lead, buyer cap)
2. dedupe against the ledger
3. entitlement (active vendor, unexpired ACTIVE subscription)
4. lazy window rollover, written back by compare-and-set
5. headroom, daily -> weekly -> yearly, optionally overflowing to top-ups
6. ledger insert + conditional quota increment, committed together

A lost compare-and-set rolls the whole attempt back and retries, up to
max_cas_retries. Denials never write.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from src.components.quota import first_exhausted_window, next_reset_at, roll_windows
from src.core.ports.db import (
    DuplicatePurchaseError,
    QuotaConflictError,
    UnitOfWorkFactory,
)
from src.core.ports.time import ClockPort
from src.domain.entities import LeadPurchase, QuotaWindow, VendorPlanSubscription

from .models import AdmissionConfig, GrantKind, PurchaseError, PurchaseOutcome

logger = logging.getLogger(__name__)


class AdmissionController:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        config: AdmissionConfig | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._config = config or AdmissionConfig()

    @property
    def config(self) -> AdmissionConfig:
        return self._config

    def purchase(self, vendor_id: UUID, lead_id: UUID) -> PurchaseOutcome:
        retries = self._config.max_cas_retries
        for attempt in range(1, retries + 1):
            try:
                outcome = self._attempt(vendor_id, lead_id)
            except QuotaConflictError as e:
                logger.warning(
                    "Purchase of lead %s by vendor %s lost a quota race (attempt %d/%d): %s",
                    lead_id,
                    vendor_id,
                    attempt,
                    retries,
                    e,
                )
                continue
            self._log_outcome(outcome)
            return outcome

        outcome = self._after_retries(vendor_id, lead_id)
        self._log_outcome(outcome)
        return outcome

    def _attempt(self, vendor_id: UUID, lead_id: UUID) -> PurchaseOutcome:
        now = self._clock.now_utc()
        cfg = self._config

        def deny(error: PurchaseError) -> PurchaseOutcome:
            return PurchaseOutcome.denied(vendor_id, lead_id, error)

        with self._uow_factory() as uow:
            uow.begin()

            # 1. Availability
            lead = uow.leads.get_by_id(lead_id)
            if lead is None:
                return deny(PurchaseError.of("lead_not_available"))
            if lead.owning_vendor_id is not None:
                if lead.owning_vendor_id == vendor_id:
                    return PurchaseOutcome.granted(vendor_id, lead_id, None, "direct")
                return deny(PurchaseError.of("lead_not_available"))
            if lead.status != "AVAILABLE":
                return deny(PurchaseError.of("lead_not_available"))

            # 2. Dedupe
            if uow.purchases.exists(vendor_id, lead_id):
                return deny(PurchaseError.of("already_owned"))

            if (
                cfg.max_buyers_per_lead is not None
                and uow.purchases.count_for_lead(lead_id) >= cfg.max_buyers_per_lead
            ):
                return deny(PurchaseError.of("lead_not_available"))

            # 3. Entitlement
            vendor = uow.vendors.get_by_id(vendor_id)
            sub = uow.subscriptions.get_active_row(vendor_id)
            if (
                vendor is None
                or not vendor.is_active
                or sub is None
                or not sub.is_active_at(now)
            ):
                return deny(PurchaseError.of("not_entitled"))
            stored = uow.quotas.get(vendor_id)
            if stored is None:
                return deny(PurchaseError.of("not_entitled"))

            # 4. Rollover
            rolled = roll_windows(stored, now, cfg.quota, sub.start_date)
            version = stored.version
            if rolled.changed:
                if not uow.quotas.compare_and_set_counters(rolled.quota, version):
                    raise QuotaConflictError(f"rollover for vendor {vendor_id}")
                version += 1
                logger.info(
                    "Reset %s quota for vendor %s",
                    "/".join(rolled.reset_windows),
                    vendor_id,
                )

            # 5. Headroom
            grant: GrantKind = "purchased"
            exhausted = first_exhausted_window(rolled.quota)
            if exhausted is not None:
                if cfg.top_up_policy == "overflow" and uow.top_ups.consume_one(vendor_id):
                    grant = "top_up"
                else:
                    return deny(self._quota_error(exhausted, now, sub))

            # 6. Grant
            purchase = LeadPurchase(
                vendor_id=vendor_id,
                lead_id=lead_id,
                amount=lead.price if lead.price is not None else cfg.default_lead_price,
                funded_by="top_up" if grant == "top_up" else "quota",
                granted_at=now,
            )
            try:
                uow.purchases.insert(purchase)
            except DuplicatePurchaseError:
                return deny(PurchaseError.of("already_owned"))

            if grant == "purchased" and not uow.quotas.increment_if_headroom(
                vendor_id, version, now
            ):
                raise QuotaConflictError(f"increment for vendor {vendor_id}")

            uow.commit()

        return PurchaseOutcome.granted(vendor_id, lead_id, purchase, grant)

    def _after_retries(self, vendor_id: UUID, lead_id: UUID) -> PurchaseOutcome:
        """
        Retries exhausted. If the quota is genuinely full by now, say so;
        otherwise report a transient conflict.
        """
        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            sub = uow.subscriptions.get_active_row(vendor_id)
            stored = uow.quotas.get(vendor_id)

        if stored is not None and sub is not None:
            rolled = roll_windows(stored, now, self._config.quota, sub.start_date)
            exhausted = first_exhausted_window(rolled.quota)
            if exhausted is not None:
                return PurchaseOutcome.denied(
                    vendor_id, lead_id, self._quota_error(exhausted, now, sub)
                )
        return PurchaseOutcome.denied(
            vendor_id, lead_id, PurchaseError.of("concurrency_conflict")
        )

    def _quota_error(
        self, window: QuotaWindow, now: datetime, sub: VendorPlanSubscription
    ) -> PurchaseError:
        resets_at = next_reset_at(window, now, self._config.quota, sub.start_date)
        return PurchaseError.of("quota_exceeded", window=window, resets_at=resets_at)

    @staticmethod
    def _log_outcome(outcome: PurchaseOutcome) -> None:
        if outcome.success:
            logger.info(
                "Granted lead %s to vendor %s (%s)",
                outcome.lead_id,
                outcome.vendor_id,
                outcome.grant,
            )
        elif outcome.error is not None:
            logger.info(
                "Denied lead %s to vendor %s: %s%s",
                outcome.lead_id,
                outcome.vendor_id,
                outcome.error.code,
                f" ({outcome.error.window})" if outcome.error.window else "",
            )
