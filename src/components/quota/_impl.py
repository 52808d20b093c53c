"""
QuotaService - read side of the quota row.

get_snapshot() reports the counters as they stand after lazy rollover
without writing anything back; the admission controller is the only
writer of the quota row.
"""

from __future__ import annotations

from uuid import UUID

from src.core.ports.db import UnitOfWorkFactory
from src.core.ports.time import ClockPort
from src.domain.entities import VendorLeadQuota

from .component import first_exhausted_window, roll_windows, window_usage
from .models import QuotaConfig, QuotaSnapshot


class QuotaService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        config: QuotaConfig | None = None,
        overflow_to_top_up: bool = False,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._config = config or QuotaConfig()
        self._overflow = overflow_to_top_up

    @property
    def config(self) -> QuotaConfig:
        return self._config

    def get_snapshot(self, vendor_id: UUID) -> QuotaSnapshot:
        now = self._clock.now_utc()
        with self._uow_factory() as uow:
            vendor = uow.vendors.get_by_id(vendor_id)
            sub = uow.subscriptions.get_active_row(vendor_id)
            stored = uow.quotas.get(vendor_id)
            top_up_remaining = uow.top_ups.remaining_for_vendor(vendor_id)

        entitled = (
            vendor is not None
            and vendor.is_active
            and sub is not None
            and sub.is_active_at(now)
        )
        anchor = sub.start_date if sub else None

        if stored is None:
            quota = VendorLeadQuota(vendor_id=vendor_id, last_reset_date=now)
            last_reset = None
        else:
            quota = roll_windows(stored, now, self._config, anchor).quota
            last_reset = quota.last_reset_date

        return QuotaSnapshot(
            vendor_id=vendor_id,
            as_of=now,
            entitled=entitled,
            plan_id=quota.plan_id,
            windows=window_usage(quota, now, self._config, anchor),
            last_reset_date=last_reset,
            exhausted_window=first_exhausted_window(quota),
            top_up_remaining=top_up_remaining,
            overflow_to_top_up=self._overflow,
        )
