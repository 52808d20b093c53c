"""
Quota component models.

Lazy window rollover for the daily / weekly / yearly lead counters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

from src.domain.entities import QuotaWindow, VendorLeadQuota

YearlyAnchor = Literal["calendar", "subscription"]


@dataclass(frozen=True)
class QuotaConfig:
    """Window-cutting configuration (rules.quota)."""

    timezone: str = "UTC"
    yearly_anchor: YearlyAnchor = "calendar"


@dataclass(frozen=True)
class RolloverResult:
    """Quota with stale windows zeroed. changed=False means nothing rolled."""

    quota: VendorLeadQuota
    reset_windows: tuple[QuotaWindow, ...]

    @property
    def changed(self) -> bool:
        return len(self.reset_windows) > 0


@dataclass(frozen=True)
class WindowUsage:
    window: QuotaWindow
    used: int
    limit: int
    remaining: int
    resets_at: datetime


@dataclass(frozen=True)
class QuotaSnapshot:
    """
    Read-only view of a vendor's effective quota at `as_of`.

    Counters are shown as they would be after rollover; nothing is written.
    """

    vendor_id: UUID
    as_of: datetime
    entitled: bool
    plan_id: str | None
    windows: tuple[WindowUsage, ...]
    last_reset_date: datetime | None
    exhausted_window: QuotaWindow | None
    top_up_remaining: int
    overflow_to_top_up: bool = False

    @property
    def can_purchase(self) -> bool:
        if not self.entitled:
            return False
        if self.exhausted_window is None:
            return True
        return self.overflow_to_top_up and self.top_up_remaining > 0

    def window(self, name: QuotaWindow) -> WindowUsage:
        return next(w for w in self.windows if w.window == name)
