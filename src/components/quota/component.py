"""
Quota component - lazy window rollover.

Pure functions. No background job resets the counters: every read or
write of a quota row first passes it through roll_windows(), which zeroes
any window whose boundary has passed since last_reset_date.

Invariants:
- Day, ISO week and year are checked independently on every call
- A rollover never fires backwards (clock skew leaves counters alone)
- Rolling twice at the same instant is a no-op (idempotent)
"""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from src.domain.entities import QUOTA_WINDOWS, QuotaWindow, VendorLeadQuota

from .models import QuotaConfig, RolloverResult, WindowUsage

# --- Calendar keys ---


def _local(dt: datetime, tz: str) -> datetime:
    return dt.astimezone(ZoneInfo(tz))


def _add_years(dt: datetime, years: int) -> datetime:
    try:
        return dt.replace(year=dt.year + years)
    except ValueError:
        # Feb 29 anchor in a non-leap year
        return dt.replace(year=dt.year + years, day=28)


def anniversary_index(moment: datetime, anchor: datetime, tz: str) -> int:
    """Whole years elapsed since anchor (0 during the first year)."""
    local_moment = _local(moment, tz)
    local_anchor = _local(anchor, tz)
    years = local_moment.year - local_anchor.year
    if _add_years(local_anchor, years) > local_moment:
        years -= 1
    return years


def window_key(
    window: QuotaWindow,
    moment: datetime,
    config: QuotaConfig,
    anchor: datetime | None = None,
) -> tuple[int, ...]:
    """Comparable identifier of the window period containing `moment`."""
    local = _local(moment, config.timezone)
    if window == "daily":
        return (local.year, local.month, local.day)
    if window == "weekly":
        iso = local.isocalendar()
        return (iso[0], iso[1])
    if config.yearly_anchor == "subscription" and anchor is not None:
        return (anniversary_index(moment, anchor, config.timezone),)
    return (local.year,)


def next_reset_at(
    window: QuotaWindow,
    moment: datetime,
    config: QuotaConfig,
    anchor: datetime | None = None,
) -> datetime:
    """UTC instant at which the window containing `moment` ends."""
    zone = ZoneInfo(config.timezone)
    local = _local(moment, config.timezone)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)

    if window == "daily":
        boundary = midnight + timedelta(days=1)
    elif window == "weekly":
        days_to_monday = 7 - local.weekday()
        boundary = midnight + timedelta(days=days_to_monday)
    elif config.yearly_anchor == "subscription" and anchor is not None:
        idx = anniversary_index(moment, anchor, config.timezone)
        boundary = _add_years(_local(anchor, config.timezone), idx + 1)
    else:
        boundary = midnight.replace(year=local.year + 1, month=1, day=1)

    # Re-attach the zone after naive arithmetic so DST offsets are recomputed.
    return boundary.replace(tzinfo=None).replace(tzinfo=zone).astimezone(moment.tzinfo)


# --- Rollover ---


def stale_windows(
    quota: VendorLeadQuota,
    now: datetime,
    config: QuotaConfig,
    anchor: datetime | None = None,
) -> tuple[QuotaWindow, ...]:
    """Windows whose period has advanced since quota.last_reset_date."""
    return tuple(
        w
        for w in QUOTA_WINDOWS
        if window_key(w, now, config, anchor)
        > window_key(w, quota.last_reset_date, config, anchor)
    )


def roll_windows(
    quota: VendorLeadQuota,
    now: datetime,
    config: QuotaConfig | None = None,
    anchor: datetime | None = None,
) -> RolloverResult:
    """
    Zero every stale window and move last_reset_date to now.

    Returns the input unchanged when no boundary has passed. The version is
    left alone; persisting the result is a compare-and-set on it.
    """
    config = config or QuotaConfig()
    stale = stale_windows(quota, now, config, anchor)
    if not stale:
        return RolloverResult(quota=quota, reset_windows=())

    updates: dict[str, object] = {f"{w}_used": 0 for w in stale}
    updates["last_reset_date"] = now
    updates["updated_at"] = now
    return RolloverResult(quota=quota.model_copy(update=updates), reset_windows=stale)


# --- Headroom ---


def first_exhausted_window(quota: VendorLeadQuota) -> QuotaWindow | None:
    """
    First window at or above its limit, checked daily -> weekly -> yearly
    so the most granular reason is reported.
    """
    for window in QUOTA_WINDOWS:
        if quota.used(window) >= quota.limit(window):
            return window
    return None


def window_usage(
    quota: VendorLeadQuota,
    now: datetime,
    config: QuotaConfig,
    anchor: datetime | None = None,
) -> tuple[WindowUsage, ...]:
    return tuple(
        WindowUsage(
            window=w,
            used=quota.used(w),
            limit=quota.limit(w),
            remaining=quota.remaining(w),
            resets_at=next_reset_at(w, now, config, anchor),
        )
        for w in QUOTA_WINDOWS
    )
