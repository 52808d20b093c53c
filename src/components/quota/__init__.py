"""
Quota component - daily / weekly / yearly lead counters with lazy rollover.
"""

from ._impl import QuotaService
from .component import (
    anniversary_index,
    first_exhausted_window,
    next_reset_at,
    roll_windows,
    stale_windows,
    window_key,
    window_usage,
)
from .models import (
    QuotaConfig,
    QuotaSnapshot,
    RolloverResult,
    WindowUsage,
    YearlyAnchor,
)

__all__ = [
    # Functions
    "anniversary_index",
    "first_exhausted_window",
    "next_reset_at",
    "roll_windows",
    "stale_windows",
    "window_key",
    "window_usage",
    # Service
    "QuotaService",
    # Models
    "QuotaConfig",
    "QuotaSnapshot",
    "RolloverResult",
    "WindowUsage",
    "YearlyAnchor",
]
