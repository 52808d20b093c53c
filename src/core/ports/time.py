"""
Time Port Interface.

All stored timestamps are UTC. Quota windows are cut in a configurable
zone (rules.quota.timezone), so calendar math takes the zone explicitly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Source of the current time (injected so tests can move it)."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...
