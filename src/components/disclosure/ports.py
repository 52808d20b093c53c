"""
Disclosure component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID


class PurchaseLookupPort(Protocol):
    """Satisfied by LedgerService."""

    def has_purchased(self, vendor_id: UUID, lead_id: UUID) -> bool:
        ...
