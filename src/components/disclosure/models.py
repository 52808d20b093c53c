"""
Disclosure component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.domain.entities import LeadStatus


@dataclass(frozen=True)
class LeadView:
    """
    A lead as shown to one vendor.

    Buyer contact fields are None unless contact_revealed is True.
    """

    id: UUID
    title: str
    category: str | None
    location: str | None
    quantity: str | None
    budget: str | None
    price: float | None
    status: LeadStatus
    created_at: datetime
    is_direct: bool
    contact_revealed: bool
    buyer_name: str | None = None
    buyer_email: str | None = None
    buyer_phone: str | None = None
