"""
LedgerService - the append-only record of which vendor bought which lead.

Uniqueness of (vendor_id, lead_id) is enforced by the storage constraint,
not by has_purchased(); a check-then-insert race ends in
DuplicatePurchaseError for the loser.
"""

from __future__ import annotations

import logging
from uuid import UUID

from src.core.ports.db import UnitOfWorkFactory
from src.core.ports.time import ClockPort
from src.domain.entities import GrantSource, Lead, LeadPurchase

from .models import PurchaseStats

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, uow_factory: UnitOfWorkFactory, clock: ClockPort) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def has_purchased(self, vendor_id: UUID, lead_id: UUID) -> bool:
        with self._uow_factory() as uow:
            return uow.purchases.exists(vendor_id, lead_id)

    def get_purchase(self, vendor_id: UUID, lead_id: UUID) -> LeadPurchase | None:
        with self._uow_factory() as uow:
            return uow.purchases.get(vendor_id, lead_id)

    def record_purchase(
        self,
        vendor_id: UUID,
        lead_id: UUID,
        amount: float,
        funded_by: GrantSource = "quota",
    ) -> LeadPurchase:
        """
        Append a purchase row.

        Raises:
            DuplicatePurchaseError: the pair is already recorded.
        """
        purchase = LeadPurchase(
            vendor_id=vendor_id,
            lead_id=lead_id,
            amount=amount,
            funded_by=funded_by,
            granted_at=self._clock.now_utc(),
        )
        with self._uow_factory() as uow:
            uow.begin()
            saved = uow.purchases.insert(purchase)
            uow.commit()
        logger.info("Recorded purchase of lead %s by vendor %s", lead_id, vendor_id)
        return saved

    def list_for_vendor(self, vendor_id: UUID) -> list[tuple[LeadPurchase, Lead]]:
        with self._uow_factory() as uow:
            return uow.purchases.list_for_vendor(vendor_id)

    def buyer_count(self, lead_id: UUID) -> int:
        with self._uow_factory() as uow:
            return uow.purchases.count_for_lead(lead_id)

    def stats(self, vendor_id: UUID) -> PurchaseStats:
        with self._uow_factory() as uow:
            count, total = uow.purchases.totals_for_vendor(vendor_id)
        return PurchaseStats(vendor_id=vendor_id, total_purchases=count, total_spent=total)
