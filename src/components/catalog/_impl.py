"""
CatalogService - lead intake, marketplace listing and owned-lead views.

Read-only over the ledger: listing and classification never write
purchases or quota.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

from src.components.disclosure import DisclosureResolver, LeadView
from src.core.ports.db import UnitOfWorkFactory
from src.core.ports.time import ClockPort
from src.domain.entities import BuyerContact, Lead

from .models import (
    CatalogConfig,
    CatalogError,
    DirectVisibility,
    LeadVisibility,
    MarketplaceVisibility,
    OwnedLead,
    PurchasedVisibility,
)

logger = logging.getLogger(__name__)


# --- Validation Functions ---


def validate_lead_data(
    title: str,
    buyer_name: str,
    buyer_email: str | None = None,
    price: float | None = None,
) -> list[CatalogError]:
    errors: list[CatalogError] = []

    if not title or not title.strip():
        errors.append(
            CatalogError(code="title_required", message="Title is required", field="title")
        )
    elif len(title) > 200:
        errors.append(
            CatalogError(
                code="title_too_long",
                message="Title must be 200 characters or less",
                field="title",
            )
        )

    if not buyer_name or not buyer_name.strip():
        errors.append(
            CatalogError(
                code="buyer_name_required",
                message="Buyer name is required",
                field="buyer_name",
            )
        )

    if buyer_email is not None and "@" not in buyer_email:
        errors.append(
            CatalogError(
                code="buyer_email_invalid",
                message="Buyer email is not a valid address",
                field="buyer_email",
            )
        )

    if price is not None and price < 0:
        errors.append(
            CatalogError(code="price_negative", message="Price cannot be negative", field="price")
        )

    return errors


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


# --- Catalog Service ---


class CatalogService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        disclosure: DisclosureResolver,
        config: CatalogConfig | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._disclosure = disclosure
        self._config = config or CatalogConfig()

    # --- Intake ---

    def create_marketplace_lead(
        self,
        title: str,
        buyer: BuyerContact,
        category: str | None = None,
        location: str | None = None,
        quantity: str | None = None,
        budget: str | None = None,
        price: float | None = None,
    ) -> tuple[Lead | None, list[CatalogError]]:
        """Create an open lead any entitled vendor may buy."""
        errors = validate_lead_data(title, buyer.name, buyer.email, price)
        if errors:
            return None, errors

        lead = Lead(
            title=title.strip(),
            category=_clean(category),
            location=_clean(location),
            quantity=_clean(quantity),
            budget=_clean(budget),
            price=price,
            buyer=buyer,
            created_at=self._clock.now_utc(),
        )
        with self._uow_factory() as uow:
            saved = uow.leads.save(lead)
        logger.info("Created marketplace lead %s", saved.id)
        return saved, []

    def create_direct_lead(
        self,
        owning_vendor_id: UUID,
        title: str,
        buyer: BuyerContact,
        category: str | None = None,
        location: str | None = None,
        quantity: str | None = None,
        budget: str | None = None,
    ) -> tuple[Lead | None, list[CatalogError]]:
        """
        Create a lead owned by one vendor. It never enters the marketplace
        and its owner sees the contact without paying.
        """
        errors = validate_lead_data(title, buyer.name, buyer.email)
        if errors:
            return None, errors

        with self._uow_factory() as uow:
            if uow.vendors.get_by_id(owning_vendor_id) is None:
                return None, [
                    CatalogError(
                        code="vendor_not_found",
                        message=f"Vendor {owning_vendor_id} not found",
                        field="owning_vendor_id",
                    )
                ]
            saved = uow.leads.save(
                Lead(
                    title=title.strip(),
                    category=_clean(category),
                    location=_clean(location),
                    quantity=_clean(quantity),
                    budget=_clean(budget),
                    buyer=buyer,
                    owning_vendor_id=owning_vendor_id,
                    status="ASSIGNED",
                    created_at=self._clock.now_utc(),
                )
            )
        logger.info("Created direct lead %s for vendor %s", saved.id, owning_vendor_id)
        return saved, []

    def close_lead(self, lead_id: UUID) -> tuple[Lead | None, list[CatalogError]]:
        """Withdraw an open lead from the marketplace. Existing buyers keep it."""
        with self._uow_factory() as uow:
            uow.begin()
            lead = uow.leads.get_by_id(lead_id)
            if lead is None:
                return None, [
                    CatalogError(code="lead_not_found", message=f"Lead {lead_id} not found")
                ]
            if lead.status != "AVAILABLE":
                return None, [
                    CatalogError(
                        code="lead_not_open",
                        message=f"Only AVAILABLE leads can be closed (status {lead.status})",
                    )
                ]
            uow.leads.update_status(lead_id, "CLOSED")
            uow.commit()
        logger.info("Closed lead %s", lead_id)
        return lead.model_copy(update={"status": "CLOSED"}), []

    # --- Queries ---

    def get_lead(self, lead_id: UUID) -> Lead | None:
        with self._uow_factory() as uow:
            return uow.leads.get_by_id(lead_id)

    def list_marketplace(
        self,
        vendor_id: UUID,
        category: str | None = None,
        order_key: Callable[[Lead], Any] | None = None,
    ) -> list[Lead]:
        """
        Open leads the vendor has not bought, newest first.

        order_key ranks every open lead ascending by the given key before
        the listing limit is applied.
        """
        limit = self._config.listing_limit
        with self._uow_factory() as uow:
            leads = uow.leads.list_marketplace(
                exclude_purchased_by=vendor_id,
                limit=None if order_key is not None else limit,
                category=category,
            )
        if order_key is not None:
            leads = sorted(leads, key=order_key)[:limit]
        return leads

    def list_owned(self, vendor_id: UUID) -> list[OwnedLead]:
        """Direct and purchased leads, most recently acquired first."""
        with self._uow_factory() as uow:
            direct = uow.leads.list_direct(vendor_id)
            purchased = uow.purchases.list_for_vendor(vendor_id)

        owned = [
            OwnedLead(lead=lead, source="Direct", acquired_at=lead.created_at)
            for lead in direct
        ]
        owned.extend(
            OwnedLead(lead=lead, source="Purchased", acquired_at=p.granted_at)
            for p, lead in purchased
        )
        owned.sort(key=lambda o: o.acquired_at, reverse=True)
        return owned

    def classify(self, vendor_id: UUID, lead: Lead) -> LeadVisibility:
        if lead.owning_vendor_id is not None:
            return DirectVisibility(owner_id=lead.owning_vendor_id)
        with self._uow_factory() as uow:
            purchase = uow.purchases.get(vendor_id, lead.id)
        if purchase is not None:
            return PurchasedVisibility(purchase_id=purchase.id, acquired_at=purchase.granted_at)
        return MarketplaceVisibility()

    def get_lead_view(
        self, vendor_id: UUID, lead_id: UUID
    ) -> tuple[LeadView | None, list[CatalogError]]:
        """
        The lead as this vendor may see it. Another vendor's direct lead is
        reported as missing.
        """
        lead = self.get_lead(lead_id)
        if lead is None or (lead.is_direct and lead.owning_vendor_id != vendor_id):
            return None, [
                CatalogError(code="lead_not_found", message=f"Lead {lead_id} not found")
            ]
        return self._disclosure.view_for(vendor_id, lead), []
