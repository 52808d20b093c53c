from __future__ import annotations

from dataclasses import dataclass

from src.adapters.clock import SystemClock
from src.adapters.plan_catalog import RulesPlanCatalog
from src.adapters.sqlite_db import sqlite_uow_factory
from src.components.admission import AdmissionConfig, AdmissionController
from src.components.catalog import CatalogConfig, CatalogService
from src.components.disclosure import DisclosureResolver
from src.components.entitlements import EntitlementConfig, EntitlementService
from src.components.ledger import LedgerService
from src.components.quota import QuotaConfig, QuotaService
from src.core.ports.db import UnitOfWorkFactory
from src.core.ports.time import ClockPort
from src.rules.models import Rules


def quota_config(rules: Rules) -> QuotaConfig:
    return QuotaConfig(
        timezone=rules.quota.timezone,
        yearly_anchor=rules.quota.yearly_anchor,
    )


def admission_config(rules: Rules) -> AdmissionConfig:
    return AdmissionConfig(
        max_cas_retries=rules.admission.max_cas_retries,
        top_up_policy=rules.admission.top_up_policy,
        max_buyers_per_lead=rules.marketplace.max_buyers_per_lead,
        default_lead_price=rules.marketplace.default_lead_price,
        quota=quota_config(rules),
    )


def entitlement_config(rules: Rules) -> EntitlementConfig:
    return EntitlementConfig(
        renewal_reminder_days=rules.subscriptions.renewal_reminder_days,
        summary_horizon_days=rules.subscriptions.summary_horizon_days,
        top_up_pack_size=rules.top_ups.pack_size,
        top_up_pack_price=rules.top_ups.pack_price,
    )


@dataclass
class ServiceContext:
    """Every marketplace service wired over one database and one clock."""

    entitlements: EntitlementService
    quota: QuotaService
    ledger: LedgerService
    disclosure: DisclosureResolver
    catalog: CatalogService
    admission: AdmissionController
    plans: RulesPlanCatalog
    uow_factory: UnitOfWorkFactory
    clock: ClockPort
    rules: Rules

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        clock: ClockPort | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        uow_factory = sqlite_uow_factory(db_path)
        plans = RulesPlanCatalog(rules.plans)

        ledger = LedgerService(uow_factory, clock)
        disclosure = DisclosureResolver(ledger)

        return cls(
            entitlements=EntitlementService(
                uow_factory, clock, plans, entitlement_config(rules)
            ),
            quota=QuotaService(
                uow_factory,
                clock,
                quota_config(rules),
                overflow_to_top_up=rules.admission.top_up_policy == "overflow",
            ),
            ledger=ledger,
            disclosure=disclosure,
            catalog=CatalogService(
                uow_factory,
                clock,
                disclosure,
                CatalogConfig(listing_limit=rules.marketplace.listing_limit),
            ),
            admission=AdmissionController(uow_factory, clock, admission_config(rules)),
            plans=plans,
            uow_factory=uow_factory,
            clock=clock,
            rules=rules,
        )
