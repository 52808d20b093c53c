"""
Plan catalog backed by the `plans` section of rules.yaml.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.domain.entities import VendorPlan
from src.rules.models import PlanRule


class RulesPlanCatalog:
    """Implements PlanCatalogPort over validated plan rules."""

    def __init__(self, plans: Iterable[PlanRule]) -> None:
        self._plans: dict[str, VendorPlan] = {
            p.id: VendorPlan(**p.model_dump()) for p in plans
        }

    def get(self, plan_id: str) -> VendorPlan | None:
        return self._plans.get(plan_id)

    def list_plans(self, include_inactive: bool = False) -> list[VendorPlan]:
        plans = list(self._plans.values())
        if include_inactive:
            return plans
        return [p for p in plans if p.is_active]
