"""
Shared fixtures: a migrated temporary SQLite database, the project rules,
a manual clock and a fully wired ServiceContext.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from src.adapters.clock import ManualClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.context import ServiceContext
from src.domain.entities import BuyerContact, Lead, Vendor
from src.rules.loader import load_rules
from src.rules.models import Rules

ROOT = Path(__file__).resolve().parent

# Tuesday, ISO week 11 of 2026
T0 = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def rules() -> Rules:
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "marketplace.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def build_ctx(db_path: str, rules: Rules, clock: ManualClock) -> Callable[..., ServiceContext]:
    """
    Build a context over the shared database with rule sections overridden,
    e.g. build_ctx(admission={"top_up_policy": "overflow"}).
    """

    def _build(**sections: dict[str, Any]) -> ServiceContext:
        updates = {
            name: getattr(rules, name).model_copy(update=values)
            for name, values in sections.items()
        }
        return ServiceContext.create(db_path, rules.model_copy(update=updates), clock)

    return _build


@pytest.fixture
def ctx(build_ctx: Callable[..., ServiceContext]) -> ServiceContext:
    return build_ctx()


@pytest.fixture
def make_vendor(ctx: ServiceContext) -> Callable[..., Vendor]:
    def _make(name: str = "Acme Packaging", plan_id: str | None = "starter") -> Vendor:
        vendor, errors = ctx.entitlements.register_vendor(name)
        assert vendor is not None, errors
        if plan_id is not None:
            sub, errors = ctx.entitlements.subscribe(vendor.id, plan_id)
            assert sub is not None, errors
        return vendor

    return _make


@pytest.fixture
def vendor(make_vendor: Callable[..., Vendor]) -> Vendor:
    """A vendor on the starter plan (2 daily / 10 weekly / 100 yearly)."""
    return make_vendor()


@pytest.fixture
def make_lead(ctx: ServiceContext) -> Callable[..., Lead]:
    def _make(title: str = "500 corrugated cartons", **kwargs: Any) -> Lead:
        buyer = BuyerContact(
            name="Priya Shah",
            email="priya@example.com",
            phone="+44 20 7946 0000",
        )
        lead, errors = ctx.catalog.create_marketplace_lead(title, buyer, **kwargs)
        assert lead is not None, errors
        return lead

    return _make
