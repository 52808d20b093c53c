"""
SQLite repositories and unit of work against a migrated database.
"""

import sqlite3
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import (
    SQLitePurchaseRepo,
    SQLiteQuotaRepo,
    SQLiteSubscriptionRepo,
    SQLiteTopUpRepo,
    SQLiteVendorRepo,
)
from src.adapters.sqlite_db import SQLiteUnitOfWork
from src.core.ports.db import DuplicatePurchaseError
from src.domain.entities import (
    LeadPurchase,
    Vendor,
    VendorAdditionalLeads,
    VendorLeadQuota,
    VendorPlanSubscription,
)

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


@pytest.fixture
def saved_vendor(db_path):
    return SQLiteVendorRepo(db_path).save(Vendor(display_name="Acme"))


def _subscription(vendor_id, status="ACTIVE"):
    return VendorPlanSubscription(
        vendor_id=vendor_id,
        plan_id="starter",
        start_date=NOW,
        end_date=NOW + timedelta(days=365),
        status=status,
    )


def _quota(vendor_id, **overrides):
    values = {
        "plan_id": "starter",
        "daily_limit": 2,
        "weekly_limit": 10,
        "yearly_limit": 100,
        "last_reset_date": NOW,
    }
    values.update(overrides)
    return VendorLeadQuota(vendor_id=vendor_id, **values)


# --- Migrations ---


def test_migrations_create_tables(tmp_path):
    path = str(tmp_path / "fresh.db")

    applied = SQLiteMigrator(path).run_migrations()

    assert applied == ["0001_marketplace.sql"]
    conn = sqlite3.connect(path)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert {
        "vendors",
        "leads",
        "lead_purchases",
        "vendor_plan_subscriptions",
        "vendor_lead_quota",
        "vendor_additional_leads",
    } <= tables


def test_migrations_are_idempotent(db_path):
    assert SQLiteMigrator(db_path).run_migrations() == []
    assert SQLiteMigrator(db_path).pending() == []


# --- Ledger ---


def test_duplicate_purchase_is_rejected(db_path, saved_vendor, make_lead):
    lead = make_lead()
    repo = SQLitePurchaseRepo(db_path)
    repo.insert(LeadPurchase(vendor_id=saved_vendor.id, lead_id=lead.id))

    with pytest.raises(DuplicatePurchaseError):
        repo.insert(LeadPurchase(vendor_id=saved_vendor.id, lead_id=lead.id))

    assert repo.count_for_lead(lead.id) == 1


def test_purchase_totals(db_path, saved_vendor, make_lead):
    repo = SQLitePurchaseRepo(db_path)
    for amount in (10.0, 5.5):
        repo.insert(
            LeadPurchase(vendor_id=saved_vendor.id, lead_id=make_lead().id, amount=amount)
        )

    assert repo.totals_for_vendor(saved_vendor.id) == (2, 15.5)
    assert repo.totals_for_vendor(uuid4()) == (0, 0.0)


# --- Subscriptions ---


def test_one_active_subscription_per_vendor(db_path, saved_vendor):
    repo = SQLiteSubscriptionRepo(db_path)
    repo.insert(_subscription(saved_vendor.id))

    with pytest.raises(sqlite3.IntegrityError):
        repo.insert(_subscription(saved_vendor.id))

    repo.insert(_subscription(saved_vendor.id, status="INACTIVE"))
    assert len(repo.list_for_vendor(saved_vendor.id)) == 2


def test_subscription_round_trip_keeps_timezone(db_path, saved_vendor):
    repo = SQLiteSubscriptionRepo(db_path)
    sub = repo.insert(_subscription(saved_vendor.id))

    loaded = repo.get_active_row(saved_vendor.id)

    assert loaded.id == sub.id
    assert loaded.end_date == NOW + timedelta(days=365)
    assert loaded.end_date.tzinfo is not None


# --- Quota ---


def test_compare_and_set_detects_stale_version(db_path, saved_vendor):
    repo = SQLiteQuotaRepo(db_path)
    stored = repo.reinitialize(_quota(saved_vendor.id, daily_used=2))

    fresh = stored.model_copy(update={"daily_used": 0})
    assert repo.compare_and_set_counters(fresh, stored.version) is True
    assert repo.compare_and_set_counters(fresh, stored.version) is False
    assert repo.get(saved_vendor.id).version == stored.version + 1


def test_increment_stops_at_limit(db_path, saved_vendor):
    repo = SQLiteQuotaRepo(db_path)
    stored = repo.reinitialize(_quota(saved_vendor.id, daily_used=1))

    assert repo.increment_if_headroom(saved_vendor.id, stored.version, NOW) is True
    after = repo.get(saved_vendor.id)
    assert (after.daily_used, after.weekly_used, after.yearly_used) == (2, 1, 1)

    assert repo.increment_if_headroom(saved_vendor.id, after.version, NOW) is False
    assert repo.get(saved_vendor.id).daily_used == 2


def test_reinitialize_bumps_version(db_path, saved_vendor):
    repo = SQLiteQuotaRepo(db_path)
    first = repo.reinitialize(_quota(saved_vendor.id))

    second = repo.reinitialize(_quota(saved_vendor.id, plan_id="growth", daily_limit=10))

    assert second.version == first.version + 1
    assert second.daily_limit == 10


# --- Top-ups ---


def test_top_ups_consumed_oldest_first(db_path, saved_vendor):
    repo = SQLiteTopUpRepo(db_path)
    older = repo.insert(
        VendorAdditionalLeads(
            vendor_id=saved_vendor.id,
            leads_purchased=1,
            leads_remaining=1,
            amount_paid=150,
            created_at=NOW,
        )
    )
    newer = repo.insert(
        VendorAdditionalLeads(
            vendor_id=saved_vendor.id,
            leads_purchased=10,
            leads_remaining=10,
            amount_paid=1500,
            created_at=NOW + timedelta(hours=1),
        )
    )

    assert repo.consume_one(saved_vendor.id) is True
    assert repo.consume_one(saved_vendor.id) is True

    remaining = {p.id: p.leads_remaining for p in repo.list_for_vendor(saved_vendor.id)}
    assert remaining == {older.id: 0, newer.id: 9}
    assert repo.remaining_for_vendor(saved_vendor.id) == 9


def test_consume_from_empty_pool(db_path, saved_vendor):
    assert SQLiteTopUpRepo(db_path).consume_one(saved_vendor.id) is False


# --- Unit of Work ---


def test_uncommitted_work_is_rolled_back(db_path):
    vendor = Vendor(display_name="Ghost")
    with SQLiteUnitOfWork(db_path) as uow:
        uow.begin()
        uow.vendors.save(vendor)

    assert SQLiteVendorRepo(db_path).get_by_id(vendor.id) is None


def test_error_inside_unit_of_work_rolls_back(db_path):
    vendor = Vendor(display_name="Ghost")
    with pytest.raises(RuntimeError):
        with SQLiteUnitOfWork(db_path) as uow:
            uow.begin()
            uow.vendors.save(vendor)
            raise RuntimeError("boom")

    assert SQLiteVendorRepo(db_path).get_by_id(vendor.id) is None


def test_committed_work_is_visible(db_path):
    vendor = Vendor(display_name="Real")
    with SQLiteUnitOfWork(db_path) as uow:
        uow.begin()
        uow.vendors.save(vendor)
        uow.commit()

    assert SQLiteVendorRepo(db_path).get_by_id(vendor.id).display_name == "Real"


def test_unit_of_work_outside_with_block(db_path):
    uow = SQLiteUnitOfWork(db_path)

    with pytest.raises(RuntimeError):
        uow.begin()
