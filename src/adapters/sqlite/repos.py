"""
SQLite repositories for the lead marketplace.

Each repo works standalone (own short-lived connection, commits per call)
or inside SQLiteUnitOfWork (shared connection, caller owns the transaction).
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.core.ports.db import DuplicatePurchaseError
from src.domain.entities import (
    BuyerContact,
    Lead,
    LeadPurchase,
    LeadStatus,
    Vendor,
    VendorAdditionalLeads,
    VendorLeadQuota,
    VendorPlanSubscription,
)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def to_db_dt(dt: datetime) -> str:
    """
    Fixed-width UTC ISO string so that SQL string comparison orders
    timestamps correctly.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_dt(s: str) -> datetime:
    dt = datetime.fromisoformat(s)
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def connect(db_path: str, *, autocommit: bool = False) -> sqlite3.Connection:
    # autocommit leaves transaction control to explicit BEGIN/COMMIT.
    if autocommit:
        conn = sqlite3.connect(db_path, timeout=30.0, isolation_level=None)
    else:
        conn = sqlite3.connect(db_path, timeout=30.0)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn
        return connect(self.db_path)

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Vendors
# -----------------------------------------------------------------------------


class SQLiteVendorRepo(SQLiteRepoBase):
    """SQLite implementation of VendorRepoPort."""

    def get_by_id(self, vendor_id: UUID) -> Vendor | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM vendors WHERE id = ?", (str(vendor_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def save(self, vendor: Vendor) -> Vendor:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO vendors (id, display_name, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    display_name=excluded.display_name,
                    status=excluded.status,
                    updated_at=excluded.updated_at
                """,
                (
                    str(vendor.id),
                    vendor.display_name,
                    vendor.status,
                    to_db_dt(vendor.created_at),
                    to_db_dt(vendor.updated_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return vendor
        finally:
            if self._should_close():
                conn.close()

    def list_all(self) -> list[Vendor]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM vendors ORDER BY created_at").fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> Vendor:
        return Vendor(
            id=UUID(row["id"]),
            display_name=row["display_name"],
            status=row["status"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


# -----------------------------------------------------------------------------
# Leads
# -----------------------------------------------------------------------------


def map_lead_row(row: dict[str, Any]) -> Lead:
    return Lead(
        id=UUID(row["id"]),
        title=row["title"],
        category=row["category"],
        location=row["location"],
        quantity=row["quantity"],
        budget=row["budget"],
        price=row["price"],
        buyer=BuyerContact(
            name=row["buyer_name"],
            email=row["buyer_email"],
            phone=row["buyer_phone"],
        ),
        owning_vendor_id=parse_uuid(row["owning_vendor_id"]),
        status=row["status"],
        created_at=parse_dt(row["created_at"]),
    )


class SQLiteLeadRepo(SQLiteRepoBase):
    """SQLite implementation of LeadRepoPort."""

    def get_by_id(self, lead_id: UUID) -> Lead | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM leads WHERE id = ?", (str(lead_id),)).fetchone()
            return map_lead_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def save(self, lead: Lead) -> Lead:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO leads (
                    id, title, category, location, quantity, budget, price,
                    buyer_name, buyer_email, buyer_phone,
                    owning_vendor_id, status, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(lead.id),
                    lead.title,
                    lead.category,
                    lead.location,
                    lead.quantity,
                    lead.budget,
                    lead.price,
                    lead.buyer.name,
                    lead.buyer.email,
                    lead.buyer.phone,
                    str(lead.owning_vendor_id) if lead.owning_vendor_id else None,
                    lead.status,
                    to_db_dt(lead.created_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return lead
        finally:
            if self._should_close():
                conn.close()

    def update_status(self, lead_id: UUID, status: LeadStatus) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE leads SET status = ? WHERE id = ?", (status, str(lead_id))
            )
            if self._should_close():
                conn.commit()
            return cur.rowcount > 0
        finally:
            if self._should_close():
                conn.close()

    def list_marketplace(
        self,
        exclude_purchased_by: UUID,
        limit: int | None,
        category: str | None = None,
    ) -> list[Lead]:
        conn = self._get_conn()
        try:
            sql = """
                SELECT * FROM leads
                WHERE owning_vendor_id IS NULL
                  AND status = 'AVAILABLE'
                  AND id NOT IN (
                      SELECT lead_id FROM lead_purchases WHERE vendor_id = ?
                  )
            """
            params: list[Any] = [str(exclude_purchased_by)]
            if category is not None:
                sql += " AND category = ?"
                params.append(category)
            sql += " ORDER BY created_at DESC, id"
            if limit is not None:
                sql += " LIMIT ?"
                params.append(limit)

            rows = conn.execute(sql, params).fetchall()
            return [map_lead_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def list_direct(self, owning_vendor_id: UUID) -> list[Lead]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM leads
                WHERE owning_vendor_id = ?
                ORDER BY created_at DESC, id
                """,
                (str(owning_vendor_id),),
            ).fetchall()
            return [map_lead_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Purchase Ledger
# -----------------------------------------------------------------------------


class SQLitePurchaseRepo(SQLiteRepoBase):
    """SQLite implementation of PurchaseRepoPort (append-only)."""

    def exists(self, vendor_id: UUID, lead_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT 1 AS hit FROM lead_purchases WHERE vendor_id = ? AND lead_id = ?",
                (str(vendor_id), str(lead_id)),
            ).fetchone()
            return row is not None
        finally:
            if self._should_close():
                conn.close()

    def get(self, vendor_id: UUID, lead_id: UUID) -> LeadPurchase | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM lead_purchases WHERE vendor_id = ? AND lead_id = ?",
                (str(vendor_id), str(lead_id)),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def insert(self, purchase: LeadPurchase) -> LeadPurchase:
        conn = self._get_conn()
        try:
            try:
                conn.execute(
                    """
                    INSERT INTO lead_purchases (
                        id, vendor_id, lead_id, amount, funded_by, granted_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(purchase.id),
                        str(purchase.vendor_id),
                        str(purchase.lead_id),
                        purchase.amount,
                        purchase.funded_by,
                        to_db_dt(purchase.granted_at),
                    ),
                )
            except sqlite3.IntegrityError as e:
                if "UNIQUE" in str(e) and "lead_purchases.vendor_id" in str(e):
                    raise DuplicatePurchaseError(purchase.vendor_id, purchase.lead_id) from e
                raise
            if self._should_close():
                conn.commit()
            return purchase
        finally:
            if self._should_close():
                conn.close()

    def list_for_vendor(self, vendor_id: UUID) -> list[tuple[LeadPurchase, Lead]]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT
                    p.id AS p_id, p.vendor_id AS p_vendor_id, p.lead_id AS p_lead_id,
                    p.amount AS p_amount, p.funded_by AS p_funded_by,
                    p.granted_at AS p_granted_at,
                    l.*
                FROM lead_purchases p
                JOIN leads l ON l.id = p.lead_id
                WHERE p.vendor_id = ?
                ORDER BY p.granted_at DESC, p.id
                """,
                (str(vendor_id),),
            ).fetchall()
            return [
                (
                    LeadPurchase(
                        id=UUID(r["p_id"]),
                        vendor_id=UUID(r["p_vendor_id"]),
                        lead_id=UUID(r["p_lead_id"]),
                        amount=r["p_amount"],
                        funded_by=r["p_funded_by"],
                        granted_at=parse_dt(r["p_granted_at"]),
                    ),
                    map_lead_row(r),
                )
                for r in rows
            ]
        finally:
            if self._should_close():
                conn.close()

    def count_for_lead(self, lead_id: UUID) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM lead_purchases WHERE lead_id = ?",
                (str(lead_id),),
            ).fetchone()
            return int(row["n"])
        finally:
            if self._should_close():
                conn.close()

    def totals_for_vendor(self, vendor_id: UUID) -> tuple[int, float]:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT COUNT(*) AS n, COALESCE(SUM(amount), 0) AS total
                FROM lead_purchases WHERE vendor_id = ?
                """,
                (str(vendor_id),),
            ).fetchone()
            return int(row["n"]), float(row["total"])
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> LeadPurchase:
        return LeadPurchase(
            id=UUID(row["id"]),
            vendor_id=UUID(row["vendor_id"]),
            lead_id=UUID(row["lead_id"]),
            amount=row["amount"],
            funded_by=row["funded_by"],
            granted_at=parse_dt(row["granted_at"]),
        )


# -----------------------------------------------------------------------------
# Subscriptions
# -----------------------------------------------------------------------------


class SQLiteSubscriptionRepo(SQLiteRepoBase):
    """SQLite implementation of SubscriptionRepoPort."""

    def get_by_id(self, subscription_id: UUID) -> VendorPlanSubscription | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM vendor_plan_subscriptions WHERE id = ?",
                (str(subscription_id),),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def get_active_row(self, vendor_id: UUID) -> VendorPlanSubscription | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT * FROM vendor_plan_subscriptions
                WHERE vendor_id = ? AND status = 'ACTIVE'
                ORDER BY start_date DESC
                LIMIT 1
                """,
                (str(vendor_id),),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def list_for_vendor(self, vendor_id: UUID) -> list[VendorPlanSubscription]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM vendor_plan_subscriptions
                WHERE vendor_id = ?
                ORDER BY start_date DESC, created_at DESC
                """,
                (str(vendor_id),),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def insert(self, sub: VendorPlanSubscription) -> VendorPlanSubscription:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO vendor_plan_subscriptions (
                    id, vendor_id, plan_id, start_date, end_date, status,
                    plan_duration_days, auto_renewal_enabled,
                    renewal_notification_sent, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._params(sub),
            )
            if self._should_close():
                conn.commit()
            return sub
        finally:
            if self._should_close():
                conn.close()

    def update(self, sub: VendorPlanSubscription) -> VendorPlanSubscription:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                UPDATE vendor_plan_subscriptions SET
                    end_date = ?,
                    status = ?,
                    auto_renewal_enabled = ?,
                    renewal_notification_sent = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    to_db_dt(sub.end_date),
                    sub.status,
                    int(sub.auto_renewal_enabled),
                    int(sub.renewal_notification_sent),
                    to_db_dt(sub.updated_at),
                    str(sub.id),
                ),
            )
            if self._should_close():
                conn.commit()
            return sub
        finally:
            if self._should_close():
                conn.close()

    def list_active_ending_between(
        self, start: datetime, end: datetime
    ) -> list[VendorPlanSubscription]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM vendor_plan_subscriptions
                WHERE status = 'ACTIVE' AND end_date >= ? AND end_date <= ?
                ORDER BY end_date
                """,
                (to_db_dt(start), to_db_dt(end)),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def count_active_ended_before(self, moment: datetime) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT COUNT(*) AS n FROM vendor_plan_subscriptions
                WHERE status = 'ACTIVE' AND end_date < ?
                """,
                (to_db_dt(moment),),
            ).fetchone()
            return int(row["n"])
        finally:
            if self._should_close():
                conn.close()

    def _params(self, sub: VendorPlanSubscription) -> tuple[Any, ...]:
        return (
            str(sub.id),
            str(sub.vendor_id),
            sub.plan_id,
            to_db_dt(sub.start_date),
            to_db_dt(sub.end_date),
            sub.status,
            sub.plan_duration_days,
            int(sub.auto_renewal_enabled),
            int(sub.renewal_notification_sent),
            to_db_dt(sub.created_at),
            to_db_dt(sub.updated_at),
        )

    def _map_row(self, row: dict[str, Any]) -> VendorPlanSubscription:
        return VendorPlanSubscription(
            id=UUID(row["id"]),
            vendor_id=UUID(row["vendor_id"]),
            plan_id=row["plan_id"],
            start_date=parse_dt(row["start_date"]),
            end_date=parse_dt(row["end_date"]),
            status=row["status"],
            plan_duration_days=row["plan_duration_days"],
            auto_renewal_enabled=bool(row["auto_renewal_enabled"]),
            renewal_notification_sent=bool(row["renewal_notification_sent"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


# -----------------------------------------------------------------------------
# Quota
# -----------------------------------------------------------------------------


class SQLiteQuotaRepo(SQLiteRepoBase):
    """SQLite implementation of QuotaRepoPort (compare-and-set on version)."""

    def get(self, vendor_id: UUID) -> VendorLeadQuota | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM vendor_lead_quota WHERE vendor_id = ?", (str(vendor_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def reinitialize(self, quota: VendorLeadQuota) -> VendorLeadQuota:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO vendor_lead_quota (
                    vendor_id, plan_id,
                    daily_used, daily_limit, weekly_used, weekly_limit,
                    yearly_used, yearly_limit, last_reset_date, version, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
                ON CONFLICT(vendor_id) DO UPDATE SET
                    plan_id=excluded.plan_id,
                    daily_used=excluded.daily_used,
                    daily_limit=excluded.daily_limit,
                    weekly_used=excluded.weekly_used,
                    weekly_limit=excluded.weekly_limit,
                    yearly_used=excluded.yearly_used,
                    yearly_limit=excluded.yearly_limit,
                    last_reset_date=excluded.last_reset_date,
                    version=vendor_lead_quota.version + 1,
                    updated_at=excluded.updated_at
                """,
                (
                    str(quota.vendor_id),
                    quota.plan_id,
                    quota.daily_used,
                    quota.daily_limit,
                    quota.weekly_used,
                    quota.weekly_limit,
                    quota.yearly_used,
                    quota.yearly_limit,
                    to_db_dt(quota.last_reset_date),
                    to_db_dt(quota.updated_at),
                ),
            )
            row = conn.execute(
                "SELECT * FROM vendor_lead_quota WHERE vendor_id = ?",
                (str(quota.vendor_id),),
            ).fetchone()
            if self._should_close():
                conn.commit()
            return self._map_row(row)
        finally:
            if self._should_close():
                conn.close()

    def compare_and_set_counters(
        self, quota: VendorLeadQuota, expected_version: int
    ) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE vendor_lead_quota SET
                    daily_used = ?,
                    weekly_used = ?,
                    yearly_used = ?,
                    last_reset_date = ?,
                    version = version + 1,
                    updated_at = ?
                WHERE vendor_id = ? AND version = ?
                """,
                (
                    quota.daily_used,
                    quota.weekly_used,
                    quota.yearly_used,
                    to_db_dt(quota.last_reset_date),
                    to_db_dt(quota.updated_at),
                    str(quota.vendor_id),
                    expected_version,
                ),
            )
            if self._should_close():
                conn.commit()
            return cur.rowcount == 1
        finally:
            if self._should_close():
                conn.close()

    def increment_if_headroom(
        self, vendor_id: UUID, expected_version: int, now: datetime
    ) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE vendor_lead_quota SET
                    daily_used = daily_used + 1,
                    weekly_used = weekly_used + 1,
                    yearly_used = yearly_used + 1,
                    version = version + 1,
                    updated_at = ?
                WHERE vendor_id = ?
                  AND version = ?
                  AND daily_used < daily_limit
                  AND weekly_used < weekly_limit
                  AND yearly_used < yearly_limit
                """,
                (to_db_dt(now), str(vendor_id), expected_version),
            )
            if self._should_close():
                conn.commit()
            return cur.rowcount == 1
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> VendorLeadQuota:
        return VendorLeadQuota(
            vendor_id=UUID(row["vendor_id"]),
            plan_id=row["plan_id"],
            daily_used=row["daily_used"],
            daily_limit=row["daily_limit"],
            weekly_used=row["weekly_used"],
            weekly_limit=row["weekly_limit"],
            yearly_used=row["yearly_used"],
            yearly_limit=row["yearly_limit"],
            last_reset_date=parse_dt(row["last_reset_date"]),
            version=row["version"],
            updated_at=parse_dt(row["updated_at"]),
        )


# -----------------------------------------------------------------------------
# Top-ups
# -----------------------------------------------------------------------------


class SQLiteTopUpRepo(SQLiteRepoBase):
    """SQLite implementation of TopUpRepoPort."""

    def insert(self, pack: VendorAdditionalLeads) -> VendorAdditionalLeads:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO vendor_additional_leads (
                    id, vendor_id, leads_purchased, leads_remaining, amount_paid, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(pack.id),
                    str(pack.vendor_id),
                    pack.leads_purchased,
                    pack.leads_remaining,
                    pack.amount_paid,
                    to_db_dt(pack.created_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return pack
        finally:
            if self._should_close():
                conn.close()

    def list_for_vendor(self, vendor_id: UUID) -> list[VendorAdditionalLeads]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM vendor_additional_leads
                WHERE vendor_id = ? ORDER BY created_at, id
                """,
                (str(vendor_id),),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def remaining_for_vendor(self, vendor_id: UUID) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT COALESCE(SUM(leads_remaining), 0) AS n
                FROM vendor_additional_leads WHERE vendor_id = ?
                """,
                (str(vendor_id),),
            ).fetchone()
            return int(row["n"])
        finally:
            if self._should_close():
                conn.close()

    def consume_one(self, vendor_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE vendor_additional_leads
                SET leads_remaining = leads_remaining - 1
                WHERE id = (
                    SELECT id FROM vendor_additional_leads
                    WHERE vendor_id = ? AND leads_remaining > 0
                    ORDER BY created_at, id
                    LIMIT 1
                )
                AND leads_remaining > 0
                """,
                (str(vendor_id),),
            )
            if self._should_close():
                conn.commit()
            return cur.rowcount == 1
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> VendorAdditionalLeads:
        return VendorAdditionalLeads(
            id=UUID(row["id"]),
            vendor_id=UUID(row["vendor_id"]),
            leads_purchased=row["leads_purchased"],
            leads_remaining=row["leads_remaining"],
            amount_paid=row["amount_paid"],
            created_at=parse_dt(row["created_at"]),
        )
