"""
SQLite Unit of Work.

Gives the marketplace services one connection and one transaction across
every repository, so that a grant (ledger insert + quota increment) and a
subscribe (deactivate + insert + quota reset) land together or not at all.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from src.adapters.sqlite.repos import (
    SQLiteLeadRepo,
    SQLitePurchaseRepo,
    SQLiteQuotaRepo,
    SQLiteSubscriptionRepo,
    SQLiteTopUpRepo,
    SQLiteVendorRepo,
    connect,
)


class SQLiteUnitOfWork:
    """
    SQLite Unit of Work implementation.

    The connection runs in autocommit mode until begin() issues
    BEGIN IMMEDIATE, which takes the database write lock up front.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

        # Lazy-initialized repositories
        self._vendors: SQLiteVendorRepo | None = None
        self._leads: SQLiteLeadRepo | None = None
        self._purchases: SQLitePurchaseRepo | None = None
        self._subscriptions: SQLiteSubscriptionRepo | None = None
        self._quotas: SQLiteQuotaRepo | None = None
        self._top_ups: SQLiteTopUpRepo | None = None

    def __enter__(self) -> SQLiteUnitOfWork:
        self._conn = connect(self.db_path, autocommit=True)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if exc_type is not None:
            self.rollback()
        if self._conn:
            if self._conn.in_transaction:
                # Uncommitted work is discarded.
                self._conn.rollback()
            self._conn.close()
            self._conn = None
        self._vendors = self._leads = self._purchases = None
        self._subscriptions = self._quotas = self._top_ups = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Unit of work used outside its with-block")
        return self._conn

    def begin(self) -> None:
        self.connection.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        if self._conn and self._conn.in_transaction:
            self._conn.commit()

    def rollback(self) -> None:
        if self._conn and self._conn.in_transaction:
            self._conn.rollback()

    @property
    def vendors(self) -> SQLiteVendorRepo:
        if self._vendors is None:
            self._vendors = SQLiteVendorRepo(self.db_path, self.connection)
        return self._vendors

    @property
    def leads(self) -> SQLiteLeadRepo:
        if self._leads is None:
            self._leads = SQLiteLeadRepo(self.db_path, self.connection)
        return self._leads

    @property
    def purchases(self) -> SQLitePurchaseRepo:
        if self._purchases is None:
            self._purchases = SQLitePurchaseRepo(self.db_path, self.connection)
        return self._purchases

    @property
    def subscriptions(self) -> SQLiteSubscriptionRepo:
        if self._subscriptions is None:
            self._subscriptions = SQLiteSubscriptionRepo(self.db_path, self.connection)
        return self._subscriptions

    @property
    def quotas(self) -> SQLiteQuotaRepo:
        if self._quotas is None:
            self._quotas = SQLiteQuotaRepo(self.db_path, self.connection)
        return self._quotas

    @property
    def top_ups(self) -> SQLiteTopUpRepo:
        if self._top_ups is None:
            self._top_ups = SQLiteTopUpRepo(self.db_path, self.connection)
        return self._top_ups


def sqlite_uow_factory(db_path: str) -> Any:
    """Return a zero-arg callable producing fresh units of work on db_path."""

    def _factory() -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(db_path)

    return _factory
