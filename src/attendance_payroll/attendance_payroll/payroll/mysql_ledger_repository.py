from __future__ import annotations

from typing import Sequence

from ..core.enums import LedgerEntryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall
from .ledger_repository import LedgerRepository
from .model import LedgerEntry


class MySQLLedgerRepository(LedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user_month(self, user_id: int, year: int, month: int) -> Sequence[LedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT entry_id, user_id, year, month, entry_type, amount, entry_date, description, created_by
                FROM ledger_entries
                WHERE user_id=%s AND year=%s AND month=%s
                ORDER BY entry_date ASC, entry_id ASC
                """,
                (int(user_id), int(year), int(month)),
            )
            rows = fetchall(cur)
        return [
            LedgerEntry(
                entry_id=int(r["entry_id"]),
                user_id=int(r["user_id"]),
                year=int(r["year"]),
                month=int(r["month"]),
                entry_type=LedgerEntryType(r["entry_type"]),
                amount=as_decimal(r["amount"]),
                entry_date=r["entry_date"],
                description=r.get("description") or "",
                created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
            )
            for r in rows
        ]

    def add(self, entry: LedgerEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO ledger_entries(user_id, year, month, entry_type, amount, entry_date, description, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.user_id,
                    entry.year,
                    entry.month,
                    entry.entry_type.value,
                    entry.amount,
                    entry.entry_date,
                    entry.description,
                    entry.created_by,
                ),
            )
            return int(cur.lastrowid)
