from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus, AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import DuplicateKey, as_decimal, db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AuditEntry
from .repository import AttendanceRepository, AuditTrail

logger = logging.getLogger(__name__)

_COLUMNS = """
    attendance_id, user_id, company_id, attendance_date, punch_in, punch_out,
    punch_in_image, punch_out_image, status, late_minutes, working_hours,
    overtime_hours, shift_duration_hours, approval_reason, approved_by, approved_at,
    auto_punch_out, requires_approval
"""


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        attendance_date=r["attendance_date"],
        punch_in=r.get("punch_in"),
        punch_out=r.get("punch_out"),
        punch_in_image_ref=r.get("punch_in_image"),
        punch_out_image_ref=r.get("punch_out_image"),
        status=AttendanceStatus(r["status"]),
        late_minutes=int(r.get("late_minutes") or 0),
        working_hours=as_decimal(r.get("working_hours")),
        overtime_hours=as_decimal(r.get("overtime_hours")),
        shift_duration_hours=as_decimal(r.get("shift_duration_hours"), None),
        approval_reason=r.get("approval_reason"),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=r.get("approved_at"),
        auto_punch_out=bool(r.get("auto_punch_out")),
        requires_approval=bool(r.get("requires_approval")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, *, order: str = "", limit: Optional[int] = None):
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE {where}"
        if order:
            sql += f" ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT %s"
            params = params + (int(limit),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        rows = self._select("attendance_id=%s", (int(attendance_id),))
        return rows[0] if rows else None

    def get_for_user_and_date(self, user_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        rows = self._select("user_id=%s AND attendance_date=%s", (int(user_id), attendance_date))
        return rows[0] if rows else None

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        rows = self._select(
            "user_id=%s AND punch_in IS NOT NULL AND punch_out IS NULL",
            (int(user_id),),
            order="attendance_date DESC",
            limit=1,
        )
        return rows[0] if rows else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        return self._select("user_id=%s", (int(user_id),), order="attendance_date DESC", limit=limit)

    def list_for_user_in_range(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        return self._select(
            "user_id=%s AND attendance_date BETWEEN %s AND %s",
            (int(user_id), start, end),
            order="attendance_date ASC",
        )

    def list_for_company_in_range(
        self, company_id: int, start: date, end: date, *, user_id: Optional[int] = None
    ) -> Sequence[AttendanceRecord]:
        where = "company_id=%s AND attendance_date BETWEEN %s AND %s"
        params: tuple = (int(company_id), start, end)
        if user_id is not None:
            where += " AND user_id=%s"
            params = params + (int(user_id),)
        return self._select(where, params, order="attendance_date ASC, user_id ASC")

    def list_open(self, company_id: int, through: date) -> Sequence[AttendanceRecord]:
        return self._select(
            "company_id=%s AND attendance_date<=%s AND punch_in IS NOT NULL AND punch_out IS NULL",
            (int(company_id), through),
            order="attendance_date ASC, user_id ASC",
        )

    def create_punch_in(self, record: AttendanceRecord) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, company_id, attendance_date, punch_in, punch_in_image,
                        status, late_minutes, shift_duration_hours
                    )
                    SELECT %s,%s,%s,%s,%s,%s,%s,%s FROM DUAL
                    WHERE NOT EXISTS (
                        SELECT 1 FROM attendance_records
                        WHERE user_id=%s AND punch_in IS NOT NULL AND punch_out IS NULL
                    )
                    """,
                    (
                        record.user_id,
                        record.company_id,
                        record.attendance_date,
                        record.punch_in,
                        record.punch_in_image_ref,
                        record.status.value,
                        int(record.late_minutes),
                        record.shift_duration_hours,
                        record.user_id,
                    ),
                )
                if cur.rowcount == 0:
                    return None
                return int(cur.lastrowid)
        except DuplicateKey:
            logger.info("[attendance] punch-in lost race user_id=%s date=%s", record.user_id, record.attendance_date)
            return None

    def create_marker(self, record: AttendanceRecord) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, company_id, attendance_date, status, approval_reason, approved_by, approved_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.user_id,
                        record.company_id,
                        record.attendance_date,
                        record.status.value,
                        record.approval_reason,
                        record.approved_by,
                        record.approved_at,
                    ),
                )
                return int(cur.lastrowid)
        except DuplicateKey:
            return None

    def close_punch_out(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET punch_out=%s, punch_out_image=%s, working_hours=%s, overtime_hours=%s,
                    auto_punch_out=%s, requires_approval=%s, approval_reason=%s
                WHERE attendance_id=%s AND punch_in IS NOT NULL AND punch_out IS NULL
                """,
                (
                    record.punch_out,
                    record.punch_out_image_ref,
                    record.working_hours,
                    record.overtime_hours,
                    int(record.auto_punch_out),
                    int(record.requires_approval),
                    record.approval_reason,
                    record.attendance_id,
                ),
            )
            return cur.rowcount > 0

    def update_approval(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock serializes concurrent approvers on the same record.
            cur.execute("SELECT attendance_id FROM attendance_records WHERE attendance_id=%s FOR UPDATE", (record.attendance_id,))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, approved_by=%s, approved_at=%s, approval_reason=%s
                WHERE attendance_id=%s
                """,
                (
                    record.status.value,
                    record.approved_by,
                    record.approved_at,
                    record.approval_reason,
                    record.attendance_id,
                ),
            )
            return True

    def update_fields(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT attendance_id FROM attendance_records WHERE attendance_id=%s FOR UPDATE", (record.attendance_id,))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE attendance_records
                SET working_hours=%s, overtime_hours=%s, shift_duration_hours=%s, late_minutes=%s,
                    approval_reason=%s
                WHERE attendance_id=%s
                """,
                (
                    record.working_hours,
                    record.overtime_hours,
                    record.shift_duration_hours,
                    int(record.late_minutes),
                    record.approval_reason,
                    record.attendance_id,
                ),
            )
            return True


class MySQLAuditTrail(AuditTrail):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_audit(attendance_id, action, actor_id, from_status, to_status, meta, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.attendance_id,
                    entry.action.value,
                    entry.actor_id,
                    entry.from_status.value if entry.from_status else None,
                    entry.to_status.value if entry.to_status else None,
                    json.dumps(entry.meta, default=str),
                    entry.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_attendance(self, attendance_id: int) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT entry_id, attendance_id, action, actor_id, from_status, to_status, meta, created_at
                FROM attendance_audit
                WHERE attendance_id=%s
                ORDER BY entry_id ASC
                """,
                (int(attendance_id),),
            )
            rows = fetchall(cur)
        return [
            AuditEntry(
                entry_id=int(r["entry_id"]),
                attendance_id=int(r["attendance_id"]),
                action=AuditAction(r["action"]),
                actor_id=int(r["actor_id"]) if r.get("actor_id") is not None else None,
                from_status=AttendanceStatus(r["from_status"]) if r.get("from_status") else None,
                to_status=AttendanceStatus(r["to_status"]) if r.get("to_status") else None,
                meta=json.loads(r["meta"]) if r.get("meta") else {},
                created_at=r["created_at"],
            )
            for r in rows
        ]
