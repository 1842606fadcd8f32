from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import StaffMember
from .repository import StaffRepository

_COLUMNS = "user_id, company_id, full_name, email, joining_date, is_active"


def _to_staff(r: dict) -> StaffMember:
    return StaffMember(
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        full_name=r["full_name"],
        email=r.get("email"),
        joining_date=r.get("joining_date"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[StaffMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _to_staff(r) if r else None

    def list_active(self, company_id: int) -> Sequence[StaffMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM users
                WHERE company_id=%s AND is_active=1 AND role='STAFF'
                ORDER BY full_name ASC, user_id ASC
                """,
                (int(company_id),),
            )
            return [_to_staff(r) for r in fetchall(cur)]
