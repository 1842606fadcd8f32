from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import CompanySettings
from .repository import CompanySettingsRepository

_DECIMAL_FIELDS = {
    "min_working_hours",
    "max_daily_hours",
    "overtime_threshold_hours",
    "half_day_threshold_hours",
    "pf_percentage",
    "esi_percentage",
    "overtime_multiplier",
    "late_penalty_per_minute",
    "absent_penalty_per_day",
}
_INT_FIELDS = {
    "grace_period_minutes",
    "early_punch_in_minutes",
    "stale_session_hours",
    "unpaid_break_minutes",
    "auto_punch_out_buffer_minutes",
}
_BOOL_FIELDS = {"enforce_punch_in_window", "leave_counts_as_present", "enable_late_penalty", "enable_absent_penalty"}


class MySQLCompanySettingsRepository(CompanySettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_settings(self, company_id: int) -> CompanySettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM companies WHERE company_id=%s", (int(company_id),))
            row = fetchone(cur)

        if not row:
            return CompanySettings(company_id=int(company_id))
        return CompanySettings(company_id=int(company_id), **_overrides(row))

    def list_company_ids(self) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT company_id FROM companies ORDER BY company_id")
            return [int(r["company_id"]) for r in fetchall(cur)]


def _overrides(row: Dict[str, Any]) -> Dict[str, Any]:
    """Map non-NULL company columns onto CompanySettings keyword arguments."""

    out: Dict[str, Any] = {}
    for f in fields(CompanySettings):
        if f.name == "company_id":
            continue
        value = row.get(f.name)
        if value is None:
            continue
        if f.name in ("shift_start_time", "shift_end_time"):
            out[f.name] = normalize_mysql_time(value)
        elif f.name in _DECIMAL_FIELDS:
            out[f.name] = as_decimal(value)
        elif f.name in _INT_FIELDS:
            out[f.name] = int(value)
        elif f.name in _BOOL_FIELDS:
            out[f.name] = bool(value)
        else:
            out[f.name] = str(value)
    return out
