from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import SalaryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import SalaryConfig
from .repository import SalaryConfigRepository

_COLUMNS = """
    config_id, user_id, salary_type, base_salary, hourly_rate, daily_rate,
    working_days_target, overtime_rate, pf_esi_applicable, joining_date, effective_from
"""


def _to_config(r: dict) -> SalaryConfig:
    return SalaryConfig(
        config_id=int(r["config_id"]),
        user_id=int(r["user_id"]),
        salary_type=SalaryType(r["salary_type"]),
        base_salary=as_decimal(r.get("base_salary"), None),
        hourly_rate=as_decimal(r.get("hourly_rate"), None),
        daily_rate=as_decimal(r.get("daily_rate"), None),
        working_days_target=int(r["working_days_target"]),
        overtime_rate=as_decimal(r.get("overtime_rate"), None),
        pf_esi_applicable=bool(r.get("pf_esi_applicable")),
        joining_date=r.get("joining_date"),
        effective_from=r["effective_from"],
    )


class MySQLSalaryConfigRepository(SalaryConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_current(self, user_id: int) -> Optional[SalaryConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM salary_configs
                WHERE user_id=%s
                ORDER BY effective_from DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_config(r) if r else None

    def get_active_on(self, user_id: int, day: date) -> Optional[SalaryConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM salary_configs
                WHERE user_id=%s AND effective_from<=%s
                ORDER BY effective_from DESC
                LIMIT 1
                """,
                (int(user_id), day),
            )
            r = fetchone(cur)
            return _to_config(r) if r else None

    def list_versions(self, user_id: int) -> Sequence[SalaryConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM salary_configs WHERE user_id=%s ORDER BY effective_from ASC",
                (int(user_id),),
            )
            return [_to_config(r) for r in fetchall(cur)]

    def save_version(self, config: SalaryConfig) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO salary_configs(
                    user_id, salary_type, base_salary, hourly_rate, daily_rate,
                    working_days_target, overtime_rate, pf_esi_applicable, joining_date, effective_from
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    config_id=LAST_INSERT_ID(config_id),
                    salary_type=VALUES(salary_type),
                    base_salary=VALUES(base_salary),
                    hourly_rate=VALUES(hourly_rate),
                    daily_rate=VALUES(daily_rate),
                    working_days_target=VALUES(working_days_target),
                    overtime_rate=VALUES(overtime_rate),
                    pf_esi_applicable=VALUES(pf_esi_applicable),
                    joining_date=VALUES(joining_date)
                """,
                (
                    int(config.user_id),
                    config.salary_type.value,
                    config.base_salary,
                    config.hourly_rate,
                    config.daily_rate,
                    int(config.working_days_target),
                    config.overtime_rate,
                    1 if config.pf_esi_applicable else 0,
                    config.joining_date,
                    config.effective_from,
                ),
            )
            return int(cur.lastrowid)
