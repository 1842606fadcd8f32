from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..core.enums import SalaryType


@dataclass(frozen=True)
class SalaryConfig:
    """One version of an employee's pay terms.

    Versions are keyed by effective_from; payroll uses the version active on each
    attendance date so a later edit never rewrites past months.
    """

    user_id: int
    salary_type: SalaryType
    working_days_target: int
    effective_from: date
    base_salary: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None
    overtime_rate: Optional[Decimal] = None
    pf_esi_applicable: bool = False
    joining_date: Optional[date] = None
    config_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        def num(v: Optional[Decimal]) -> Optional[str]:
            return str(v) if v is not None else None

        return {
            "id": self.config_id,
            "userId": self.user_id,
            "salaryType": self.salary_type.value,
            "baseSalary": num(self.base_salary),
            "hourlyRate": num(self.hourly_rate),
            "dailyRate": num(self.daily_rate),
            "overtimeRate": num(self.overtime_rate),
            "workingDaysTarget": self.working_days_target,
            "pfEsiApplicable": self.pf_esi_applicable,
            "joiningDate": self.joining_date.isoformat() if self.joining_date else None,
            "effectiveFrom": self.effective_from.isoformat(),
        }


def active_config_on(versions: Sequence[SalaryConfig], day: date) -> Optional[SalaryConfig]:
    """Latest version whose effective_from is on or before day."""

    active: Optional[SalaryConfig] = None
    for cfg in versions:
        if cfg.effective_from <= day and (active is None or cfg.effective_from >= active.effective_from):
            active = cfg
    return active
