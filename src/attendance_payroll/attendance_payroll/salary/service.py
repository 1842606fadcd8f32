from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Optional, Sequence

from ..common.validators import optional_non_negative, require_positive_int
from ..core.enums import SalaryType
from ..core.exceptions import RecordNotFound, ValidationError
from ..staff.repository import StaffRepository
from .model import SalaryConfig
from .repository import SalaryConfigRepository

logger = logging.getLogger(__name__)


class SalaryConfigService:
    """Manager-side setup of pay terms. Each save creates or replaces one version."""

    def __init__(self, salaries: SalaryConfigRepository, staff: StaffRepository):
        self._salaries = salaries
        self._staff = staff

    def get_current(self, user_id: int) -> Optional[SalaryConfig]:
        return self._salaries.get_current(int(user_id))

    def list_history(self, user_id: int) -> Sequence[SalaryConfig]:
        return self._salaries.list_versions(int(user_id))

    def save_config(
        self,
        *,
        user_id: int,
        salary_type: Any,
        working_days_target: Any,
        base_salary: Any = None,
        hourly_rate: Any = None,
        daily_rate: Any = None,
        overtime_rate: Any = None,
        pf_esi_applicable: bool = False,
        joining_date: Optional[date] = None,
        effective_from: Optional[date] = None,
        today: Optional[date] = None,
    ) -> SalaryConfig:
        if not self._staff.get_by_id(int(user_id)):
            raise RecordNotFound("Staff member not found")

        try:
            kind = SalaryType(str(salary_type).upper())
        except ValueError:
            raise ValidationError("Salary type must be MONTHLY or HOURLY")

        target = require_positive_int(working_days_target, "Working days target")
        base = optional_non_negative(base_salary, "Base salary")
        hourly = optional_non_negative(hourly_rate, "Hourly rate")
        daily = optional_non_negative(daily_rate, "Daily rate")
        overtime = optional_non_negative(overtime_rate, "Overtime rate")

        # Only the rate selected by the salary type is kept.
        if kind == SalaryType.MONTHLY:
            if not base:
                raise ValidationError("Base salary is required for MONTHLY salary")
            hourly = None
        else:
            if not hourly:
                raise ValidationError("Hourly rate is required for HOURLY salary")
            base = None

        previous = self._salaries.get_current(int(user_id))
        if effective_from is None:
            if previous is None and joining_date is not None:
                effective_from = joining_date
            else:
                effective_from = today or date.today()

        config = SalaryConfig(
            user_id=int(user_id),
            salary_type=kind,
            working_days_target=target,
            effective_from=effective_from,
            base_salary=base,
            hourly_rate=hourly,
            daily_rate=daily,
            overtime_rate=overtime,
            pf_esi_applicable=bool(pf_esi_applicable),
            joining_date=joining_date or (previous.joining_date if previous else None),
        )
        config_id = self._salaries.save_version(config)
        logger.info(
            "[salary] saved config user_id=%s type=%s effective_from=%s config_id=%s",
            config.user_id,
            kind.value,
            effective_from,
            config_id,
        )
        return replace(config, config_id=config_id)
