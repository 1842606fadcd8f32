from __future__ import annotations

from dataclasses import dataclass

from ...core.enums import SalaryType
from .base import PayrollCalculator
from .hourly_calculator import HourlyPayrollCalculator
from .monthly_calculator import MonthlyPayrollCalculator


@dataclass
class PayrollCalculatorFactory:
    """Factory Pattern: one calculator per salary type."""

    def for_salary_type(self, salary_type: SalaryType) -> PayrollCalculator:
        if salary_type == SalaryType.MONTHLY:
            return MonthlyPayrollCalculator()
        if salary_type == SalaryType.HOURLY:
            return HourlyPayrollCalculator()
        raise ValueError(f"Unsupported salary type: {salary_type!r}")
