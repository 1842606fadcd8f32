from __future__ import annotations

from decimal import Decimal

from ...core.enums import SalaryType
from ...salary.model import SalaryConfig
from ..model import ZERO
from .base import ConfigPortion, PayrollCalculator


class HourlyPayrollCalculator(PayrollCalculator):
    """hourly_rate times approved working hours."""

    salary_type = SalaryType.HOURLY

    def base_amount(self, portion: ConfigPortion) -> Decimal:
        if not portion.config.hourly_rate:
            return ZERO
        return portion.config.hourly_rate * portion.working_hours

    def base_quantity(self, portion: ConfigPortion) -> Decimal:
        return portion.working_hours

    def describe(self, config: SalaryConfig) -> str:
        return f"Hourly Rate ({config.hourly_rate or 0}/hr)"
