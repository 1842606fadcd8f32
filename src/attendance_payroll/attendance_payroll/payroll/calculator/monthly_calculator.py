from __future__ import annotations

from decimal import Decimal

from ...core.enums import SalaryType
from ...salary.model import SalaryConfig
from ..model import ZERO
from .base import ConfigPortion, PayrollCalculator


class MonthlyPayrollCalculator(PayrollCalculator):
    """base_salary prorated by paid days over the working-days target."""

    salary_type = SalaryType.MONTHLY

    def base_amount(self, portion: ConfigPortion) -> Decimal:
        cfg = portion.config
        if not cfg.base_salary or cfg.working_days_target <= 0:
            return ZERO
        return cfg.base_salary * Decimal(portion.paid_days) / Decimal(cfg.working_days_target)

    def base_quantity(self, portion: ConfigPortion) -> Decimal:
        return Decimal(portion.paid_days)

    def describe(self, config: SalaryConfig) -> str:
        return f"Monthly Base Salary ({config.base_salary or 0} / {config.working_days_target} days)"
