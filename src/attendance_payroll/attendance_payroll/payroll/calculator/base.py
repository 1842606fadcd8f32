from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...company.model import CompanySettings
from ...core.constants import MONTHLY_HOURS_BASIS
from ...core.enums import SalaryType
from ...salary.model import SalaryConfig
from ..model import ZERO


@dataclass(frozen=True)
class ConfigPortion:
    """Attendance totals for the days governed by one salary configuration version."""

    config: SalaryConfig
    present_days: int = 0
    paid_days: int = 0
    absent_days: int = 0
    late_minutes: int = 0
    working_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll), one per salary type."""

    salary_type: SalaryType

    @abstractmethod
    def base_amount(self, portion: ConfigPortion) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def base_quantity(self, portion: ConfigPortion) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def describe(self, config: SalaryConfig) -> str:
        raise NotImplementedError

    def overtime_rate(self, config: SalaryConfig, settings: CompanySettings) -> Decimal:
        """Configured overtime rate, else the hourly equivalent times the company multiplier."""
        if config.overtime_rate:
            return config.overtime_rate
        hourly = config.hourly_rate or (config.base_salary or ZERO) / MONTHLY_HOURS_BASIS
        return hourly * settings.overtime_multiplier

    def overtime_amount(self, portion: ConfigPortion, settings: CompanySettings) -> Decimal:
        if portion.overtime_hours <= 0:
            return ZERO
        return self.overtime_rate(portion.config, settings) * portion.overtime_hours
