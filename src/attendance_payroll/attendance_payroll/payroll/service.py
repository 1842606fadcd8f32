from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds
from ..common.validators import require_non_negative
from ..company.repository import CompanySettingsRepository
from ..core.enums import LedgerEntryType
from ..core.exceptions import DomainError, RecordNotFound, StorageError, ValidationError
from ..salary.repository import SalaryConfigRepository
from ..staff.repository import StaffRepository
from .calculator.factory import PayrollCalculatorFactory
from .engine import compute_payroll
from .ledger_repository import LedgerRepository
from .model import LedgerEntry, PayrollResult

logger = logging.getLogger(__name__)


def check_period(year: int, month: int) -> None:
    if not 1 <= int(month) <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not 1970 <= int(year) <= 9999:
        raise ValidationError("year is out of range")


@dataclass(frozen=True)
class BatchPayroll:
    company_id: int
    year: int
    month: int
    results: List[PayrollResult] = field(default_factory=list)
    errors: Dict[int, str] = field(default_factory=dict)


class PayrollService:
    """Read-only monthly payroll over approved attendance and the payment ledger."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        salaries: SalaryConfigRepository,
        staff: StaffRepository,
        companies: CompanySettingsRepository,
        ledger: LedgerRepository,
        *,
        calculators: Optional[PayrollCalculatorFactory] = None,
    ):
        self._attendance = attendance
        self._salaries = salaries
        self._staff = staff
        self._companies = companies
        self._ledger = ledger
        self._calculators = calculators or PayrollCalculatorFactory()

    def compute_monthly_payroll(self, user_id: int, year: int, month: int) -> PayrollResult:
        check_period(year, month)
        member = self._staff.get_by_id(user_id)
        if not member:
            raise RecordNotFound("Staff member not found")

        settings = self._companies.get_settings(member.company_id)
        first, last = month_bounds(year, month)
        result = compute_payroll(
            user_id=user_id,
            year=year,
            month=month,
            settings=settings,
            versions=self._salaries.list_versions(user_id),
            records=self._attendance.list_for_user_in_range(user_id, first, last),
            ledger=self._ledger.list_for_user_month(user_id, year, month),
            joining_date=member.joining_date,
            calculators=self._calculators,
        )
        if result.missing_salary_config:
            logger.warning("[payroll] no salary configuration user_id=%s period=%04d-%02d", user_id, year, month)
        return result

    def compute_company_month(self, company_id: int, year: int, month: int) -> BatchPayroll:
        check_period(year, month)
        batch = BatchPayroll(company_id=company_id, year=year, month=month)
        for member in self._staff.list_active(company_id):
            try:
                batch.results.append(self.compute_monthly_payroll(member.user_id, year, month))
            except (DomainError, StorageError) as exc:
                logger.warning("[payroll] batch skipped user_id=%s: %s", member.user_id, exc)
                batch.errors[member.user_id] = str(exc)
        logger.info(
            "[payroll] batch company_id=%s period=%04d-%02d computed=%s failed=%s",
            company_id,
            year,
            month,
            len(batch.results),
            len(batch.errors),
        )
        return batch

    def record_ledger_entry(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        entry_type: LedgerEntryType,
        amount,
        entry_date: date,
        description: str = "",
        created_by: Optional[int] = None,
    ) -> LedgerEntry:
        """Book a payment, deduction or recovery against a payroll month."""

        check_period(year, month)
        if not self._staff.get_by_id(user_id):
            raise RecordNotFound("Staff member not found")
        value: Decimal = require_non_negative(amount, "amount")
        if value == 0:
            raise ValidationError("amount must be greater than 0")

        entry = LedgerEntry(
            user_id=user_id,
            year=year,
            month=month,
            entry_type=entry_type,
            amount=value,
            entry_date=entry_date,
            description=(description or "").strip(),
            created_by=created_by,
        )
        entry_id = self._ledger.add(entry)
        logger.info(
            "[payroll] ledger %s user_id=%s period=%04d-%02d amount=%s",
            entry_type.value.lower(),
            user_id,
            year,
            month,
            value,
        )
        return replace(entry, entry_id=entry_id)
