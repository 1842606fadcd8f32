from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from ..core.enums import LedgerEntryType, SalaryType

ZERO = Decimal("0")


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


@dataclass(frozen=True)
class LedgerEntry:
    """Payment, deduction or recovery booked against one payroll month."""

    user_id: int
    year: int
    month: int
    entry_type: LedgerEntryType
    amount: Decimal
    entry_date: date
    description: str = ""
    entry_id: Optional[int] = None
    created_by: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entry_id,
            "amount": _money(self.amount),
            "type": self.entry_type.value,
            "description": self.description,
            "date": self.entry_date.isoformat(),
        }


@dataclass(frozen=True)
class PayrollLine:
    line_type: str
    description: str
    amount: Decimal
    quantity: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.line_type,
            "description": self.description,
            "amount": _money(self.amount),
            "quantity": str(self.quantity) if self.quantity is not None else None,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    present_days: int = 0
    leave_days: int = 0
    paid_days: int = 0
    rejected_days: int = 0
    pending_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    late_minutes: int = 0
    working_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "presentDays": self.present_days,
            "leaveDays": self.leave_days,
            "paidDays": self.paid_days,
            "rejectedDays": self.rejected_days,
            "pendingDays": self.pending_days,
            "absentDays": self.absent_days,
            "halfDays": self.half_days,
            "lateMinutes": self.late_minutes,
            "workingHours": str(self.working_hours),
            "overtimeHours": str(self.overtime_hours),
        }


@dataclass(frozen=True)
class PayrollResult:
    """Derived monthly payroll figures. Recomputed on every read, never stored."""

    user_id: int
    year: int
    month: int
    salary_type: Optional[SalaryType] = None
    summary: AttendanceSummary = field(default_factory=AttendanceSummary)
    base_amount: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    penalty_amount: Decimal = ZERO
    gross_amount: Decimal = ZERO
    pf_amount: Decimal = ZERO
    esi_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_recovered: Decimal = ZERO
    balance_amount: Decimal = ZERO
    payments: Tuple[LedgerEntry, ...] = ()
    deductions: Tuple[LedgerEntry, ...] = ()
    recoveries: Tuple[LedgerEntry, ...] = ()
    lines: Tuple[PayrollLine, ...] = ()
    missing_salary_config: bool = False
    diagnostics: Tuple[str, ...] = ()

    @property
    def statutory_amount(self) -> Decimal:
        return self.pf_amount + self.esi_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "year": self.year,
            "month": self.month,
            "salaryType": self.salary_type.value if self.salary_type else None,
            "summary": self.summary.to_dict(),
            "baseAmount": _money(self.base_amount),
            "overtimeAmount": _money(self.overtime_amount),
            "penaltyAmount": _money(self.penalty_amount),
            "grossAmount": _money(self.gross_amount),
            "pfAmount": _money(self.pf_amount),
            "esiAmount": _money(self.esi_amount),
            "netAmount": _money(self.net_amount),
            "totalPaid": _money(self.total_paid),
            "totalRecovered": _money(self.total_recovered),
            "balanceAmount": _money(self.balance_amount),
            "payments": [e.to_dict() for e in self.payments],
            "deductions": [e.to_dict() for e in self.deductions],
            "recoveries": [e.to_dict() for e in self.recoveries],
            "breakdown": [line.to_dict() for line in self.lines],
            "missingSalaryConfig": self.missing_salary_config,
            "diagnostics": list(self.diagnostics),
        }
