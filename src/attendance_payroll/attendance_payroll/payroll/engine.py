"""Monthly payroll arithmetic.

Pure functions: the same records, salary versions and ledger always produce the
same PayrollResult. Every attendance day is priced with the salary version
active on that day, so amounts are accumulated per version ("portion") and
summed at the end. Money is kept at full precision per portion and rounded to
cents (ROUND_HALF_UP) once per breakdown line; totals are sums of lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import iter_days, month_bounds
from ..company.model import CompanySettings
from ..core.enums import AttendanceStatus, LedgerEntryType
from ..salary.model import SalaryConfig, active_config_on
from .calculator.base import ConfigPortion
from .calculator.factory import PayrollCalculatorFactory
from .model import ZERO, AttendanceSummary, LedgerEntry, PayrollLine, PayrollResult

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

MISSING_SALARY_CONFIG = "MISSING_SALARY_CONFIG_FOR_PERIOD"


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class _Counter:
    present: int = 0
    leave: int = 0
    paid: int = 0
    rejected: int = 0
    pending: int = 0
    absent: int = 0
    half: int = 0
    late_minutes: int = 0
    working: Decimal = ZERO
    overtime: Decimal = ZERO

    def add(self, record: Optional[AttendanceRecord], settings: CompanySettings) -> None:
        if record is None or record.status == AttendanceStatus.ABSENT:
            self.absent += 1
        elif record.status == AttendanceStatus.APPROVED:
            self.present += 1
            self.paid += 1
            self.working += record.working_hours
            self.overtime += record.overtime_hours
            self.late_minutes += record.late_minutes
            if record.working_hours < settings.half_day_threshold_hours:
                self.half += 1
        elif record.status == AttendanceStatus.LEAVE:
            self.leave += 1
            if settings.leave_counts_as_present:
                self.paid += 1
        elif record.status == AttendanceStatus.REJECTED:
            self.rejected += 1
        else:
            self.pending += 1


@dataclass
class _PortionAcc:
    config: SalaryConfig
    counter: _Counter = field(default_factory=_Counter)

    def freeze(self) -> ConfigPortion:
        c = self.counter
        return ConfigPortion(
            config=self.config,
            present_days=c.present,
            paid_days=c.paid,
            absent_days=c.absent,
            late_minutes=c.late_minutes,
            working_hours=c.working,
            overtime_hours=c.overtime,
        )


def split_ledger(entries: Iterable[LedgerEntry]) -> Tuple[Tuple[LedgerEntry, ...], ...]:
    ordered = sorted(entries, key=lambda e: (e.entry_date, e.entry_id or 0))
    payments = tuple(e for e in ordered if e.entry_type == LedgerEntryType.PAYMENT)
    deductions = tuple(e for e in ordered if e.entry_type == LedgerEntryType.DEDUCTION)
    recoveries = tuple(e for e in ordered if e.entry_type == LedgerEntryType.RECOVERY)
    return payments, deductions, recoveries


def compute_payroll(
    *,
    user_id: int,
    year: int,
    month: int,
    settings: CompanySettings,
    versions: Sequence[SalaryConfig],
    records: Sequence[AttendanceRecord],
    ledger: Sequence[LedgerEntry] = (),
    joining_date: Optional[date] = None,
    calculators: Optional[PayrollCalculatorFactory] = None,
) -> PayrollResult:
    calculators = calculators or PayrollCalculatorFactory()
    first, last = month_bounds(year, month)
    by_day: Dict[date, AttendanceRecord] = {r.attendance_date: r for r in records if first <= r.attendance_date <= last}

    totals = _Counter()
    portions: Dict[date, _PortionAcc] = {}
    uncovered = 0
    for day in iter_days(first, last):
        if joining_date and day < joining_date:
            continue
        record = by_day.get(day)
        totals.add(record, settings)
        cfg = active_config_on(versions, day)
        if cfg is None:
            if record is not None and record.status in (AttendanceStatus.APPROVED, AttendanceStatus.LEAVE):
                uncovered += 1
            continue
        acc = portions.get(cfg.effective_from)
        if acc is None:
            acc = portions[cfg.effective_from] = _PortionAcc(config=cfg)
        acc.counter.add(record, settings)

    summary = AttendanceSummary(
        present_days=totals.present,
        leave_days=totals.leave,
        paid_days=totals.paid,
        rejected_days=totals.rejected,
        pending_days=totals.pending,
        absent_days=totals.absent,
        half_days=totals.half,
        late_minutes=totals.late_minutes,
        working_hours=totals.working,
        overtime_hours=totals.overtime,
    )
    payments, deductions, recoveries = split_ledger(ledger)
    total_paid = quantize_money(sum((e.amount for e in payments), ZERO))
    total_recovered = quantize_money(sum((e.amount for e in deductions + recoveries), ZERO))

    result = PayrollResult(
        user_id=user_id,
        year=year,
        month=month,
        summary=summary,
        total_paid=total_paid,
        total_recovered=total_recovered,
        balance_amount=total_recovered - total_paid,
        payments=payments,
        deductions=deductions,
        recoveries=recoveries,
    )
    if not portions:
        return replace(result, missing_salary_config=True, diagnostics=(MISSING_SALARY_CONFIG,))

    ordered = [portions[k].freeze() for k in sorted(portions)]
    lines, base, overtime, penalty, pf, esi = _price(ordered, settings, calculators)
    gross = base + overtime - penalty
    net = gross - pf - esi
    diagnostics: List[str] = []
    if uncovered:
        diagnostics.append(f"{MISSING_SALARY_CONFIG}: {uncovered} day(s) before the first salary version were not paid")

    return replace(
        result,
        salary_type=ordered[-1].config.salary_type,
        base_amount=base,
        overtime_amount=overtime,
        penalty_amount=penalty,
        gross_amount=gross,
        pf_amount=pf,
        esi_amount=esi,
        net_amount=net,
        balance_amount=net - total_paid + total_recovered,
        lines=tuple(lines),
        diagnostics=tuple(diagnostics),
    )


def _price(portions: Sequence[ConfigPortion], settings: CompanySettings, calculators: PayrollCalculatorFactory):
    lines: List[PayrollLine] = []
    base = overtime = penalty = ZERO
    pf_raw = esi_raw = ZERO
    late_minutes = absent_days = 0
    late_raw = absent_raw = ZERO
    versioned = len(portions) > 1

    for portion in portions:
        cfg = portion.config
        calc = calculators.for_salary_type(cfg.salary_type)
        suffix = f" from {cfg.effective_from.isoformat()}" if versioned else ""

        base_amount = calc.base_amount(portion)
        base_line = quantize_money(base_amount)
        lines.append(PayrollLine("BASE_SALARY", calc.describe(cfg) + suffix, base_line, calc.base_quantity(portion)))
        base += base_line

        ot_amount = calc.overtime_amount(portion, settings)
        if portion.overtime_hours > 0:
            ot_line = quantize_money(ot_amount)
            lines.append(PayrollLine("OVERTIME", "Overtime Pay" + suffix, ot_line, portion.overtime_hours))
            overtime += ot_line

        portion_gross = base_amount + ot_amount
        if settings.enable_late_penalty and settings.late_penalty_per_minute and portion.late_minutes:
            amount = settings.late_penalty_per_minute * portion.late_minutes
            late_raw += amount
            late_minutes += portion.late_minutes
            portion_gross -= amount
        if settings.enable_absent_penalty and settings.absent_penalty_per_day and portion.absent_days:
            amount = settings.absent_penalty_per_day * portion.absent_days
            absent_raw += amount
            absent_days += portion.absent_days
            portion_gross -= amount

        if cfg.pf_esi_applicable and portion_gross > 0:
            pf_raw += portion_gross * settings.pf_percentage / HUNDRED
            esi_raw += portion_gross * settings.esi_percentage / HUNDRED

    if late_raw:
        amount = quantize_money(late_raw)
        lines.append(PayrollLine("LATE_PENALTY", "Late Arrival Penalty", amount, Decimal(late_minutes)))
        penalty += amount
    if absent_raw:
        amount = quantize_money(absent_raw)
        lines.append(PayrollLine("ABSENT_PENALTY", "Absent Days Penalty", amount, Decimal(absent_days)))
        penalty += amount

    pf = quantize_money(pf_raw)
    esi = quantize_money(esi_raw)
    if pf:
        lines.append(PayrollLine("PF_DEDUCTION", f"Provident Fund ({settings.pf_percentage}%)", pf))
    if esi:
        lines.append(PayrollLine("ESI_DEDUCTION", f"Employee State Insurance ({settings.esi_percentage}%)", esi))
    return lines, base, overtime, penalty, pf, esi
