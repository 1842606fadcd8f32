from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_days, week_start
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..payroll.service import PayrollService
from ..staff.repository import StaffRepository
from .model import AttendanceReport, ReportFilters, StaffRollup, StatusCounts

logger = logging.getLogger(__name__)

MAX_REPORT_DAYS = 366
ZERO = Decimal("0")


def classify(record: Optional[AttendanceRecord]) -> StatusCounts:
    """Counts contributed by one staff-day."""

    counts = StatusCounts()
    if record is None:
        counts.no_record = 1
        return counts
    if record.status == AttendanceStatus.APPROVED:
        counts.present = 1
    elif record.status == AttendanceStatus.PENDING:
        counts.pending = 1
    elif record.status == AttendanceStatus.REJECTED:
        counts.rejected = 1
    elif record.status == AttendanceStatus.LEAVE:
        counts.leave = 1
    else:
        counts.absent = 1
    if record.late_minutes > 0 and record.status in (AttendanceStatus.APPROVED, AttendanceStatus.PENDING):
        counts.late = 1
    return counts


def _matches_status(record: Optional[AttendanceRecord], filters: ReportFilters) -> bool:
    if record is None:
        # No-record days are reported as absent unless kept apart.
        return filters.status == AttendanceStatus.ABSENT and not filters.distinguish_no_record
    return record.status == filters.status


@dataclass(frozen=True)
class SalaryReport:
    company_id: int
    year: int
    month: int
    rows: List[dict] = field(default_factory=list)
    totals: Dict[str, str] = field(default_factory=dict)
    errors: Dict[int, str] = field(default_factory=dict)


class ReportService:
    """Read-only aggregation of attendance and payroll for managers."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        staff: StaffRepository,
        payroll: PayrollService,
    ):
        self._attendance = attendance
        self._staff = staff
        self._payroll = payroll

    def get_attendance_report(
        self,
        company_id: int,
        start: date,
        end: date,
        filters: Optional[ReportFilters] = None,
    ) -> AttendanceReport:
        filters = filters or ReportFilters()
        if end < start:
            raise ValidationError("End date must not be before start date")
        if (end - start).days + 1 > MAX_REPORT_DAYS:
            raise ValidationError(f"Report range cannot exceed {MAX_REPORT_DAYS} days")

        members = [m for m in self._staff.list_active(company_id) if filters.user_id in (None, m.user_id)]
        records = self._attendance.list_for_company_in_range(company_id, start, end, user_id=filters.user_id)
        by_key: Dict[tuple, AttendanceRecord] = {(r.user_id, r.attendance_date): r for r in records}

        report = AttendanceReport(company_id=company_id, start=start, end=end, filters=filters)
        for member in sorted(members, key=lambda m: (m.full_name.lower(), m.user_id)):
            rollup = StaffRollup(user_id=member.user_id, full_name=member.full_name)
            for day in iter_days(start, end):
                if member.joining_date and day < member.joining_date:
                    continue
                record = by_key.get((member.user_id, day))
                if filters.status is not None and not _matches_status(record, filters):
                    continue
                counts = classify(record)
                rollup.expected_days += 1
                rollup.counts.merge(counts)
                if record is not None and record.status == AttendanceStatus.APPROVED:
                    rollup.working_hours += record.working_hours
                    rollup.overtime_hours += record.overtime_hours
                    rollup.late_minutes += record.late_minutes
                report.totals.merge(counts)
                report.daily.setdefault(day, StatusCounts()).merge(counts)
                report.weekly.setdefault(week_start(day), StatusCounts()).merge(counts)
            report.staff.append(rollup)

        logger.info(
            "[reports] attendance company_id=%s range=%s..%s staff=%s",
            company_id,
            start,
            end,
            len(report.staff),
        )
        return report

    def build_salary_summary(self, company_id: int, year: int, month: int) -> SalaryReport:
        batch = self._payroll.compute_company_month(company_id, year, month)
        names = {m.user_id: m.full_name for m in self._staff.list_active(company_id)}

        keys = ("gross_amount", "net_amount", "total_paid", "total_recovered", "balance_amount")
        totals = {k: ZERO for k in keys}
        rows: List[dict] = []
        for result in sorted(batch.results, key=lambda r: (names.get(r.user_id, ""), r.user_id)):
            for k in keys:
                totals[k] += getattr(result, k)
            rows.append(
                {
                    "userId": result.user_id,
                    "fullName": names.get(result.user_id, ""),
                    "salaryType": result.salary_type.value if result.salary_type else None,
                    "presentDays": result.summary.present_days,
                    "workingHours": str(result.summary.working_hours),
                    "grossAmount": f"{result.gross_amount:.2f}",
                    "netAmount": f"{result.net_amount:.2f}",
                    "totalPaid": f"{result.total_paid:.2f}",
                    "balanceAmount": f"{result.balance_amount:.2f}",
                    "missingSalaryConfig": result.missing_salary_config,
                }
            )

        return SalaryReport(
            company_id=company_id,
            year=year,
            month=month,
            rows=rows,
            totals={
                "totalGross": f"{totals['gross_amount']:.2f}",
                "totalNet": f"{totals['net_amount']:.2f}",
                "totalPaid": f"{totals['total_paid']:.2f}",
                "totalRecovered": f"{totals['total_recovered']:.2f}",
                "totalBalance": f"{totals['balance_amount']:.2f}",
                "staffCount": str(len(rows)),
            },
            errors=dict(batch.errors),
        )
