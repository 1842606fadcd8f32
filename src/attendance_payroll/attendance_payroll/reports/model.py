from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core.enums import AttendanceStatus

ZERO = Decimal("0")


@dataclass(frozen=True)
class ReportFilters:
    user_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    # When False, days without any record are folded into "absent".
    distinguish_no_record: bool = False


@dataclass
class StatusCounts:
    present: int = 0
    absent: int = 0
    late: int = 0
    leave: int = 0
    pending: int = 0
    rejected: int = 0
    no_record: int = 0

    def merge(self, other: "StatusCounts") -> None:
        self.present += other.present
        self.absent += other.absent
        self.late += other.late
        self.leave += other.leave
        self.pending += other.pending
        self.rejected += other.rejected
        self.no_record += other.no_record

    def to_dict(self, *, distinguish_no_record: bool = False) -> Dict[str, int]:
        return {
            "present": self.present,
            "absent": self.absent if distinguish_no_record else self.absent + self.no_record,
            "late": self.late,
            "leave": self.leave,
            "pending": self.pending,
            "rejected": self.rejected,
            "noRecord": self.no_record,
        }


@dataclass
class StaffRollup:
    user_id: int
    full_name: str
    counts: StatusCounts = field(default_factory=StatusCounts)
    expected_days: int = 0
    working_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    late_minutes: int = 0

    @property
    def attendance_percentage(self) -> Decimal:
        if self.expected_days <= 0:
            return Decimal("0.00")
        pct = Decimal(self.counts.present) * Decimal(100) / Decimal(self.expected_days)
        return pct.quantize(Decimal("0.01"))


@dataclass
class AttendanceReport:
    company_id: int
    start: date
    end: date
    filters: ReportFilters
    totals: StatusCounts = field(default_factory=StatusCounts)
    daily: Dict[date, StatusCounts] = field(default_factory=dict)
    weekly: Dict[date, StatusCounts] = field(default_factory=dict)
    staff: List[StaffRollup] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        distinguish = self.filters.distinguish_no_record
        return {
            "companyId": self.company_id,
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "summary": self.totals.to_dict(distinguish_no_record=distinguish),
            "daily": [
                {"date": d.isoformat(), **c.to_dict(distinguish_no_record=distinguish)}
                for d, c in sorted(self.daily.items())
            ],
            "weekly": [
                {"weekStart": d.isoformat(), **c.to_dict(distinguish_no_record=distinguish)}
                for d, c in sorted(self.weekly.items())
            ],
            "staff": [
                {
                    "userId": s.user_id,
                    "fullName": s.full_name,
                    **s.counts.to_dict(distinguish_no_record=distinguish),
                    "expectedDays": s.expected_days,
                    "workingHours": str(s.working_hours),
                    "overtimeHours": str(s.overtime_hours),
                    "lateMinutes": s.late_minutes,
                    "attendancePercentage": str(s.attendance_percentage),
                }
                for s in self.staff
            ],
        }
