from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from ...common.datetime_utils import hours_between
from ...company.model import CompanySettings
from ..model import AttendanceRecord

ZERO = Decimal("0")


@dataclass(frozen=True)
class PunchInDecision:
    late_minutes: int = 0

    @property
    def is_late(self) -> bool:
        return self.late_minutes > 0


@dataclass(frozen=True)
class HoursDecision:
    working_hours: Decimal
    overtime_hours: Decimal
    requires_approval: bool = False


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a punch is scored."""

    @abstractmethod
    def decide_punch_in(self, *, now: datetime, today: date, settings: CompanySettings) -> PunchInDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_punch_out(self, *, now: datetime, record: AttendanceRecord, settings: CompanySettings) -> HoursDecision:
        raise NotImplementedError


def standard_hours(*, now: datetime, record: AttendanceRecord, settings: CompanySettings) -> HoursDecision:
    """Worked time minus the unpaid break; overtime beyond shift length plus threshold."""

    working = hours_between(record.punch_in, now, minus_minutes=settings.unpaid_break_minutes)
    shift = record.shift_duration_hours if record.shift_duration_hours is not None else settings.shift_duration_hours
    overtime = max(ZERO, working - (shift + settings.overtime_threshold_hours))
    return HoursDecision(
        working_hours=working,
        overtime_hours=overtime,
        requires_approval=working > settings.max_daily_hours,
    )
