from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import whole_minutes_between
from ...company.model import CompanySettings
from ..model import AttendanceRecord
from .base import AttendanceStrategy, HoursDecision, PunchInDecision, standard_hours


class LateStrategy(AttendanceStrategy):
    """Late punch-in. Grace only widens the punch window, lateness counts from shift start."""

    def decide_punch_in(self, *, now: datetime, today: date, settings: CompanySettings) -> PunchInDecision:
        shift_start = datetime.combine(today, settings.shift_start_time)
        return PunchInDecision(late_minutes=whole_minutes_between(shift_start, now))

    def decide_punch_out(self, *, now: datetime, record: AttendanceRecord, settings: CompanySettings) -> HoursDecision:
        return standard_hours(now=now, record=record, settings=settings)
