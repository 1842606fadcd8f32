from __future__ import annotations

from datetime import date, datetime

from ...company.model import CompanySettings
from ..model import AttendanceRecord
from .base import AttendanceStrategy, HoursDecision, PunchInDecision, standard_hours


class OnTimeStrategy(AttendanceStrategy):
    """Punch-in at or before shift start, normal punch-out."""

    def decide_punch_in(self, *, now: datetime, today: date, settings: CompanySettings) -> PunchInDecision:
        return PunchInDecision(late_minutes=0)

    def decide_punch_out(self, *, now: datetime, record: AttendanceRecord, settings: CompanySettings) -> HoursDecision:
        return standard_hours(now=now, record=record, settings=settings)
