from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import hours_between
from ...company.model import CompanySettings
from ..model import AttendanceRecord
from .base import ZERO, AttendanceStrategy, HoursDecision, PunchInDecision


class AutoPunchOutStrategy(AttendanceStrategy):
    """System-closed session: hours capped at the daily maximum, no overtime."""

    def decide_punch_in(self, *, now: datetime, today: date, settings: CompanySettings) -> PunchInDecision:
        return PunchInDecision()

    def decide_punch_out(self, *, now: datetime, record: AttendanceRecord, settings: CompanySettings) -> HoursDecision:
        working = hours_between(record.punch_in, now, minus_minutes=settings.unpaid_break_minutes)
        return HoursDecision(working_hours=min(working, settings.max_daily_hours), overtime_hours=ZERO)
