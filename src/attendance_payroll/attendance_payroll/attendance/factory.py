from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..company.model import CompanySettings
from .model import AttendanceRecord
from .strategies.auto_punch_out_strategy import AutoPunchOutStrategy
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_punch_in(self, *, now: datetime, today: date, settings: CompanySettings) -> AttendanceStrategy:
        shift_start = datetime.combine(today, settings.shift_start_time)
        if now <= shift_start:
            return OnTimeStrategy()
        return LateStrategy()

    def for_punch_out(self, *, record: AttendanceRecord, automatic: bool = False) -> AttendanceStrategy:
        if automatic:
            return AutoPunchOutStrategy()
        if record.is_late:
            return LateStrategy()
        return OnTimeStrategy()
