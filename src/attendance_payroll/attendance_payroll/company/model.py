from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import parse_hhmm
from ..core import constants as c


@dataclass(frozen=True)
class CompanySettings:
    """Company-wide punch and payroll rules.

    Optional limits (punch-in window, minimum hours) are off when None.
    """

    company_id: int
    shift_start_time: time = parse_hhmm(c.DEFAULT_SHIFT_START)
    shift_end_time: time = parse_hhmm(c.DEFAULT_SHIFT_END)
    timezone: str = c.DEFAULT_TIMEZONE
    grace_period_minutes: int = c.DEFAULT_GRACE_PERIOD_MINUTES
    early_punch_in_minutes: int = c.DEFAULT_EARLY_PUNCH_IN_MINUTES
    enforce_punch_in_window: bool = False
    min_working_hours: Optional[Decimal] = None
    max_daily_hours: Decimal = c.DEFAULT_MAX_DAILY_HOURS
    stale_session_hours: int = c.DEFAULT_STALE_SESSION_HOURS
    unpaid_break_minutes: int = c.DEFAULT_UNPAID_BREAK_MINUTES
    overtime_threshold_hours: Decimal = c.DEFAULT_OVERTIME_THRESHOLD_HOURS
    auto_punch_out_buffer_minutes: int = c.DEFAULT_AUTO_PUNCH_OUT_BUFFER_MINUTES
    half_day_threshold_hours: Decimal = c.DEFAULT_HALF_DAY_THRESHOLD_HOURS
    pf_percentage: Decimal = c.DEFAULT_PF_PERCENTAGE
    esi_percentage: Decimal = c.DEFAULT_ESI_PERCENTAGE
    overtime_multiplier: Decimal = c.DEFAULT_OVERTIME_MULTIPLIER
    leave_counts_as_present: bool = False
    enable_late_penalty: bool = False
    late_penalty_per_minute: Decimal = Decimal("0")
    enable_absent_penalty: bool = False
    absent_penalty_per_day: Decimal = Decimal("0")

    @property
    def shift_duration_hours(self) -> Decimal:
        """Configured shift length; overnight shifts wrap past midnight."""
        start = self.shift_start_time.hour * 60 + self.shift_start_time.minute
        end = self.shift_end_time.hour * 60 + self.shift_end_time.minute
        minutes = end - start
        if minutes <= 0:
            minutes += 24 * 60
        return Decimal(minutes) / Decimal(60)
