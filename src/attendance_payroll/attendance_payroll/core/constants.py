"""Constants and defaults.

Note: Company rows may leave any of these NULL; the repository falls back here.
"""

from decimal import Decimal

DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_SHIFT_START = "09:00"
DEFAULT_SHIFT_END = "18:00"
DEFAULT_GRACE_PERIOD_MINUTES = 30
DEFAULT_EARLY_PUNCH_IN_MINUTES = 30
DEFAULT_UNPAID_BREAK_MINUTES = 0
DEFAULT_OVERTIME_THRESHOLD_HOURS = Decimal("0")
DEFAULT_MAX_DAILY_HOURS = Decimal("16")
DEFAULT_STALE_SESSION_HOURS = 20
DEFAULT_AUTO_PUNCH_OUT_BUFFER_MINUTES = 30
DEFAULT_HALF_DAY_THRESHOLD_HOURS = Decimal("4")

DEFAULT_PF_PERCENTAGE = Decimal("12")
DEFAULT_ESI_PERCENTAGE = Decimal("0.75")
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")
# Hourly equivalent of a monthly salary when no overtime rate is configured.
MONTHLY_HOURS_BASIS = Decimal("160")

DEFAULT_PUNCH_TOKEN_TTL_SECONDS = 120
DEFAULT_HISTORY_LIMIT = 30

AUTO_PUNCH_OUT_REASON = "Auto punch-out - forgot to punch out"
AUTO_ABSENT_REASON = "No punch-in recorded for the day"
