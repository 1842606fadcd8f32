from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from ..common.datetime_utils import hours_between, now_local
from ..common.tokens import PunchClaims, PunchTokenSigner
from ..company.model import CompanySettings
from ..company.repository import CompanySettingsRepository
from ..core.enums import PunchDirection
from ..core.exceptions import (
    AlreadyPunchedIn,
    DomainError,
    NoOpenPunch,
    PunchNotAllowed,
    RecordNotFound,
    SalaryNotConfigured,
    SessionExpired,
    ValidationError,
)
from ..salary.repository import SalaryConfigRepository
from ..staff.model import StaffMember
from ..staff.repository import StaffRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PunchValidation:
    """Outcome of a pre-punch check. Refusals are values, not exceptions."""

    ok: bool
    direction: PunchDirection
    code: Optional[str] = None
    reason: Optional[str] = None
    attendance_date: Optional[date] = None
    attendance_id: Optional[int] = None
    late_minutes: int = 0
    requires_approval: bool = False
    token: Optional[str] = None

    @property
    def is_late(self) -> bool:
        return self.late_minutes > 0

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"valid": self.ok, "punchType": self.direction.value}
        if not self.ok:
            out.update({"code": self.code, "error": self.reason})
            return out
        out.update(
            {
                "attendanceDate": self.attendance_date.isoformat() if self.attendance_date else None,
                "attendanceId": self.attendance_id,
                "lateMinutes": self.late_minutes,
                "isLate": self.is_late,
                "requiresApproval": self.requires_approval,
                "validationToken": self.token,
            }
        )
        return out


@dataclass(frozen=True)
class PunchContext:
    staff: StaffMember
    settings: CompanySettings
    now: datetime
    attendance_date: date
    open_record: Optional[AttendanceRecord] = None
    late_minutes: int = 0
    requires_approval: bool = False


def parse_direction(value: Any) -> PunchDirection:
    try:
        return PunchDirection(str(value).lower())
    except ValueError:
        raise ValidationError("Invalid punch type", code="INVALID_PUNCH_TYPE")


class PunchValidator:
    """Decides whether a punch may proceed and issues the token the commit needs."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        salaries: SalaryConfigRepository,
        staff: StaffRepository,
        companies: CompanySettingsRepository,
        *,
        signer: PunchTokenSigner,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._salaries = salaries
        self._staff = staff
        self._companies = companies
        self._signer = signer
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def validate(self, user_id: int, direction: PunchDirection, *, now: datetime | None = None) -> PunchValidation:
        try:
            ctx = self.check(user_id, direction, now=now)
        except DomainError as exc:
            logger.info("[attendance] punch refused user_id=%s direction=%s code=%s", user_id, direction.value, exc.code)
            return PunchValidation(ok=False, direction=direction, code=exc.code, reason=exc.message)

        attendance_id = ctx.open_record.attendance_id if ctx.open_record else None
        token = self._signer.issue(
            PunchClaims(
                user_id=user_id,
                direction=direction,
                attendance_date=ctx.attendance_date,
                late_minutes=ctx.late_minutes,
                attendance_id=attendance_id,
            )
        )
        return PunchValidation(
            ok=True,
            direction=direction,
            attendance_date=ctx.attendance_date,
            attendance_id=attendance_id,
            late_minutes=ctx.late_minutes,
            requires_approval=ctx.requires_approval,
            token=token,
        )

    def check(self, user_id: int, direction: PunchDirection, *, now: datetime | None = None) -> PunchContext:
        """Raise the DomainError that blocks this punch, or return its context."""

        staff = self._staff.get_by_id(user_id)
        if not staff or not staff.is_active:
            raise RecordNotFound("Staff member not found")

        settings = self._companies.get_settings(staff.company_id)
        now = now or now_local(settings.timezone)
        today = now.date()

        if self._salaries.get_active_on(user_id, today) is None:
            raise SalaryNotConfigured("Salary is not configured. Contact your administrator.")

        if direction == PunchDirection.IN:
            return self._check_punch_in(staff, settings, now, today)
        return self._check_punch_out(staff, settings, now, today)

    def _check_punch_in(self, staff: StaffMember, settings: CompanySettings, now: datetime, today: date) -> PunchContext:
        open_record = self._attendance.get_open_for_user(staff.user_id)
        if open_record is not None:
            if open_record.attendance_date == today:
                raise AlreadyPunchedIn("You already have an active attendance session. Please punch out first.")
            raise AlreadyPunchedIn(
                f"Your session from {open_record.attendance_date.isoformat()} is still open. Contact your administrator."
            )
        if self._attendance.get_for_user_and_date(staff.user_id, today) is not None:
            raise AlreadyPunchedIn("Attendance for today is already recorded.")

        if settings.enforce_punch_in_window:
            shift_start = datetime.combine(today, settings.shift_start_time)
            opens_at = shift_start - timedelta(minutes=settings.early_punch_in_minutes)
            closes_at = shift_start + timedelta(minutes=settings.grace_period_minutes)
            if now < opens_at:
                raise PunchNotAllowed(f"Punch-in opens at {opens_at:%H:%M}.", code="PUNCH_IN_NOT_ALLOWED")
            if now > closes_at:
                raise PunchNotAllowed(f"Punch-in closed at {closes_at:%H:%M}.", code="PUNCH_IN_NOT_ALLOWED")

        strategy = self._factory.for_punch_in(now=now, today=today, settings=settings)
        decision = strategy.decide_punch_in(now=now, today=today, settings=settings)
        return PunchContext(
            staff=staff,
            settings=settings,
            now=now,
            attendance_date=today,
            late_minutes=decision.late_minutes,
        )

    def _check_punch_out(self, staff: StaffMember, settings: CompanySettings, now: datetime, today: date) -> PunchContext:
        record = self._attendance.get_for_user_and_date(staff.user_id, today)
        if record is None or not record.is_open:
            raise NoOpenPunch("No active punch-in found for today. Please punch in first.")

        hours_open = hours_between(record.punch_in, now)
        if hours_open > settings.stale_session_hours:
            raise SessionExpired(
                f"Your attendance session has expired (>{settings.stale_session_hours} hours). Contact your administrator."
            )
        if settings.min_working_hours is not None and hours_open < settings.min_working_hours:
            raise PunchNotAllowed(
                f"Minimum working hours is {settings.min_working_hours}.", code="PUNCH_OUT_NOT_ALLOWED"
            )

        strategy = self._factory.for_punch_out(record=record)
        hours = strategy.decide_punch_out(now=now, record=record, settings=settings)
        return PunchContext(
            staff=staff,
            settings=settings,
            now=now,
            attendance_date=today,
            open_record=record,
            late_minutes=record.late_minutes,
            requires_approval=hours.requires_approval,
        )
