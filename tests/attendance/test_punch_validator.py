from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from attendance_payroll.attendance.model import AttendanceRecord
from attendance_payroll.attendance.validator import parse_direction
from attendance_payroll.core.enums import PunchDirection, SalaryType
from attendance_payroll.core.exceptions import ValidationError
from attendance_payroll.salary.model import SalaryConfig


def _validate(world, user_id, direction, now):
    return world.container.attendance_service.validate_punch(user_id, direction, now=now)


def _open_record(world, punch_in: datetime, *, user_id: int = 1) -> AttendanceRecord:
    return world.attendance.add(
        AttendanceRecord(
            attendance_id=0,
            user_id=user_id,
            company_id=1,
            attendance_date=punch_in.date(),
            punch_in=punch_in,
            punch_out=None,
            shift_duration_hours=Decimal("9"),
        )
    )


def test_punch_in_refused_without_salary_config(world, fixed_now):
    result = _validate(world, 2, PunchDirection.IN, fixed_now)

    assert not result.ok
    assert result.code == "SALARY_NOT_CONFIGURED"
    assert result.token is None
    assert result.to_dict()["valid"] is False


def test_punch_in_after_shift_start_reports_late_minutes(world, fixed_now):
    result = _validate(world, 1, PunchDirection.IN, fixed_now)

    assert result.ok
    assert result.late_minutes == 15
    assert result.is_late
    assert result.attendance_date == date(2025, 3, 10)
    assert result.token

    payload = result.to_dict()
    assert payload["lateMinutes"] == 15
    assert payload["isLate"] is True
    assert payload["validationToken"] == result.token


def test_punch_in_before_shift_start_is_on_time(world):
    result = _validate(world, 1, PunchDirection.IN, datetime(2025, 3, 10, 8, 50))

    assert result.ok
    assert result.late_minutes == 0
    assert not result.is_late


def test_validation_writes_nothing(world, fixed_now):
    _validate(world, 1, PunchDirection.IN, fixed_now)

    assert world.attendance.all() == []
    assert world.audit.entries == []


def test_unknown_or_inactive_staff_is_refused(world, fixed_now):
    assert _validate(world, 99, PunchDirection.IN, fixed_now).code == "RECORD_NOT_FOUND"

    world.staff.members[1] = replace(world.staff.members[1], is_active=False)
    assert _validate(world, 1, PunchDirection.IN, fixed_now).code == "RECORD_NOT_FOUND"


def test_salary_effective_later_does_not_count_today(world, fixed_now):
    world.salaries.save_version(
        SalaryConfig(
            user_id=2,
            salary_type=SalaryType.MONTHLY,
            working_days_target=26,
            effective_from=fixed_now.date() + timedelta(days=1),
            base_salary=Decimal("20000"),
        )
    )

    assert _validate(world, 2, PunchDirection.IN, fixed_now).code == "SALARY_NOT_CONFIGURED"


def test_second_punch_in_same_day_is_refused(world, fixed_now):
    _open_record(world, datetime(2025, 3, 10, 9, 0))

    result = _validate(world, 1, PunchDirection.IN, fixed_now)

    assert result.code == "ALREADY_PUNCHED_IN"


def test_closed_day_blocks_another_punch_in(world, fixed_now):
    world.closed_record(fixed_now.date())

    assert _validate(world, 1, PunchDirection.IN, fixed_now).code == "ALREADY_PUNCHED_IN"


def test_open_session_from_previous_day_blocks_punch_in(world, fixed_now):
    _open_record(world, datetime(2025, 3, 9, 9, 0))

    result = _validate(world, 1, PunchDirection.IN, fixed_now)

    assert result.code == "ALREADY_PUNCHED_IN"
    assert "2025-03-09" in result.reason


def test_punch_in_window_when_enforced(world):
    world.set_company(enforce_punch_in_window=True, early_punch_in_minutes=30, grace_period_minutes=30)

    too_early = _validate(world, 1, PunchDirection.IN, datetime(2025, 3, 10, 8, 20))
    in_window = _validate(world, 1, PunchDirection.IN, datetime(2025, 3, 10, 9, 25))
    too_late = _validate(world, 1, PunchDirection.IN, datetime(2025, 3, 10, 9, 31))

    assert too_early.code == "PUNCH_IN_NOT_ALLOWED"
    assert in_window.ok and in_window.late_minutes == 25
    assert too_late.code == "PUNCH_IN_NOT_ALLOWED"


def test_punch_out_without_punch_in_is_refused(world, fixed_now):
    result = _validate(world, 1, PunchDirection.OUT, fixed_now)

    assert result.code == "NO_OPEN_PUNCH"


def test_punch_out_carries_open_record_and_late_minutes(world):
    record = world.attendance.add(
        AttendanceRecord(
            attendance_id=0,
            user_id=1,
            company_id=1,
            attendance_date=date(2025, 3, 10),
            punch_in=datetime(2025, 3, 10, 9, 10),
            punch_out=None,
            late_minutes=10,
            shift_duration_hours=Decimal("9"),
        )
    )

    result = _validate(world, 1, PunchDirection.OUT, datetime(2025, 3, 10, 18, 0))

    assert result.ok
    assert result.attendance_id == record.attendance_id
    assert result.late_minutes == 10
    assert not result.requires_approval


def test_punch_out_after_stale_limit_is_session_expired(world):
    world.set_company(stale_session_hours=12)
    _open_record(world, datetime(2025, 3, 10, 6, 0))

    result = _validate(world, 1, PunchDirection.OUT, datetime(2025, 3, 10, 18, 1))

    assert result.code == "SESSION_EXPIRED"


def test_punch_out_below_minimum_hours_is_refused(world):
    world.set_company(min_working_hours=Decimal("4"))
    _open_record(world, datetime(2025, 3, 10, 9, 0))

    early = _validate(world, 1, PunchDirection.OUT, datetime(2025, 3, 10, 12, 59))
    enough = _validate(world, 1, PunchDirection.OUT, datetime(2025, 3, 10, 13, 0))

    assert early.code == "PUNCH_OUT_NOT_ALLOWED"
    assert enough.ok


def test_long_day_is_flagged_for_approval(world):
    world.set_company(max_daily_hours=Decimal("10"))
    _open_record(world, datetime(2025, 3, 10, 7, 0))

    result = _validate(world, 1, PunchDirection.OUT, datetime(2025, 3, 10, 18, 0))

    assert result.ok
    assert result.requires_approval


@pytest.mark.parametrize("raw, expected", [("in", PunchDirection.IN), ("OUT", PunchDirection.OUT)])
def test_parse_direction(raw, expected):
    assert parse_direction(raw) == expected


def test_parse_direction_rejects_unknown_value():
    with pytest.raises(ValidationError) as exc:
        parse_direction("sideways")
    assert exc.value.code == "INVALID_PUNCH_TYPE"
