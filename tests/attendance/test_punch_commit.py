import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

import pytest

from attendance_payroll.common.tokens import PunchClaims, PunchTokenSigner
from attendance_payroll.core.enums import AttendanceStatus, AuditAction, PunchDirection
from attendance_payroll.core.exceptions import AlreadyPunchedIn, InvalidValidationToken, NoOpenPunch

PUNCH_IN_AT = datetime(2025, 3, 10, 9, 0)
PUNCH_OUT_AT = datetime(2025, 3, 10, 19, 0)


def _punch(world, user_id, direction, at, evidence="img/evidence.jpg"):
    service = world.container.attendance_service
    validation = service.validate_punch(user_id, direction, now=at)
    assert validation.ok, validation.reason
    return service.commit_punch(user_id, direction, evidence, validation.token, now=at)


def test_full_day_computes_working_and_overtime_hours(world):
    opened = _punch(world, 1, PunchDirection.IN, PUNCH_IN_AT, evidence="img/in.jpg")
    closed = _punch(world, 1, PunchDirection.OUT, PUNCH_OUT_AT, evidence="img/out.jpg")

    assert opened.attendance_id == closed.attendance_id
    assert closed.shift_duration_hours == Decimal("9")
    assert closed.working_hours == Decimal("10")
    assert closed.overtime_hours == Decimal("1")
    assert closed.status == AttendanceStatus.PENDING
    assert closed.punch_in_image_ref == "img/in.jpg"
    assert closed.punch_out_image_ref == "img/out.jpg"

    stored = world.attendance.get_by_id(closed.attendance_id)
    assert stored == closed
    assert [e.action for e in world.audit.entries] == [AuditAction.PUNCH_IN, AuditAction.PUNCH_OUT]


def test_evidence_is_optional(world):
    record = _punch(world, 1, PunchDirection.IN, PUNCH_IN_AT, evidence="   ")

    assert record.punch_in_image_ref is None


def test_commit_uses_late_minutes_from_validation(world, fixed_now):
    service = world.container.attendance_service
    validation = service.validate_punch(1, PunchDirection.IN, now=fixed_now)

    record = service.commit_punch(1, PunchDirection.IN, None, validation.token, now=datetime(2025, 3, 10, 9, 17))

    assert record.late_minutes == 15
    assert record.punch_in == datetime(2025, 3, 10, 9, 17)


def test_commit_without_token_is_refused(world, fixed_now):
    with pytest.raises(InvalidValidationToken):
        world.container.attendance_service.commit_punch(1, PunchDirection.IN, None, None, now=fixed_now)

    assert world.attendance.all() == []


def test_commit_with_foreign_token_is_refused(world, fixed_now):
    foreign = PunchTokenSigner("another-secret").issue(
        PunchClaims(user_id=1, direction=PunchDirection.IN, attendance_date=fixed_now.date())
    )

    with pytest.raises(InvalidValidationToken):
        world.container.attendance_service.commit_punch(1, PunchDirection.IN, None, foreign, now=fixed_now)


def test_token_is_bound_to_user_and_direction(world, fixed_now):
    service = world.container.attendance_service
    token = service.validate_punch(1, PunchDirection.IN, now=fixed_now).token

    with pytest.raises(InvalidValidationToken):
        service.commit_punch(3, PunchDirection.IN, None, token, now=fixed_now)
    with pytest.raises(InvalidValidationToken):
        service.commit_punch(1, PunchDirection.OUT, None, token, now=fixed_now)

    assert world.attendance.all() == []


def test_token_from_previous_day_is_refused(world):
    service = world.container.attendance_service
    token = service.validate_punch(1, PunchDirection.IN, now=datetime(2025, 3, 9, 23, 59)).token

    with pytest.raises(InvalidValidationToken):
        service.commit_punch(1, PunchDirection.IN, None, token, now=datetime(2025, 3, 10, 0, 1))


def test_punch_out_token_must_match_open_session(world):
    _punch(world, 1, PunchDirection.IN, PUNCH_IN_AT)
    forged = world.signer.issue(
        PunchClaims(user_id=1, direction=PunchDirection.OUT, attendance_date=PUNCH_IN_AT.date(), attendance_id=999)
    )

    with pytest.raises(InvalidValidationToken):
        world.container.attendance_service.commit_punch(1, PunchDirection.OUT, None, forged, now=PUNCH_OUT_AT)


def test_reusing_a_token_does_not_create_a_second_record(world, fixed_now):
    service = world.container.attendance_service
    token = service.validate_punch(1, PunchDirection.IN, now=fixed_now).token
    service.commit_punch(1, PunchDirection.IN, None, token, now=fixed_now)

    with pytest.raises(AlreadyPunchedIn):
        service.commit_punch(1, PunchDirection.IN, None, token, now=fixed_now)

    assert len(world.attendance.all()) == 1


def test_rules_are_rechecked_at_commit(world):
    service = world.container.attendance_service
    _punch(world, 1, PunchDirection.IN, PUNCH_IN_AT)
    out_token = service.validate_punch(1, PunchDirection.OUT, now=PUNCH_OUT_AT).token
    service.commit_punch(1, PunchDirection.OUT, None, out_token, now=PUNCH_OUT_AT)

    with pytest.raises(NoOpenPunch):
        service.commit_punch(1, PunchDirection.OUT, None, out_token, now=PUNCH_OUT_AT)


def test_simultaneous_punch_ins_create_exactly_one_record(world, fixed_now):
    service = world.container.attendance_service
    token = service.validate_punch(1, PunchDirection.IN, now=fixed_now).token
    barrier = threading.Barrier(2)

    def commit():
        barrier.wait()
        try:
            return service.commit_punch(1, PunchDirection.IN, None, token, now=fixed_now)
        except AlreadyPunchedIn as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(pool.map(lambda _: commit(), range(2)))

    committed = [o for o in outcomes if not isinstance(o, Exception)]
    refused = [o for o in outcomes if isinstance(o, AlreadyPunchedIn)]
    assert len(committed) == 1
    assert len(refused) == 1
    assert len(world.attendance.all()) == 1
    assert [e.action for e in world.audit.entries] == [AuditAction.PUNCH_IN]
