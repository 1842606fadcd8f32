from datetime import date, datetime

import pytest

from attendance_payroll.core.enums import ApprovalDecision, AttendanceStatus, AuditAction, PunchDirection
from attendance_payroll.core.exceptions import InvalidTransition, RecordNotFound, ValidationError

ADMIN = 50
AT = datetime(2025, 3, 11, 10, 0)


def test_approve_then_repeat_writes_one_audit_entry(world):
    record = world.closed_record(date(2025, 3, 10))
    service = world.container.attendance_service

    first = service.set_approval(record.attendance_id, ApprovalDecision.APPROVE, ADMIN, now=AT)
    second = service.set_approval(record.attendance_id, ApprovalDecision.APPROVE, ADMIN, now=AT)

    assert first.status == AttendanceStatus.APPROVED
    assert second == first
    trail = service.get_audit_trail(record.attendance_id)
    assert [e.action for e in trail] == [AuditAction.APPROVED]
    assert trail[0].from_status == AttendanceStatus.PENDING
    assert trail[0].to_status == AttendanceStatus.APPROVED
    assert trail[0].actor_id == ADMIN


def test_revoke_keeps_reason_in_audit(world):
    record = world.closed_record(date(2025, 3, 10), status=AttendanceStatus.APPROVED)

    updated = world.container.attendance_service.set_approval(
        record.attendance_id, ApprovalDecision.REJECT, ADMIN, reason="Proxy punch", now=AT
    )

    assert updated.status == AttendanceStatus.REJECTED
    assert updated.approval_reason == "Proxy punch"
    entry = world.audit.entries[-1]
    assert entry.action == AuditAction.REVOKED
    assert entry.meta == {"reason": "Proxy punch"}


def test_approval_of_unknown_record(world):
    with pytest.raises(RecordNotFound):
        world.container.attendance_service.set_approval(404, ApprovalDecision.APPROVE, ADMIN, now=AT)


def test_override_updates_numbers_and_audits(world):
    record = world.closed_record(date(2025, 3, 10), working_hours="9")

    updated = world.container.attendance_service.override_fields(
        record.attendance_id, {"working_hours": "7.5", "late_minutes": 20}, "Badge reader fault", ADMIN, now=AT
    )

    assert str(updated.working_hours) == "7.5"
    assert updated.late_minutes == 20
    assert world.attendance.get_by_id(record.attendance_id).working_hours == updated.working_hours
    entry = world.audit.entries[-1]
    assert entry.action == AuditAction.OVERRIDE
    assert entry.meta["reason"] == "Badge reader fault"
    assert set(entry.meta) == {"working_hours", "late_minutes", "reason"}


def test_override_without_reason_is_refused(world):
    record = world.closed_record(date(2025, 3, 10))

    with pytest.raises(ValidationError):
        world.container.attendance_service.override_fields(record.attendance_id, {"working_hours": "1"}, None, ADMIN)

    assert world.audit.entries == []


def test_mark_leave_creates_marker_for_empty_day(world):
    service = world.container.attendance_service

    record = service.mark_leave(1, date(2025, 3, 12), ADMIN, reason="Family event", now=AT)

    assert record.attendance_id > 0
    assert record.status == AttendanceStatus.LEAVE
    assert world.attendance.get_for_user_and_date(1, date(2025, 3, 12)) == record
    assert world.audit.entries[-1].action == AuditAction.LEAVE


def test_mark_leave_converts_rejected_day_and_is_idempotent(world):
    record = world.closed_record(date(2025, 3, 10), status=AttendanceStatus.REJECTED)
    service = world.container.attendance_service

    service.mark_leave(1, record.attendance_date, ADMIN, reason="Approved leave", now=AT)
    again = service.mark_leave(1, record.attendance_date, ADMIN, reason="Approved leave", now=AT)

    assert again.status == AttendanceStatus.LEAVE
    assert len(world.audit.entries) == 1


def test_mark_leave_refuses_open_session(world):
    service = world.container.attendance_service
    validation = service.validate_punch(1, PunchDirection.IN, now=datetime(2025, 3, 10, 9, 0))
    service.commit_punch(1, validation.direction, None, validation.token, now=datetime(2025, 3, 10, 9, 0))

    with pytest.raises(InvalidTransition):
        service.mark_leave(1, date(2025, 3, 10), ADMIN, reason="Sick", now=AT)


def test_history_is_most_recent_first(world):
    world.closed_record(date(2025, 3, 7), status=AttendanceStatus.APPROVED)
    world.closed_record(date(2025, 3, 10))

    rows = world.container.attendance_service.get_history_ui(1, limit=5)

    assert [r["date"] for r in rows] == ["2025-03-10", "2025-03-07"]
    assert rows[0]["status"] == "Pending"
    assert rows[1]["status"] == "Approved"
    assert set(rows[0]) == {"id", "date", "punch_in", "punch_out", "working_hours", "late_minutes", "status"}
    assert rows[0]["punch_in"] == "09:00:00"


def test_today_record_for_given_day(world):
    record = world.closed_record(date(2025, 3, 10))

    assert world.container.attendance_service.get_today_record(1, date(2025, 3, 10)) == record
    assert world.container.attendance_service.get_today_record(1, date(2025, 3, 11)) is None
