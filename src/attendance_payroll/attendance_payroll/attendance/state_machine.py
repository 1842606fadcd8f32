"""Attendance lifecycle transitions.

Pure functions over AttendanceRecord values; persistence and auditing happen in
the service. Per (user, day):

    OPEN_NO_PUNCH -> PUNCHED_IN -> PUNCHED_OUT_PENDING -> APPROVED | REJECTED
    APPROVED -> REJECTED (revocation)
    OPEN_NO_PUNCH | PENDING | REJECTED | ABSENT -> LEAVE
    OPEN_NO_PUNCH -> ABSENT (system marker)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from ..common.validators import require_non_negative
from ..core.enums import AttendanceStatus, AuditAction, PunchState
from ..core.exceptions import (
    AlreadyPunchedIn,
    CannotApproveWithoutPunchOut,
    InvalidTransition,
    NoOpenPunch,
    ValidationError,
)
from .model import AttendanceRecord
from .strategies.base import ZERO, HoursDecision

OVERRIDABLE_FIELDS = ("working_hours", "overtime_hours", "shift_duration_hours", "late_minutes")


@dataclass(frozen=True)
class Transition:
    record: AttendanceRecord
    changed: bool
    action: Optional[AuditAction] = None
    from_status: Optional[AttendanceStatus] = None
    meta: Optional[Dict[str, Any]] = None


def state_of(record: Optional[AttendanceRecord]) -> PunchState:
    if record is None:
        return PunchState.OPEN_NO_PUNCH
    return record.state


def punch_in(
    existing: Optional[AttendanceRecord],
    *,
    user_id: int,
    company_id: int,
    attendance_date: date,
    at: datetime,
    image_ref: Optional[str],
    late_minutes: int,
    shift_duration_hours: Decimal,
) -> AttendanceRecord:
    """Draft of a new open record (attendance_id 0 until stored)."""

    if existing is not None:
        if existing.is_open:
            raise AlreadyPunchedIn("You already have an active attendance session.")
        raise AlreadyPunchedIn("Attendance for this day is already recorded.")
    return AttendanceRecord(
        attendance_id=0,
        user_id=user_id,
        company_id=company_id,
        attendance_date=attendance_date,
        punch_in=at,
        punch_out=None,
        punch_in_image_ref=image_ref,
        status=AttendanceStatus.PENDING,
        late_minutes=max(0, int(late_minutes)),
        shift_duration_hours=shift_duration_hours,
    )


def punch_out(
    record: Optional[AttendanceRecord],
    *,
    at: datetime,
    image_ref: Optional[str],
    hours: HoursDecision,
    automatic: bool = False,
    reason: Optional[str] = None,
) -> AttendanceRecord:
    if record is None or state_of(record) != PunchState.PUNCHED_IN:
        raise NoOpenPunch("No active punch-in found for today.")
    working = max(ZERO, hours.working_hours)
    overtime = min(max(ZERO, hours.overtime_hours), working)
    return replace(
        record,
        punch_out=at,
        punch_out_image_ref=image_ref,
        working_hours=working,
        overtime_hours=overtime,
        auto_punch_out=automatic,
        requires_approval=hours.requires_approval,
        approval_reason=reason if reason is not None else record.approval_reason,
    )


def approve(record: AttendanceRecord, *, actor_id: int, at: datetime, reason: Optional[str] = None) -> Transition:
    state = record.state
    if state == PunchState.APPROVED:
        return Transition(record=record, changed=False)
    if record.punch_out is None:
        raise CannotApproveWithoutPunchOut("Cannot approve attendance without punch out.")
    if state != PunchState.PUNCHED_OUT_PENDING:
        raise InvalidTransition(f"Cannot approve a record in state {state.value}.")
    updated = replace(
        record,
        status=AttendanceStatus.APPROVED,
        approved_by=actor_id,
        approved_at=at,
        approval_reason=reason if reason else record.approval_reason,
    )
    return Transition(record=updated, changed=True, action=AuditAction.APPROVED, from_status=record.status)


def reject(record: AttendanceRecord, *, actor_id: int, at: datetime, reason: Optional[str] = None) -> Transition:
    state = record.state
    if state == PunchState.REJECTED:
        return Transition(record=record, changed=False)
    if state not in (PunchState.PUNCHED_OUT_PENDING, PunchState.APPROVED):
        raise InvalidTransition(f"Cannot reject a record in state {state.value}.")
    action = AuditAction.REVOKED if state == PunchState.APPROVED else AuditAction.REJECTED
    updated = replace(
        record,
        status=AttendanceStatus.REJECTED,
        approved_by=actor_id,
        approved_at=at,
        approval_reason=reason if reason else record.approval_reason,
    )
    return Transition(record=updated, changed=True, action=action, from_status=record.status)


def mark_leave(
    existing: Optional[AttendanceRecord],
    *,
    user_id: int,
    company_id: int,
    attendance_date: date,
    actor_id: int,
    at: datetime,
    reason: Optional[str] = None,
) -> Transition:
    if not (reason or "").strip():
        raise ValidationError("A reason is required to mark leave.")
    reason = reason.strip()

    if existing is None:
        record = AttendanceRecord(
            attendance_id=0,
            user_id=user_id,
            company_id=company_id,
            attendance_date=attendance_date,
            punch_in=None,
            punch_out=None,
            status=AttendanceStatus.LEAVE,
            approval_reason=reason,
            approved_by=actor_id,
            approved_at=at,
        )
        return Transition(record=record, changed=True, action=AuditAction.LEAVE)

    state = existing.state
    if state == PunchState.LEAVE:
        return Transition(record=existing, changed=False)
    if state not in (PunchState.PUNCHED_OUT_PENDING, PunchState.REJECTED, PunchState.ABSENT, PunchState.OPEN_NO_PUNCH):
        raise InvalidTransition(f"Cannot mark leave on a record in state {state.value}.")
    updated = replace(
        existing,
        status=AttendanceStatus.LEAVE,
        approved_by=actor_id,
        approved_at=at,
        approval_reason=reason if reason else existing.approval_reason,
    )
    return Transition(record=updated, changed=True, action=AuditAction.LEAVE, from_status=existing.status)


def override(record: AttendanceRecord, *, fields: Mapping[str, Any], reason: Optional[str]) -> Transition:
    """Admin correction of derived numbers. Status is untouched."""

    unknown = set(fields) - set(OVERRIDABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be overridden: {', '.join(sorted(unknown))}")

    changes: Dict[str, Any] = {}
    meta: Dict[str, Any] = {}
    for name, raw in fields.items():
        value = _coerce_override(name, raw)
        current = getattr(record, name)
        if current != value:
            changes[name] = value
            meta[name] = {"from": current, "to": value}

    if not changes:
        return Transition(record=record, changed=False)
    if not (reason or "").strip():
        raise ValidationError("A reason is required when changing attendance values.")

    changes["approval_reason"] = reason.strip()
    return Transition(
        record=replace(record, **changes),
        changed=True,
        action=AuditAction.OVERRIDE,
        from_status=record.status,
        meta=meta,
    )


def _coerce_override(name: str, raw: Any):
    if name == "late_minutes":
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValidationError("late_minutes must be a whole number")
        if value < 0:
            raise ValidationError("late_minutes cannot be negative")
        return value

    return require_non_negative(raw, name)
