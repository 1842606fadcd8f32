from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.tokens import PunchTokenSigner
from ..company.repository import CompanySettingsRepository
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ApprovalDecision, AttendanceStatus, AuditAction, PunchDirection
from ..core.exceptions import AlreadyPunchedIn, InvalidValidationToken, NoOpenPunch, RecordNotFound, ValidationError
from ..staff.repository import StaffRepository
from . import state_machine
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AuditEntry
from .repository import AttendanceRepository, AuditTrail
from .state_machine import Transition
from .validator import PunchValidation, PunchValidator

logger = logging.getLogger(__name__)


class AttendanceService:
    """Punch lifecycle and admin actions on attendance records."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        audit: AuditTrail,
        validator: PunchValidator,
        signer: PunchTokenSigner,
        staff: StaffRepository,
        companies: CompanySettingsRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._audit = audit
        self._validator = validator
        self._signer = signer
        self._staff = staff
        self._companies = companies
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def validate_punch(self, user_id: int, direction: PunchDirection, *, now: datetime | None = None) -> PunchValidation:
        return self._validator.validate(user_id, direction, now=now)

    def commit_punch(
        self,
        user_id: int,
        direction: PunchDirection,
        evidence_ref: Optional[str],
        validation_token: Optional[str],
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Persist a validated punch.

        Every rule is re-checked against current state; the token only proves a
        validation happened for this user, direction and day.
        """

        claims = self._signer.verify(validation_token)
        if claims.user_id != user_id or claims.direction != direction:
            raise InvalidValidationToken("Validation token does not match this punch.")

        image_ref = evidence_ref.strip() if evidence_ref and evidence_ref.strip() else None
        ctx = self._validator.check(user_id, direction, now=now)
        if claims.attendance_date != ctx.attendance_date:
            raise InvalidValidationToken("Validation token belongs to a different day. Validate the punch again.")

        if direction == PunchDirection.IN:
            return self._commit_punch_in(ctx, image_ref, claims.late_minutes)
        if claims.attendance_id is not None and claims.attendance_id != ctx.open_record.attendance_id:
            raise InvalidValidationToken("Validation token does not match the open session.")
        return self._commit_punch_out(ctx, image_ref)

    def _commit_punch_in(self, ctx, image_ref: Optional[str], late_minutes: int) -> AttendanceRecord:
        draft = state_machine.punch_in(
            None,
            user_id=ctx.staff.user_id,
            company_id=ctx.staff.company_id,
            attendance_date=ctx.attendance_date,
            at=ctx.now,
            image_ref=image_ref,
            late_minutes=late_minutes,
            shift_duration_hours=ctx.settings.shift_duration_hours,
        )
        new_id = self._attendance.create_punch_in(draft)
        if new_id is None:
            raise AlreadyPunchedIn("You already have an active attendance session. Please punch out first.")

        record = replace(draft, attendance_id=new_id)
        self._append_audit(record, AuditAction.PUNCH_IN, actor_id=record.user_id, at=ctx.now, to_status=record.status)
        logger.info(
            "[attendance] punch-in user_id=%s date=%s late_minutes=%s",
            record.user_id,
            record.attendance_date,
            record.late_minutes,
        )
        return record

    def _commit_punch_out(self, ctx, image_ref: Optional[str]) -> AttendanceRecord:
        record = ctx.open_record
        strategy = self._factory.for_punch_out(record=record)
        hours = strategy.decide_punch_out(now=ctx.now, record=record, settings=ctx.settings)
        closed = state_machine.punch_out(record, at=ctx.now, image_ref=image_ref, hours=hours)
        if not self._attendance.close_punch_out(closed):
            raise NoOpenPunch("This attendance session was already closed.")

        self._append_audit(closed, AuditAction.PUNCH_OUT, actor_id=closed.user_id, at=ctx.now, to_status=closed.status)
        logger.info(
            "[attendance] punch-out user_id=%s date=%s working_hours=%s overtime_hours=%s",
            closed.user_id,
            closed.attendance_date,
            closed.working_hours,
            closed.overtime_hours,
        )
        return closed

    def set_approval(
        self,
        attendance_id: int,
        decision: ApprovalDecision,
        actor_id: int,
        *,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        record = self._get_existing(attendance_id)
        at = now or self._now_for(record)
        if decision == ApprovalDecision.APPROVE:
            transition = state_machine.approve(record, actor_id=actor_id, at=at, reason=reason)
        else:
            transition = state_machine.reject(record, actor_id=actor_id, at=at, reason=reason)

        if not transition.changed:
            return record
        if not self._attendance.update_approval(transition.record):
            raise RecordNotFound("Attendance record not found")
        self._record_transition(transition, actor_id=actor_id, at=at, reason=reason)
        return transition.record

    def override_fields(
        self,
        attendance_id: int,
        fields: Mapping[str, Any],
        reason: Optional[str],
        actor_id: int,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        record = self._get_existing(attendance_id)
        transition = state_machine.override(record, fields=fields, reason=reason)
        if not transition.changed:
            return record
        if not self._attendance.update_fields(transition.record):
            raise RecordNotFound("Attendance record not found")
        self._record_transition(transition, actor_id=actor_id, at=now or self._now_for(record), reason=reason)
        return transition.record

    def mark_leave(
        self,
        user_id: int,
        attendance_date: date,
        actor_id: int,
        *,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        staff = self._staff.get_by_id(user_id)
        if not staff:
            raise RecordNotFound("Staff member not found")
        at = now or now_local(self._companies.get_settings(staff.company_id).timezone)

        existing = self._attendance.get_for_user_and_date(user_id, attendance_date)
        transition = state_machine.mark_leave(
            existing,
            user_id=user_id,
            company_id=staff.company_id,
            attendance_date=attendance_date,
            actor_id=actor_id,
            at=at,
            reason=reason,
        )
        if not transition.changed:
            return transition.record

        if existing is None:
            new_id = self._attendance.create_marker(transition.record)
            if new_id is None:
                raise ValidationError("Attendance for this day was recorded concurrently. Reload and retry.")
            transition = replace(transition, record=replace(transition.record, attendance_id=new_id))
        elif not self._attendance.update_approval(transition.record):
            raise RecordNotFound("Attendance record not found")

        self._record_transition(transition, actor_id=actor_id, at=at, reason=reason)
        return transition.record

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        return self._get_existing(attendance_id)

    def get_today_record(self, user_id: int, today: date | None = None) -> Optional[AttendanceRecord]:
        if today is None:
            staff = self._staff.get_by_id(user_id)
            if not staff:
                raise RecordNotFound("Staff member not found")
            today = now_local(self._companies.get_settings(staff.company_id).timezone).date()
        return self._attendance.get_for_user_and_date(user_id, today)

    def get_audit_trail(self, attendance_id: int) -> Sequence[AuditEntry]:
        return self._audit.list_for_attendance(attendance_id)

    def get_history_ui(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Dict[str, Any]]:
        rows = self._attendance.get_recent_for_user(user_id, limit)
        return [self._to_ui(r) for r in rows]

    def _get_existing(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise RecordNotFound("Attendance record not found")
        return record

    def _now_for(self, record: AttendanceRecord) -> datetime:
        return now_local(self._companies.get_settings(record.company_id).timezone)

    def _record_transition(self, transition: Transition, *, actor_id: int, at: datetime, reason: Optional[str]) -> None:
        meta: Dict[str, Any] = dict(transition.meta or {})
        if reason:
            meta["reason"] = reason
        record = transition.record
        self._append_audit(
            record,
            transition.action,
            actor_id=actor_id,
            at=at,
            from_status=transition.from_status,
            to_status=record.status,
            meta=meta,
        )
        logger.info(
            "[attendance] %s attendance_id=%s by=%s",
            transition.action.value.lower(),
            record.attendance_id,
            actor_id,
        )

    def _append_audit(
        self,
        record: AttendanceRecord,
        action: AuditAction,
        *,
        actor_id: Optional[int],
        at: datetime,
        from_status: Optional[AttendanceStatus] = None,
        to_status: Optional[AttendanceStatus] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._audit.append(
            AuditEntry(
                attendance_id=record.attendance_id,
                action=action,
                actor_id=actor_id,
                created_at=at,
                from_status=from_status,
                to_status=to_status,
                meta=meta or {},
            )
        )

    def _to_ui(self, r: AttendanceRecord) -> dict:
        label = {
            AttendanceStatus.PENDING: "Pending",
            AttendanceStatus.APPROVED: "Approved",
            AttendanceStatus.REJECTED: "Rejected",
            AttendanceStatus.LEAVE: "Leave",
            AttendanceStatus.ABSENT: "Absent",
        }.get(r.status, r.status.value)

        return {
            "id": r.attendance_id,
            "date": r.attendance_date.strftime("%Y-%m-%d"),
            "punch_in": r.punch_in.strftime("%H:%M:%S") if r.punch_in else "-",
            "punch_out": r.punch_out.strftime("%H:%M:%S") if r.punch_out else "-",
            "working_hours": str(r.working_hours),
            "late_minutes": r.late_minutes,
            "status": label,
        }
