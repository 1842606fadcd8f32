from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from ..core.enums import AttendanceStatus, AuditAction, PunchState


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one company-local day.

    Hour quantities are Decimal hours at minute granularity. The record is "open"
    while punch_in is set and punch_out is not.
    """

    attendance_id: int
    user_id: int
    company_id: int
    attendance_date: date
    punch_in: Optional[datetime]
    punch_out: Optional[datetime]
    status: AttendanceStatus = AttendanceStatus.PENDING
    punch_in_image_ref: Optional[str] = None
    punch_out_image_ref: Optional[str] = None
    late_minutes: int = 0
    working_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    shift_duration_hours: Optional[Decimal] = None
    approval_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    auto_punch_out: bool = False
    requires_approval: bool = False

    @property
    def is_open(self) -> bool:
        return self.punch_in is not None and self.punch_out is None

    @property
    def is_late(self) -> bool:
        return self.late_minutes > 0

    @property
    def state(self) -> PunchState:
        if self.status == AttendanceStatus.APPROVED:
            return PunchState.APPROVED
        if self.status == AttendanceStatus.REJECTED:
            return PunchState.REJECTED
        if self.status == AttendanceStatus.LEAVE:
            return PunchState.LEAVE
        if self.status == AttendanceStatus.ABSENT:
            return PunchState.ABSENT
        if self.punch_in is None:
            return PunchState.OPEN_NO_PUNCH
        if self.punch_out is None:
            return PunchState.PUNCHED_IN
        return PunchState.PUNCHED_OUT_PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "companyId": self.company_id,
            "attendanceDate": self.attendance_date.isoformat(),
            "punchIn": self.punch_in.isoformat() if self.punch_in else None,
            "punchOut": self.punch_out.isoformat() if self.punch_out else None,
            "punchInImageRef": self.punch_in_image_ref,
            "punchOutImageRef": self.punch_out_image_ref,
            "status": self.status.value,
            "state": self.state.value,
            "lateMinutes": self.late_minutes,
            "isLate": self.is_late,
            "workingHours": str(self.working_hours),
            "overtimeHours": str(self.overtime_hours),
            "shiftDurationHours": str(self.shift_duration_hours) if self.shift_duration_hours is not None else None,
            "approvalReason": self.approval_reason,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "autoPunchOut": self.auto_punch_out,
            "requiresApproval": self.requires_approval,
        }


@dataclass(frozen=True)
class AuditEntry:
    """Append-only trail of attendance mutations."""

    attendance_id: int
    action: AuditAction
    actor_id: Optional[int]
    created_at: datetime
    from_status: Optional[AttendanceStatus] = None
    to_status: Optional[AttendanceStatus] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    entry_id: Optional[int] = None
