from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, AuditEntry


class AttendanceRepository(Protocol):
    """Attendance persistence.

    Write methods are conditional: a False/None result means another writer got
    there first and nothing was changed.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        """Any record of the user with punch_in set and punch_out missing."""

        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_in_range(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_company_in_range(
        self, company_id: int, start: date, end: date, *, user_id: Optional[int] = None
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open(self, company_id: int, through: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_punch_in(self, record: AttendanceRecord) -> Optional[int]:
        """Insert an open record unless the user already has a record for the day
        or an open record on any day. Returns the new id or None."""

        raise NotImplementedError

    def create_marker(self, record: AttendanceRecord) -> Optional[int]:
        """Insert a record without punches (LEAVE / ABSENT). None when the day is taken."""

        raise NotImplementedError

    def close_punch_out(self, record: AttendanceRecord) -> bool:
        """Persist punch-out fields only while the stored record is still open."""

        raise NotImplementedError

    def update_approval(self, record: AttendanceRecord) -> bool:
        """Persist status, approver and reason. Last writer wins."""

        raise NotImplementedError

    def update_fields(self, record: AttendanceRecord) -> bool:
        """Persist the admin-editable numeric fields and the reason."""

        raise NotImplementedError


class AuditTrail(Protocol):
    def append(self, entry: AuditEntry) -> int:
        raise NotImplementedError

    def list_for_attendance(self, attendance_id: int) -> Sequence[AuditEntry]:
        raise NotImplementedError
