from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from ..attendance.model import AttendanceRecord, AuditEntry
from ..attendance.repository import AttendanceRepository, AuditTrail
from ..common.datetime_utils import now_local
from ..company.repository import CompanySettingsRepository
from ..core.constants import AUTO_ABSENT_REASON
from ..core.enums import AttendanceStatus, AuditAction
from ..staff.repository import StaffRepository
from .model import JobSummary

logger = logging.getLogger(__name__)


class AbsentMarkerJob:
    """Persists ABSENT markers for staff with no attendance on a day. Safe to re-run."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        audit: AuditTrail,
        staff: StaffRepository,
        companies: CompanySettingsRepository,
    ):
        self._attendance = attendance
        self._audit = audit
        self._staff = staff
        self._companies = companies

    def run(self, company_id: int, day: Optional[date] = None, *, now: Optional[datetime] = None) -> JobSummary:
        settings = self._companies.get_settings(company_id)
        now = now or now_local(settings.timezone)
        day = day or (now.date() - timedelta(days=1))

        marked = skipped = 0
        for member in self._staff.list_active(company_id):
            if member.joining_date and member.joining_date > day:
                continue
            if self._attendance.get_for_user_and_date(member.user_id, day) is not None:
                skipped += 1
                continue

            marker = AttendanceRecord(
                attendance_id=0,
                user_id=member.user_id,
                company_id=company_id,
                attendance_date=day,
                punch_in=None,
                punch_out=None,
                status=AttendanceStatus.ABSENT,
                approval_reason=AUTO_ABSENT_REASON,
            )
            new_id = self._attendance.create_marker(marker)
            if new_id is None:
                skipped += 1
                continue

            self._audit.append(
                AuditEntry(
                    attendance_id=new_id,
                    action=AuditAction.AUTO_ABSENT,
                    actor_id=None,
                    created_at=now,
                    to_status=AttendanceStatus.ABSENT,
                    meta={"date": day.isoformat()},
                )
            )
            marked += 1

        logger.info("[jobs] absent marker company_id=%s date=%s marked=%s skipped=%s", company_id, day, marked, skipped)
        return JobSummary(job="absent_marker", company_id=company_id, run_date=day, processed=marked, skipped=skipped)

    def run_all(self, day: Optional[date] = None, *, now: Optional[datetime] = None) -> List[JobSummary]:
        return [self.run(company_id, day, now=now) for company_id in self._companies.list_company_ids()]
