from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ..attendance import state_machine
from ..attendance.factory import AttendanceStrategyFactory
from ..attendance.model import AttendanceRecord, AuditEntry
from ..attendance.repository import AttendanceRepository, AuditTrail
from ..common.datetime_utils import now_local
from ..company.model import CompanySettings
from ..company.repository import CompanySettingsRepository
from ..core.constants import AUTO_PUNCH_OUT_REASON
from ..core.enums import AuditAction
from .model import JobSummary

logger = logging.getLogger(__name__)


def auto_punch_out_time(record: AttendanceRecord, settings: CompanySettings) -> datetime:
    """Shift end on the record's day (next day for overnight shifts) plus the buffer."""

    shift_end = datetime.combine(record.attendance_date, settings.shift_end_time)
    if settings.shift_end_time <= settings.shift_start_time:
        shift_end += timedelta(days=1)
    return shift_end + timedelta(minutes=settings.auto_punch_out_buffer_minutes)


class AutoPunchOutJob:
    """Closes sessions that were left open past the end of the shift."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        audit: AuditTrail,
        companies: CompanySettingsRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._audit = audit
        self._companies = companies
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def run(self, company_id: int, *, now: Optional[datetime] = None) -> JobSummary:
        settings = self._companies.get_settings(company_id)
        now = now or now_local(settings.timezone)
        today = now.date()

        processed = skipped = 0
        for record in self._attendance.list_open(company_id, through=today):
            closed_at = auto_punch_out_time(record, settings)
            if now < closed_at:
                continue

            strategy = self._factory.for_punch_out(record=record, automatic=True)
            hours = strategy.decide_punch_out(now=closed_at, record=record, settings=settings)
            closed = state_machine.punch_out(
                record,
                at=closed_at,
                image_ref=None,
                hours=hours,
                automatic=True,
                reason=AUTO_PUNCH_OUT_REASON,
            )
            if not self._attendance.close_punch_out(closed):
                # The employee punched out in the meantime.
                skipped += 1
                continue

            self._audit.append(
                AuditEntry(
                    attendance_id=closed.attendance_id,
                    action=AuditAction.AUTO_PUNCH_OUT,
                    actor_id=None,
                    created_at=now,
                    from_status=record.status,
                    to_status=closed.status,
                    meta={"punchOut": closed_at.isoformat(), "workingHours": str(closed.working_hours)},
                )
            )
            processed += 1

        logger.info(
            "[jobs] auto punch-out company_id=%s closed=%s skipped=%s",
            company_id,
            processed,
            skipped,
        )
        return JobSummary(job="auto_punch_out", company_id=company_id, run_date=today, processed=processed, skipped=skipped)

    def run_all(self, *, now: Optional[datetime] = None) -> List[JobSummary]:
        return [self.run(company_id, now=now) for company_id in self._companies.list_company_ids()]
