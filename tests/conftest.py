from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

import pytest

from attendance_payroll.attendance.model import AttendanceRecord, AuditEntry
from attendance_payroll.common.tokens import PunchTokenSigner
from attendance_payroll.company.model import CompanySettings
from attendance_payroll.container import Container, assemble
from attendance_payroll.core.enums import AttendanceStatus, SalaryType
from attendance_payroll.payroll.model import LedgerEntry
from attendance_payroll.salary.model import SalaryConfig, active_config_on
from attendance_payroll.staff.model import StaffMember

# Monday
FIXED_NOW = datetime(2025, 3, 10, 9, 15, 0)


class InMemoryCompanies:
    def __init__(self, settings: Optional[dict[int, CompanySettings]] = None):
        self.settings = settings or {}

    def get_settings(self, company_id: int) -> CompanySettings:
        return self.settings.get(company_id) or CompanySettings(company_id=company_id)

    def list_company_ids(self) -> Sequence[int]:
        return sorted(self.settings)


@dataclass
class InMemoryStaff:
    members: dict[int, StaffMember] = field(default_factory=dict)

    def get_by_id(self, user_id: int) -> Optional[StaffMember]:
        return self.members.get(user_id)

    def list_active(self, company_id: int) -> Sequence[StaffMember]:
        return [m for m in self.members.values() if m.company_id == company_id and m.is_active]


class InMemorySalaries:
    def __init__(self):
        self._versions: dict[int, list[SalaryConfig]] = {}
        self._id = 0

    def get_current(self, user_id: int) -> Optional[SalaryConfig]:
        versions = self.list_versions(user_id)
        return versions[-1] if versions else None

    def get_active_on(self, user_id: int, day: date) -> Optional[SalaryConfig]:
        return active_config_on(self.list_versions(user_id), day)

    def list_versions(self, user_id: int) -> Sequence[SalaryConfig]:
        return sorted(self._versions.get(user_id, []), key=lambda c: c.effective_from)

    def save_version(self, config: SalaryConfig) -> int:
        versions = self._versions.setdefault(config.user_id, [])
        for i, existing in enumerate(versions):
            if existing.effective_from == config.effective_from:
                versions[i] = replace(config, config_id=existing.config_id)
                return existing.config_id
        self._id += 1
        versions.append(replace(config, config_id=self._id))
        return self._id


class InMemoryAttendance:
    """Thread-safe stand-in honouring the conditional-write contract."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: dict[int, AttendanceRecord] = {}
        self._id = 0

    def _snapshot(self) -> list[AttendanceRecord]:
        return list(self._rows.values())

    def _insert(self, record: AttendanceRecord) -> int:
        self._id += 1
        self._rows[self._id] = replace(record, attendance_id=self._id)
        return self._id

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            return self._rows[self._insert(record)]

    def all(self) -> list[AttendanceRecord]:
        return sorted(self._snapshot(), key=lambda r: r.attendance_id)

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._rows.get(attendance_id)

    def get_for_user_and_date(self, user_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        for r in self._snapshot():
            if r.user_id == user_id and r.attendance_date == attendance_date:
                return r
        return None

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        open_rows = [r for r in self._snapshot() if r.user_id == user_id and r.is_open]
        open_rows.sort(key=lambda r: r.attendance_date, reverse=True)
        return open_rows[0] if open_rows else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        items = [r for r in self._snapshot() if r.user_id == user_id]
        items.sort(key=lambda r: r.attendance_date, reverse=True)
        return items[:limit]

    def list_for_user_in_range(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        items = [r for r in self._snapshot() if r.user_id == user_id and start <= r.attendance_date <= end]
        return sorted(items, key=lambda r: r.attendance_date)

    def list_for_company_in_range(self, company_id: int, start: date, end: date, *, user_id: Optional[int] = None):
        items = [
            r
            for r in self._snapshot()
            if r.company_id == company_id
            and start <= r.attendance_date <= end
            and (user_id is None or r.user_id == user_id)
        ]
        return sorted(items, key=lambda r: (r.attendance_date, r.user_id))

    def list_open(self, company_id: int, through: date) -> Sequence[AttendanceRecord]:
        items = [r for r in self._snapshot() if r.company_id == company_id and r.attendance_date <= through and r.is_open]
        return sorted(items, key=lambda r: (r.attendance_date, r.user_id))

    def create_punch_in(self, record: AttendanceRecord) -> Optional[int]:
        with self._lock:
            for r in self._snapshot():
                if r.user_id != record.user_id:
                    continue
                if r.attendance_date == record.attendance_date or r.is_open:
                    return None
            return self._insert(record)

    def create_marker(self, record: AttendanceRecord) -> Optional[int]:
        with self._lock:
            if self.get_for_user_and_date(record.user_id, record.attendance_date) is not None:
                return None
            return self._insert(record)

    def close_punch_out(self, record: AttendanceRecord) -> bool:
        with self._lock:
            current = self._rows.get(record.attendance_id)
            if current is None or not current.is_open:
                return False
            self._rows[record.attendance_id] = record
            return True

    def update_approval(self, record: AttendanceRecord) -> bool:
        with self._lock:
            current = self._rows.get(record.attendance_id)
            if current is None:
                return False
            self._rows[record.attendance_id] = replace(
                current,
                status=record.status,
                approved_by=record.approved_by,
                approved_at=record.approved_at,
                approval_reason=record.approval_reason,
            )
            return True

    def update_fields(self, record: AttendanceRecord) -> bool:
        with self._lock:
            current = self._rows.get(record.attendance_id)
            if current is None:
                return False
            self._rows[record.attendance_id] = replace(
                current,
                working_hours=record.working_hours,
                overtime_hours=record.overtime_hours,
                shift_duration_hours=record.shift_duration_hours,
                late_minutes=record.late_minutes,
                approval_reason=record.approval_reason,
            )
            return True


class InMemoryAudit:
    def __init__(self):
        self._lock = threading.Lock()
        self.entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> int:
        with self._lock:
            self.entries.append(replace(entry, entry_id=len(self.entries) + 1))
            return len(self.entries)

    def list_for_attendance(self, attendance_id: int) -> Sequence[AuditEntry]:
        return [e for e in self.entries if e.attendance_id == attendance_id]


class InMemoryLedger:
    def __init__(self):
        self.entries: list[LedgerEntry] = []

    def list_for_user_month(self, user_id: int, year: int, month: int) -> Sequence[LedgerEntry]:
        return [e for e in self.entries if e.user_id == user_id and e.year == year and e.month == month]

    def add(self, entry: LedgerEntry) -> int:
        entry_id = len(self.entries) + 1
        self.entries.append(replace(entry, entry_id=entry_id))
        return entry_id


@dataclass
class World:
    companies: InMemoryCompanies
    staff: InMemoryStaff
    salaries: InMemorySalaries
    attendance: InMemoryAttendance
    audit: InMemoryAudit
    ledger: InMemoryLedger
    signer: PunchTokenSigner
    container: Container

    def set_company(self, **overrides) -> CompanySettings:
        settings = replace(self.companies.get_settings(1), **overrides)
        self.companies.settings[1] = settings
        return settings

    def closed_record(
        self,
        day: date,
        *,
        user_id: int = 1,
        status: AttendanceStatus = AttendanceStatus.PENDING,
        working_hours: str = "9",
        overtime_hours: str = "0",
        late_minutes: int = 0,
    ) -> AttendanceRecord:
        return self.attendance.add(
            AttendanceRecord(
                attendance_id=0,
                user_id=user_id,
                company_id=self.staff.members[user_id].company_id,
                attendance_date=day,
                punch_in=datetime(day.year, day.month, day.day, 9, 0),
                punch_out=datetime(day.year, day.month, day.day, 18, 0),
                status=status,
                late_minutes=late_minutes,
                working_hours=Decimal(working_hours),
                overtime_hours=Decimal(overtime_hours),
                shift_duration_hours=Decimal("9"),
            )
        )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def world() -> World:
    companies = InMemoryCompanies({1: CompanySettings(company_id=1), 2: CompanySettings(company_id=2)})
    staff = InMemoryStaff(
        {
            1: StaffMember(user_id=1, company_id=1, full_name="Asha Rao", joining_date=date(2024, 1, 1)),
            2: StaffMember(user_id=2, company_id=1, full_name="Binod Das", joining_date=date(2024, 1, 1)),
            3: StaffMember(user_id=3, company_id=1, full_name="Chitra Iyer", joining_date=date(2024, 6, 1)),
            4: StaffMember(user_id=4, company_id=2, full_name="Dev Malik", joining_date=date(2024, 1, 1)),
        }
    )
    salaries = InMemorySalaries()
    for user_id in (1, 3, 4):
        salaries.save_version(
            SalaryConfig(
                user_id=user_id,
                salary_type=SalaryType.MONTHLY,
                working_days_target=26,
                effective_from=date(2024, 1, 1),
                base_salary=Decimal("26000"),
            )
        )
    attendance = InMemoryAttendance()
    audit = InMemoryAudit()
    ledger = InMemoryLedger()
    signer = PunchTokenSigner("test-punch-secret", ttl_seconds=120)

    container = assemble(
        company_repo=companies,
        staff_repo=staff,
        salary_repo=salaries,
        attendance_repo=attendance,
        audit_trail=audit,
        ledger_repo=ledger,
        signer=signer,
    )
    return World(
        companies=companies,
        staff=staff,
        salaries=salaries,
        attendance=attendance,
        audit=audit,
        ledger=ledger,
        signer=signer,
        container=container,
    )
