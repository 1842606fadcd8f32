from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLAuditTrail
from .attendance.repository import AttendanceRepository, AuditTrail
from .attendance.service import AttendanceService
from .attendance.validator import PunchValidator
from .common.tokens import PunchTokenSigner
from .company.mysql_company_repository import MySQLCompanySettingsRepository
from .company.repository import CompanySettingsRepository
from .core.constants import DEFAULT_PUNCH_TOKEN_TTL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .jobs.absent_marker import AbsentMarkerJob
from .jobs.auto_punch_out import AutoPunchOutJob
from .payroll.ledger_repository import LedgerRepository
from .payroll.mysql_ledger_repository import MySQLLedgerRepository
from .payroll.service import PayrollService
from .reports.service import ReportService
from .salary.mysql_salary_repository import MySQLSalaryConfigRepository
from .salary.repository import SalaryConfigRepository
from .salary.service import SalaryConfigService
from .staff.mysql_staff_repository import MySQLStaffRepository
from .staff.repository import StaffRepository


@dataclass(frozen=True)
class Container:
    company_repo: CompanySettingsRepository
    staff_repo: StaffRepository
    salary_repo: SalaryConfigRepository
    attendance_repo: AttendanceRepository
    audit_trail: AuditTrail
    ledger_repo: LedgerRepository
    signer: PunchTokenSigner

    salary_service: SalaryConfigService
    attendance_service: AttendanceService
    payroll_service: PayrollService
    report_service: ReportService
    auto_punch_out_job: AutoPunchOutJob
    absent_marker_job: AbsentMarkerJob

    conn: Optional[DatabaseConnection] = None


def assemble(
    *,
    company_repo: CompanySettingsRepository,
    staff_repo: StaffRepository,
    salary_repo: SalaryConfigRepository,
    attendance_repo: AttendanceRepository,
    audit_trail: AuditTrail,
    ledger_repo: LedgerRepository,
    signer: PunchTokenSigner,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, in-memory in tests)."""

    factory = AttendanceStrategyFactory()
    validator = PunchValidator(
        attendance_repo,
        salary_repo,
        staff_repo,
        company_repo,
        signer=signer,
        strategy_factory=factory,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        audit_trail,
        validator,
        signer,
        staff_repo,
        company_repo,
        strategy_factory=factory,
    )
    payroll_service = PayrollService(attendance_repo, salary_repo, staff_repo, company_repo, ledger_repo)

    return Container(
        company_repo=company_repo,
        staff_repo=staff_repo,
        salary_repo=salary_repo,
        attendance_repo=attendance_repo,
        audit_trail=audit_trail,
        ledger_repo=ledger_repo,
        signer=signer,
        salary_service=SalaryConfigService(salary_repo, staff_repo),
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        report_service=ReportService(attendance_repo, staff_repo, payroll_service),
        auto_punch_out_job=AutoPunchOutJob(attendance_repo, audit_trail, company_repo, strategy_factory=factory),
        absent_marker_job=AbsentMarkerJob(attendance_repo, audit_trail, staff_repo, company_repo),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    punch_token_secret: str,
    punch_token_ttl_seconds: int = DEFAULT_PUNCH_TOKEN_TTL_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return assemble(
        company_repo=MySQLCompanySettingsRepository(conn),
        staff_repo=MySQLStaffRepository(conn),
        salary_repo=MySQLSalaryConfigRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_trail=MySQLAuditTrail(conn),
        ledger_repo=MySQLLedgerRepository(conn),
        signer=PunchTokenSigner(punch_token_secret, ttl_seconds=punch_token_ttl_seconds),
        conn=conn,
    )
