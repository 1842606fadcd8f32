from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Persisted approval status of an attendance record.

    The literal values are shared with existing stored data; never rename them.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    LEAVE = "LEAVE"
    ABSENT = "ABSENT"


class PunchState(str, Enum):
    """Lifecycle position of a (user, day) pair, derived from the record."""

    OPEN_NO_PUNCH = "OPEN_NO_PUNCH"
    PUNCHED_IN = "PUNCHED_IN"
    PUNCHED_OUT_PENDING = "PUNCHED_OUT_PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    LEAVE = "LEAVE"
    ABSENT = "ABSENT"


class PunchDirection(str, Enum):
    IN = "in"
    OUT = "out"


class ApprovalDecision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class SalaryType(str, Enum):
    MONTHLY = "MONTHLY"
    HOURLY = "HOURLY"


class LedgerEntryType(str, Enum):
    PAYMENT = "PAYMENT"
    DEDUCTION = "DEDUCTION"
    RECOVERY = "RECOVERY"


class AuditAction(str, Enum):
    PUNCH_IN = "PUNCH_IN"
    PUNCH_OUT = "PUNCH_OUT"
    AUTO_PUNCH_OUT = "AUTO_PUNCH_OUT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVOKED = "REVOKED"
    LEAVE = "LEAVE"
    AUTO_ABSENT = "AUTO_ABSENT"
    OVERRIDE = "OVERRIDE"


class Role(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
