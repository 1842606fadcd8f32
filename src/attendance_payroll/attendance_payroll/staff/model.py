from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class StaffMember:
    """Read-only view of an employee, owned by the external user directory."""

    user_id: int
    company_id: int
    full_name: str
    email: Optional[str] = None
    joining_date: Optional[date] = None
    is_active: bool = True
