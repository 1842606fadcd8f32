from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class JobSummary:
    job: str
    company_id: int
    run_date: date
    processed: int = 0
    skipped: int = 0
