from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import SalaryConfig


class SalaryConfigRepository(Protocol):
    def get_current(self, user_id: int) -> Optional[SalaryConfig]:
        """Most recent version regardless of date, or None when never configured."""

        raise NotImplementedError

    def get_active_on(self, user_id: int, day: date) -> Optional[SalaryConfig]:
        raise NotImplementedError

    def list_versions(self, user_id: int) -> Sequence[SalaryConfig]:
        """All versions ordered by effective_from ascending."""

        raise NotImplementedError

    def save_version(self, config: SalaryConfig) -> int:
        """Insert, or replace the version with the same (user_id, effective_from).

        Returns config_id.
        """

        raise NotImplementedError
