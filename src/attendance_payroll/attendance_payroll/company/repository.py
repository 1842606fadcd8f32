from __future__ import annotations

from typing import Protocol, Sequence

from .model import CompanySettings


class CompanySettingsRepository(Protocol):
    def get_settings(self, company_id: int) -> CompanySettings:
        """Return the company's rules, falling back to defaults for unset columns."""

        raise NotImplementedError

    def list_company_ids(self) -> Sequence[int]:
        raise NotImplementedError
