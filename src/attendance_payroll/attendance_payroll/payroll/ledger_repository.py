from __future__ import annotations

from typing import Protocol, Sequence

from .model import LedgerEntry


class LedgerRepository(Protocol):
    def list_for_user_month(self, user_id: int, year: int, month: int) -> Sequence[LedgerEntry]:
        raise NotImplementedError

    def add(self, entry: LedgerEntry) -> int:
        raise NotImplementedError
