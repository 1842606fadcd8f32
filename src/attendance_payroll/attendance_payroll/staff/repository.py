from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import StaffMember


class StaffRepository(Protocol):
    """Read-only staff directory.

    Users, roles and sessions are managed elsewhere; the core only needs to know
    which company a user belongs to and who is active.
    """

    def get_by_id(self, user_id: int) -> Optional[StaffMember]:
        raise NotImplementedError

    def list_active(self, company_id: int) -> Sequence[StaffMember]:
        raise NotImplementedError
