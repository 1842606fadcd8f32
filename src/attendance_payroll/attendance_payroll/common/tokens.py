"""Short-lived punch validation tokens (python-jose, HS256).

A token is issued by the punch validator and must be presented when the punch
is committed. It binds the commit to the user, direction and attendance day
that were validated, and carries the metadata computed at validation time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..core.constants import DEFAULT_PUNCH_TOKEN_TTL_SECONDS
from ..core.enums import PunchDirection
from ..core.exceptions import InvalidValidationToken

ALGORITHM = "HS256"
TOKEN_TYPE = "punch-validation"


@dataclass(frozen=True)
class PunchClaims:
    user_id: int
    direction: PunchDirection
    attendance_date: date
    late_minutes: int = 0
    attendance_id: Optional[int] = None


class PunchTokenSigner:
    def __init__(self, secret: str, *, ttl_seconds: int = DEFAULT_PUNCH_TOKEN_TTL_SECONDS):
        if not secret:
            raise ValueError("Punch token secret must not be empty")
        self._secret = secret
        self._ttl = int(ttl_seconds)

    def issue(self, claims: PunchClaims, *, issued_at: Optional[datetime] = None) -> str:
        iat = issued_at or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "typ": TOKEN_TYPE,
            "sub": str(claims.user_id),
            "dir": claims.direction.value,
            "day": claims.attendance_date.isoformat(),
            "late": int(claims.late_minutes),
            "att": claims.attendance_id,
            "iat": int(iat.timestamp()),
            "exp": int((iat + timedelta(seconds=self._ttl)).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: Optional[str]) -> PunchClaims:
        if not token:
            raise InvalidValidationToken("Validation token is required. Validate the punch first.")
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except JWTError:
            raise InvalidValidationToken("Validation token is invalid or expired. Validate the punch again.")

        if payload.get("typ") != TOKEN_TYPE:
            raise InvalidValidationToken("Validation token is invalid.")
        try:
            return PunchClaims(
                user_id=int(payload["sub"]),
                direction=PunchDirection(payload["dir"]),
                attendance_date=date.fromisoformat(payload["day"]),
                late_minutes=int(payload.get("late") or 0),
                attendance_id=int(payload["att"]) if payload.get("att") is not None else None,
            )
        except (KeyError, TypeError, ValueError):
            raise InvalidValidationToken("Validation token is malformed.")
