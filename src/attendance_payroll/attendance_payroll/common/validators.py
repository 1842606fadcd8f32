from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    return result


def require_non_negative(value: Any, field_name: str) -> Decimal:
    result = require_decimal(value, field_name)
    if result < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return result


def optional_non_negative(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return require_non_negative(value, field_name)


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if result <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return result
