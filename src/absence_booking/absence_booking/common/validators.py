from __future__ import annotations

from ..core.exceptions import ValidationError


def require_length(value: str, field_name: str, *, min_len: int, max_len: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    if len(value.strip()) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    if len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value
