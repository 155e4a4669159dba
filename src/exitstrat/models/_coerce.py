"""Lenient value coercion shared by the ``from_dict`` constructors."""

from __future__ import annotations

from typing import Any


def first_of(data: dict[str, Any], *keys: str) -> Any:
    """Return the first non-``None`` value among *keys*."""
    for k in keys:
        v = data.get(k)
        if v is not None:
            return v
    return None


def to_float(val: object, default: float = 0.0) -> float:
    result = opt_float(val)
    return default if result is None else result


def opt_float(val: object) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        return float(str(val).replace("%", "").strip())
    except (TypeError, ValueError):
        return None


def to_int(val: object, default: int = 0) -> int:
    result = opt_float(val)
    return default if result is None else int(result)


def opt_str(val: object) -> str | None:
    if val is None:
        return None
    return str(val)


def to_bool(val: object, default: bool) -> bool:
    """Read a flag that may arrive as a bool, a number or a string."""
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return val != 0
    if isinstance(val, str):
        lowered = val.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
    return default
