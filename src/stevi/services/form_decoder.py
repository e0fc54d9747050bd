"""
Form decoder: flat multi-value form map -> typed fields.

Accepts a Starlette FormData (anything with `getlist`) or a plain mapping of
key -> value / list of values. Non-string entries (uploaded files) are treated
as absent. Every function here is pure.

Rules:
- string: trimmed, empty -> None
- required string: absent/empty raises ValidationFailure with the field message
- boolean: true/1/on/yes and false/0/off/no (case-insensitive), else default
- enum: exact, case-sensitive match against the allowed values, else None
- integer: leading base-10 integer like JavaScript parseInt, else None
- multi: every entry trimmed, empties dropped, optionally filtered by an allow-list
- number: non-negative decimal, with explicit messages for missing/invalid/negative
"""
import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from stevi.errors import ValidationFailure

TRUTHY = frozenset({"true", "1", "on", "yes"})
FALSY = frozenset({"false", "0", "off", "no"})

_LEADING_INT = re.compile(r"^[+-]?\d+")

MISSING_NUMBER = "Missing numeric value."
INVALID_NUMBER = "Invalid numeric value provided."
NEGATIVE_NUMBER = "Negative values are not allowed."


def _values(form: Any, key: str) -> List[str]:
    if hasattr(form, "getlist"):
        raw = form.getlist(key)
    elif isinstance(form, Mapping):
        value = form.get(key)
        if value is None:
            raw = []
        elif isinstance(value, (list, tuple)):
            raw = list(value)
        else:
            raw = [value]
    else:
        raise TypeError(f"Unsupported form container: {type(form).__name__}")
    return [v for v in raw if isinstance(v, str)]


def read_raw(form: Any, key: str) -> Optional[str]:
    """First string value for a key, untrimmed."""
    values = _values(form, key)
    return values[0] if values else None


def read_string(form: Any, key: str) -> Optional[str]:
    value = read_raw(form, key)
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def require_string(form: Any, key: str, message: str) -> str:
    value = read_string(form, key)
    if value is None:
        raise ValidationFailure(message, field_errors={key: message})
    return value


def read_boolean(form: Any, key: str, default: bool = False) -> bool:
    value = read_string(form, key)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    return default


def read_enum(form: Any, key: str, allowed: Sequence[str]) -> Optional[str]:
    value = read_string(form, key)
    if value is None or value not in allowed:
        return None
    return value


def parse_int(value: Optional[str]) -> Optional[int]:
    """parseInt(value, 10): leading digits win, anything else is None."""
    if value is None:
        return None
    match = _LEADING_INT.match(value.strip())
    if not match:
        return None
    return int(match.group(0))


def read_int(form: Any, key: str) -> Optional[int]:
    return parse_int(read_raw(form, key))


def read_multi(form: Any, key: str, allowed: Optional[Iterable[str]] = None) -> List[str]:
    """All trimmed, non-empty values for `key`, filtered by `allowed` if given."""
    allow = set(allowed) if allowed is not None else None
    result = []
    for value in _values(form, key):
        trimmed = value.strip()
        if not trimmed:
            continue
        if allow is not None and trimmed not in allow:
            continue
        result.append(trimmed)
    return result


def parse_number(value: Any, allow_negative: bool = False) -> float:
    """Parse a decimal quantity or money value."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailure(MISSING_NUMBER)
    if isinstance(value, bool):
        raise ValidationFailure(INVALID_NUMBER)
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationFailure(INVALID_NUMBER)
    if not math.isfinite(number):
        raise ValidationFailure(INVALID_NUMBER)
    if number < 0 and not allow_negative:
        raise ValidationFailure(NEGATIVE_NUMBER)
    return number


def read_number(form: Any, key: str, required: bool = True, allow_negative: bool = False) -> Optional[float]:
    value = read_string(form, key)
    if value is None and not required:
        return None
    return parse_number(value, allow_negative=allow_negative)
