# src/normalizers/coercion.py

"""Lenient scalar coercions used while reading untrusted remote records.

None of these raise: a value that cannot be interpreted degrades to the
supplied default so that one malformed record never blanks a catalog.
"""

import math
import re
import time
from collections.abc import Mapping
from datetime import datetime
from typing import Any

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_number(value: Any, default: float = 0.0) -> float:
    """Parse a finite, non-negative number; anything else is *default*."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if not match:
            return default
        number = float(match.group())
    else:
        return default
    if math.isnan(number) or math.isinf(number) or number < 0:
        return default
    return number


def to_int(value: Any, default: int = 0) -> int:
    """Like :func:`to_number` but floored to an ``int``."""
    return int(to_number(value, float(default)))


def to_text(value: Any, default: str = "") -> str:
    """Stringify scalars; containers and ``None`` become *default*."""
    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_bool(value: Any) -> bool:
    """Interpret the boolean spellings legacy records use."""
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y", "on"}
    return bool(value) if isinstance(value, (bool, int, float)) else False


def to_text_list(value: Any) -> list[str]:
    """Non-empty strings from a list, or from a comma-separated string."""
    if isinstance(value, str):
        items: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, Mapping):
        items = list(value.values())
    else:
        return []
    cleaned: list[str] = []
    for item in items:
        text = to_text(item)
        if text:
            cleaned.append(text)
    return cleaned


def to_text_map(value: Any) -> dict[str, str]:
    """String-keyed map of stringified scalar values."""
    if not isinstance(value, Mapping):
        return {}
    return {
        str(key): to_text(item)
        for key, item in value.items()
        if item is not None
    }


def to_timestamp(value: Any, default: int) -> int:
    """Epoch milliseconds from numbers, ISO strings or ``{seconds}``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value) or value <= 0:
            return default
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text) or default
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            millis = int(parsed.timestamp() * 1000)
        except (ValueError, OverflowError, OSError):
            return default
        # Same rule as numeric input so a second pass keeps the result
        return millis if millis > 0 else default
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return to_timestamp(seconds * 1000, default)
    return default


def first_present(record: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key holding something other than None/""."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None
