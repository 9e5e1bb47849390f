import math
from datetime import datetime, timezone
from typing import Any


def as_number(value: Any) -> int | float | None:
    """Numeric value of ints, floats and numeric strings; `None` for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, int | float) or not math.isfinite(value):
        return None
    return int(value) if float(value).is_integer() else value


def value_to_millis(value: Any) -> float:
    """Epoch milliseconds of a timestamp-like value (number, ISO string or datetime), else 0."""
    if not value:
        return 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return as_number(value) or 0
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp() * 1000
    return as_number(value) or 0
