import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from matchlog.models.counts import OUTCOMES, OutcomeCounts


def _to_count(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return max(int(parsed), 0)


def normalize_counts(source: Any) -> OutcomeCounts | None:
    """Read a sparse W/L/T mapping, returns None when it holds no usable outcome."""
    if not isinstance(source, Mapping):
        return None

    values: dict[str, int] = {}
    for outcome in OUTCOMES:
        count = _to_count(source.get(outcome))
        if count is not None:
            values[outcome] = count

    return OutcomeCounts(**values) if len(values) > 0 else None


def counts_from_results_list(results: Any) -> OutcomeCounts | None:
    if not isinstance(results, list):
        return None

    tokens = [item.strip().upper() for item in results if isinstance(item, str)]
    tokens = [token for token in tokens if token in OUTCOMES]
    if len(tokens) < 1:
        return None

    return OutcomeCounts(
        W=tokens.count("W"),
        L=tokens.count("L"),
        T=tokens.count("T"),
    )


def event_counts(event: Mapping[str, Any]) -> OutcomeCounts:
    """
    Outcome counts contributed by a single event.

    Older documents store their outcome in different places, the first source that holds a
    usable value wins: `stats.counts`, `counts`, `stats`, the `results` token list and finally
    the single `result` symbol.
    """
    stats = event.get("stats")
    return (
        normalize_counts(stats.get("counts") if isinstance(stats, Mapping) else None)
        or normalize_counts(event.get("counts"))
        or normalize_counts(stats)
        or counts_from_results_list(event.get("results"))
        or OutcomeCounts.of_result(event.get("result"))
    )


def win_rate_percent(counts: OutcomeCounts) -> int | float:
    """
    Percentage of wins over all recorded games, rounded half up to one decimal.

    Integer-valued rates are returned as `int` (75.0 becomes 75), a total of zero yields 0.
    """
    if counts.total <= 0:
        return 0

    tenths = int(
        (Decimal(counts.W * 1000) / Decimal(counts.total)).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
    )
    if tenths % 10 == 0:
        return tenths // 10
    return tenths / 10
