from datetime import datetime, timezone

import pytest

from matchlog.utils.coerce import as_number, value_to_millis
from matchlog.utils.dates import date_key_from_millis


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (5, 5),
        ("5", 5),
        (" 6.5 ", 6.5),
        (7.0, 7),
        ("seven", None),
        (True, None),
        (None, None),
        (float("nan"), None),
    ],
)
def test_as_number(value: object, expected: int | float | None) -> None:
    assert as_number(value) == expected


def test_value_to_millis() -> None:
    assert value_to_millis(None) == 0
    assert value_to_millis(1714528800000) == 1714528800000
    assert value_to_millis("2024-05-01T02:00:00Z") == 1714528800000
    assert value_to_millis("2024-05-01") == 1714521600000
    assert value_to_millis("1714528800000") == 1714528800000
    assert value_to_millis("not a date") == 0
    assert value_to_millis(datetime(2024, 5, 1, 2, tzinfo=timezone.utc)) == 1714528800000


def test_date_key_from_millis_uses_local_calendar_day() -> None:
    assert date_key_from_millis(1714528800000, "America/Sao_Paulo") == "2024-04-30"
    assert date_key_from_millis(1714528800000, "UTC") == "2024-05-01"
