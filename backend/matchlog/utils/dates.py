from datetime import datetime
from zoneinfo import ZoneInfo

from heliclockter import datetime_utc

from matchlog.utils.id_types import DateKey


def now_millis() -> int:
    return int(datetime_utc.now().timestamp() * 1000)


def date_key_from_millis(timestamp_ms: int | float, time_zone: str) -> DateKey:
    local = datetime.fromtimestamp(timestamp_ms / 1000, tz=ZoneInfo(time_zone))
    return DateKey(local.strftime("%Y-%m-%d"))
