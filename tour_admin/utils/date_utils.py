# tour_admin/utils/date_utils.py
import re
import time as _time
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tour_admin.exceptions import ConfigError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# fromisoformat before 3.11 only takes 3 or 6 fraction digits
FRACTION = re.compile(r'\.(\d+)')


def now_millis() -> int:
    """Current Unix time in milliseconds."""
    return int(_time.time() * 1000)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Normalize a stored timestamp to an aware datetime.

    Accepts datetimes (naive ones are taken as UTC), ISO 8601 strings as
    returned by PostgREST, and Unix milliseconds. Anything else, including
    an unparseable string, yields None.
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith('Z'):
            raw = raw[:-1] + '+00:00'
        raw = FRACTION.sub(lambda match: '.' + match.group(1)[:6].ljust(6, '0'), raw, count=1)
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def to_millis(value: Optional[datetime]) -> int:
    """Milliseconds since the epoch; a missing timestamp counts as time zero."""
    if value is None:
        return 0
    return int((value - EPOCH).total_seconds() * 1000)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """First instant of a calendar day in the given zone."""
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    """Last instant of a calendar day in the given zone."""
    return datetime.combine(day, time.max, tzinfo=tz)


def get_timezone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA zone name; empty means UTC."""
    if not name or name.upper() == 'UTC':
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone: {name}") from e
