from .date_utils import parse_timestamp, to_millis, now_millis, get_timezone

__all__ = [
    'parse_timestamp',
    'to_millis',
    'now_millis',
    'get_timezone'
]
