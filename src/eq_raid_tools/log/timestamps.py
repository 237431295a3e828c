"""
EverQuest log timestamp parsing.

Every log line starts with a local wall-clock stamp such as
``Thu Jan 22 20:54:27 2026``. The client writes it in the player's local
time with no zone marker, so the caller supplies the IANA timezone the log
was recorded in when absolute instants are needed.

DST edge cases are resolved by ``zoneinfo`` with ``fold=0``: a wall-clock
time inside a "fall back" repeated hour maps to its first (daylight)
occurrence, and a time inside a "spring forward" gap is interpreted with the
offset in effect before the transition.
"""

import logging
import re
from datetime import datetime, timezone as dt_timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidTimezoneError

logger = logging.getLogger(__name__)

# Www Mmm D HH:MM:SS YYYY, day-of-week is ignored
TIMESTAMP_PATTERN = re.compile(
    r'(?P<month>\w{3}) +(?P<day>\d{1,2}) (?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2}) (?P<year>\d{4})'
)

MONTHS = {
    'Jan': 1, 'Feb': 2, 'Mar': 3, 'Apr': 4, 'May': 5, 'Jun': 6,
    'Jul': 7, 'Aug': 8, 'Sep': 9, 'Oct': 10, 'Nov': 11, 'Dec': 12,
}

DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


@lru_cache(maxsize=32)
def resolve_timezone(name: str) -> ZoneInfo:
    """
    Look up an IANA timezone.

    Raises:
        InvalidTimezoneError: If the name is empty or unknown.
    """
    if not name:
        raise InvalidTimezoneError(name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.debug(f"Timezone lookup failed for {name!r}: {e}")
        raise InvalidTimezoneError(name) from e


def _timestamp_fields(text: str) -> Optional[tuple]:
    match = TIMESTAMP_PATTERN.search(text)
    if not match:
        return None
    month = MONTHS.get(match.group('month'))
    if month is None:
        return None
    return (int(match.group('year')), month, int(match.group('day')),
            int(match.group('hour')), int(match.group('minute')), int(match.group('second')))


def parse_eq_timestamp(text: str) -> Optional[datetime]:
    """
    Parse an EQ timestamp as a naive local datetime, no conversion.

    Returns:
        The datetime, or None if the text is not a valid timestamp.
    """
    fields = _timestamp_fields(text)
    if fields is None:
        return None
    try:
        return datetime(*fields)
    except ValueError:
        return None


def local_to_utc(year: int, month: int, day: int, hour: int, minute: int, second: int,
                 timezone: str) -> datetime:
    """
    Convert wall-clock fields recorded in ``timezone`` to an aware UTC datetime.

    Raises:
        InvalidTimezoneError: If the timezone is unknown.
        ValueError: If the fields do not form a valid date.
    """
    local = datetime(year, month, day, hour, minute, second, tzinfo=resolve_timezone(timezone))
    return local.astimezone(dt_timezone.utc)


def parse_eq_timestamp_utc(text: str, timezone: str) -> Optional[datetime]:
    """
    Parse an EQ timestamp recorded in ``timezone`` and return it in UTC.

    Returns:
        An aware UTC datetime, or None if the text is not a valid timestamp.

    Raises:
        InvalidTimezoneError: If the timezone is unknown.
    """
    fields = _timestamp_fields(text)
    if fields is None:
        return None
    try:
        return local_to_utc(*fields, timezone=timezone)
    except InvalidTimezoneError:
        raise
    except ValueError:
        return None


def day_name(instant: datetime) -> str:
    """English weekday name of an instant, Sunday first."""
    return DAY_NAMES[utc_weekday(instant)]


def utc_weekday(instant: datetime) -> int:
    """Weekday number with 0 = Sunday, matching the raid schedule configuration."""
    return (instant.weekday() + 1) % 7
