"""Picks the timestamp a record should be bucketed by.

Client payloads are heterogeneous, so no time field is declared per schema.
Fields are probed in a fixed priority order and the first usable value wins.
"""

import math
import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Mapping, Optional

TIMESTAMP_FIELDS = ("timestamp", "@timestamp", "time", "date")

# Numbers at or below this are not taken as Unix timestamps
MIN_UNIX_TIMESTAMP = 100_000_000
# Numbers below this are seconds, at or above it milliseconds
MAX_UNIX_SECONDS = 100_000_000_000
# Strings this short cannot hold a full date and time
MIN_DATE_STRING_LENGTH = 18
# Zone prefix on numeric offsets, as in "Sun Mar 13 2011 07:06:40 GMT+0100"
_GMT_OFFSET = re.compile(r"\b(?:GMT|UTC)(?=[+-]\d{4}\b)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce(value: Any) -> Optional[datetime]:
    """Returns the datetime a single field value stands for, or None."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value <= MIN_UNIX_TIMESTAMP:
            return None
        millis = value * 1000 if value < MAX_UNIX_SECONDS else value
        try:
            return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and len(value) > MIN_DATE_STRING_LENGTH:
        return _parse_date_string(value)
    return None


def _parse_date_string(value: str) -> Optional[datetime]:
    """Parses ISO 8601 first, then RFC 2822 style dates."""
    try:
        return _as_utc(datetime.fromisoformat(value))
    except ValueError:
        pass
    try:
        return _as_utc(parsedate_to_datetime(_GMT_OFFSET.sub("", value)))
    except (TypeError, ValueError):
        return None


def extract_timestamp(
    record: Optional[Mapping[str, Any]],
    now: Callable[[], datetime] = utc_now,
) -> datetime:
    """Finds the record's timestamp, defaulting to the current time.

    Args:
        record: The document being written (may be None or not a mapping).
        now: Source of the current time, used when no field matches.

    Returns:
        A timezone-aware UTC datetime.
    """
    if isinstance(record, Mapping):
        for field_name in TIMESTAMP_FIELDS:
            if field_name in record:
                found = _coerce(record[field_name])
                if found is not None:
                    return found
    return now()
