"""
Utility functions for the signify verifier.

Provides byte coercion, constant-time comparison and date/clock helpers.
"""

import hmac
from datetime import date, datetime, timezone
from typing import Union

DateLike = Union[date, datetime, str]

ISO_DATE_FORMAT = "%Y-%m-%d"


def ensure_bytes(data: Union[bytes, str]) -> bytes:
    """Encode text as UTF-8; pass bytes through unchanged."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return data


def constant_time_compare(a: Union[str, bytes], b: Union[str, bytes]) -> bool:
    """
    Compare two strings/bytes in constant time to prevent timing attacks.
    """
    return hmac.compare_digest(ensure_bytes(a), ensure_bytes(b))


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_iso_date(s: Union[str, bytes]) -> date:
    """
    Parse a YYYY-MM-DD date.

    Raises:
        ValueError: If the text is not a calendar date in that format
    """
    if isinstance(s, bytes):
        s = s.decode('ascii')
    return datetime.strptime(s, ISO_DATE_FORMAT).date()


def to_utc_date(value: DateLike) -> date:
    """
    Reduce a date, datetime or ISO date string to a calendar date.

    Aware datetimes are converted to UTC first; naive ones are taken as UTC.
    Time of day is dropped.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)
