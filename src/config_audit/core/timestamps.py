"""
Timestamp helpers shared by snapshot naming, retention and the audit log.

Snapshot identifiers are ISO-8601 UTC strings with ':' and '.' replaced by
'-', e.g. 2024-03-01T12-00-00-000Z. They sort lexicographically in
chronological order.
"""

import re
from datetime import datetime, timezone
from typing import Optional

TIMESTAMP_ID_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<h>\d{2})-(?P<m>\d{2})-(?P<s>\d{2})-(?P<ms>\d{3})Z"
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a datetime as an ISO-8601 UTC string with millisecond precision.

    >>> iso_timestamp(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))
    '2024-03-01T12:00:00.000Z'
    """
    moment = moment or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def timestamp_id(moment: Optional[datetime] = None) -> str:
    """Return a filename-safe timestamp identifier."""
    return re.sub(r"[:.]", "-", iso_timestamp(moment))


def parse_timestamp_id(name: str) -> Optional[datetime]:
    """
    Parse the timestamp prefix of a snapshot identifier or filename.

    Returns None when the name does not start with a valid timestamp id.
    """
    match = TIMESTAMP_ID_PATTERN.match(name)
    if not match:
        return None
    iso = (
        f"{match.group('date')}T{match.group('h')}:{match.group('m')}:"
        f"{match.group('s')}.{match.group('ms')}+00:00"
    )
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse a user-supplied ISO date/time; naive values are taken as UTC.

    Raises:
        ValueError: If the value is not an ISO-8601 date/time
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
