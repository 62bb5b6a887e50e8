"""
Core subpackage: exceptions, logging and timestamp helpers.
"""

from .exceptions import (
    AuditError,
    SnapshotNotFoundError,
    SnapshotParseError,
    AuditLogError,
    AuditConfigError,
)
from .timestamps import (
    iso_timestamp,
    timestamp_id,
    parse_timestamp_id,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    # Exceptions
    "AuditError",
    "SnapshotNotFoundError",
    "SnapshotParseError",
    "AuditLogError",
    "AuditConfigError",
    # Timestamps
    "iso_timestamp",
    "timestamp_id",
    "parse_timestamp_id",
    "parse_iso_datetime",
    "utc_now",
]
