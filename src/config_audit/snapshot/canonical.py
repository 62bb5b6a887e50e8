"""
JSON serialization and checksums for snapshots.

Three forms are used:
- Pretty JSON (2-space indent, keys in document order) for files on disk.
- Diff JSON: pretty JSON with object keys sorted, so reordered keys between
  two exports do not show up as changes.
- Compact JSON (no whitespace, keys in document order) as the checksum
  input, matching how the sync tool has always hashed snapshot data.
"""

import hashlib
import json
from typing import Any


def to_pretty_json(data: Any) -> str:
    """
    Serialize data the way snapshot files are written.

    The result always ends with a single newline.
    """
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def to_diff_json(data: Any) -> str:
    """Serialize data for diffing: pretty JSON with sorted object keys."""
    return json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def to_compact_json(data: Any) -> str:
    """Serialize data without insignificant whitespace."""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def compute_checksum(data: Any) -> str:
    """
    Compute the SHA-256 hex digest of the compact JSON of data.

    Args:
        data: JSON-serializable data (typically a list of config items)

    Returns:
        Hex-encoded SHA-256 hash string
    """
    return hashlib.sha256(to_compact_json(data).encode("utf-8")).hexdigest()


def verify_checksum(data: Any, checksum: str) -> bool:
    """Return True if checksum matches the data."""
    return compute_checksum(data) == checksum
