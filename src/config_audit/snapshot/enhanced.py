"""
Metadata-wrapped ("enhanced") snapshots.

An enhanced snapshot stores ``{"metadata": {...}, "data": [...]}`` where the
metadata carries a SHA-256 checksum and item count of the data. Older
snapshots are bare JSON documents; they are recognised on read and given
synthesized metadata without rewriting the file.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, List, Optional

from ..core.timestamps import iso_timestamp
from .canonical import compute_checksum
from .models import DependencyInfo, EnhancedSnapshot, SnapshotMetadata

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "config-audit"
LEGACY_TOOL_VERSION = "legacy"


def get_tool_version() -> str:
    """Installed version of this tool, or 'unknown' when running from source."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


@dataclass
class SnapshotValidation:
    """Result of validating one snapshot."""
    is_valid: bool
    issues: List[str] = field(default_factory=list)


@dataclass
class LoadedSnapshot:
    """An enhanced snapshot as read from disk, with its validation."""
    path: str
    snapshot: EnhancedSnapshot
    validation: SnapshotValidation
    legacy: bool = False


def create_enhanced_snapshot(
    items: List[Any],
    item_type: str,
    dependencies: Optional[List[DependencyInfo]] = None,
    tool_version: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> EnhancedSnapshot:
    """
    Wrap already-normalized items with integrity metadata.

    Args:
        items: Normalized configuration items
        item_type: Config type the items belong to
        dependencies: Optional dependency edges detected by the caller
        tool_version: Version string to record; defaults to this package's
        created_at: Creation time; defaults to now

    Returns:
        EnhancedSnapshot whose checksum and item count match ``items``
    """
    items = list(items)
    metadata = SnapshotMetadata(
        checksum=compute_checksum(items),
        timestamp=iso_timestamp(created_at),
        tool_version=tool_version or get_tool_version(),
        item_type=item_type,
        item_count=len(items),
        dependencies=dependencies,
    )
    return EnhancedSnapshot(metadata=metadata, data=items)


def validate_enhanced_snapshot(
    snapshot: EnhancedSnapshot,
    expected_item_type: Optional[str] = None,
) -> SnapshotValidation:
    """
    Check checksum, item count and (optionally) item type of a snapshot.
    """
    issues: List[str] = []

    calculated = compute_checksum(snapshot.data)
    if calculated != snapshot.metadata.checksum:
        issues.append(
            f"Checksum mismatch: expected {snapshot.metadata.checksum}, got {calculated}"
        )

    if expected_item_type is not None and snapshot.metadata.item_type != expected_item_type:
        issues.append(
            f"Item type mismatch: expected {expected_item_type}, "
            f"got {snapshot.metadata.item_type}"
        )

    if snapshot.metadata.item_count != len(snapshot.data):
        issues.append(
            f"Item count mismatch: expected {snapshot.metadata.item_count}, "
            f"got {len(snapshot.data)}"
        )

    return SnapshotValidation(is_valid=not issues, issues=issues)


def from_payload(
    payload: Any,
    path: Path,
    item_type: str,
) -> LoadedSnapshot:
    """
    Interpret a loaded JSON document as an enhanced snapshot.

    Legacy documents get synthesized metadata; the file is left untouched.
    """
    if EnhancedSnapshot.is_enhanced(payload):
        snapshot = EnhancedSnapshot.from_dict(payload)
        if not isinstance(snapshot.data, list):
            return LoadedSnapshot(
                path=str(path),
                snapshot=snapshot,
                validation=SnapshotValidation(False, ["Snapshot data is not a list"]),
            )
        return LoadedSnapshot(
            path=str(path),
            snapshot=snapshot,
            validation=validate_enhanced_snapshot(snapshot, expected_item_type=item_type),
        )

    logger.warning(f"Legacy snapshot format detected at {path}", extra={"item_type": item_type})
    data = payload if isinstance(payload, list) else [payload]
    metadata = SnapshotMetadata(
        checksum=compute_checksum(data),
        timestamp=iso_timestamp(),
        tool_version=LEGACY_TOOL_VERSION,
        item_type=item_type,
        item_count=len(data),
    )
    return LoadedSnapshot(
        path=str(path),
        snapshot=EnhancedSnapshot(metadata=metadata, data=data),
        validation=SnapshotValidation(is_valid=True, issues=["Legacy format"]),
        legacy=True,
    )
