"""
Snapshot storage, diffing and retention.

This module provides:
- SnapshotStore: timestamped JSON snapshots per item type
- DiffEngine: line diffs between two stored snapshots
- RetentionPruner: age-based pruning with minimum-count floors
- Enhanced snapshots: checksum-carrying metadata wrapper
"""

from .models import (
    DependencyInfo,
    EnhancedSnapshot,
    ImportRole,
    ImportSnapshotSet,
    SnapshotInfo,
    SnapshotMetadata,
)
from .canonical import compute_checksum, to_diff_json, to_pretty_json
from .store import SnapshotStore
from .diff import DiffEngine, DiffReport, DiffSegment, SegmentKind
from .retention import PrunePlan, RetentionPruner
from .enhanced import create_enhanced_snapshot, validate_enhanced_snapshot

__all__ = [
    "DependencyInfo",
    "EnhancedSnapshot",
    "ImportRole",
    "ImportSnapshotSet",
    "SnapshotInfo",
    "SnapshotMetadata",
    "compute_checksum",
    "to_diff_json",
    "to_pretty_json",
    "SnapshotStore",
    "DiffEngine",
    "DiffReport",
    "DiffSegment",
    "SegmentKind",
    "PrunePlan",
    "RetentionPruner",
    "create_enhanced_snapshot",
    "validate_enhanced_snapshot",
]
