"""
Audit & snapshot engine for configuration sync.

Records every export/import, keeps point-in-time JSON snapshots of
configuration, diffs them, and ages them out under a retention policy.
"""

from .audit import AuditLogEntry, AuditManager, ImportAuditResult, ImportResult
from .config import AuditConfig, RetentionPolicy
from .snapshot import SnapshotInfo, SnapshotStore

__all__ = [
    "AuditLogEntry",
    "AuditManager",
    "ImportAuditResult",
    "ImportResult",
    "AuditConfig",
    "RetentionPolicy",
    "SnapshotInfo",
    "SnapshotStore",
]
