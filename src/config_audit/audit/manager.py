"""
AuditManager - high-level audit operations for one audit directory.

Config Managers hold one AuditManager and call store_snapshot() /
audit_export_operation() after exports and audit_import_operation() around
imports. Read-side commands use the history and integrity helpers.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..config.config_loader import AuditConfig
from ..snapshot.diff import DiffEngine, DiffReport
from ..snapshot.enhanced import LoadedSnapshot, create_enhanced_snapshot, from_payload
from ..snapshot.models import DependencyInfo, SnapshotInfo
from ..snapshot.retention import PrunePlan
from ..snapshot.store import SnapshotStore
from .audit_log import AuditLog
from .history import (
    DEFAULT_TIME_MACHINE_LIMIT,
    HistoryPresenters,
    ImportDiffReport,
    TimeMachineReport,
)
from .integrity import ConsistencyResult, IntegrityChecker, ValidationSummary
from .models import AuditLogEntry, ImportAuditResult, Operation, Status
from .protocol import ImportAuditProtocol

logger = logging.getLogger(__name__)


class AuditManager:
    """Facade over the snapshot store, audit log and history views."""

    def __init__(
        self,
        audit_dir: Optional[Path] = None,
        config: Optional[AuditConfig] = None,
    ):
        """
        Initialize the audit manager.

        Args:
            audit_dir: Audit directory; if omitted it is resolved from
                DCT_AUDIT_PATH, then DCT_CONFIG_PATH/audit, then ./audit
            config: Fully resolved configuration (takes precedence)
        """
        self.config = config or AuditConfig.load(audit_dir=audit_dir)

        self.store = SnapshotStore(
            self.config.snapshots_dir,
            retention=self.config.retention,
            auto_prune=self.config.auto_prune,
        )
        self.store.snapshots_dir.mkdir(parents=True, exist_ok=True)
        self.audit_log = AuditLog(self.config.audit_log_path)
        self.diff_engine = DiffEngine(self.store)
        self.protocol = ImportAuditProtocol(self.store, self.audit_log)
        self.history = HistoryPresenters(self.store, self.diff_engine)
        self.integrity = IntegrityChecker(self.store)

    @property
    def audit_dir(self) -> Path:
        return self.config.audit_dir

    # =========================================================================
    # Write side
    # =========================================================================

    def store_snapshot(self, item_type: str, data: Any, identifier: Optional[str] = None) -> Path:
        """Store a regular snapshot. See SnapshotStore.store()."""
        return self.store.store(item_type, data, identifier)

    def store_enhanced_snapshot(
        self,
        item_type: str,
        items: List[Any],
        identifier: Optional[str] = None,
        dependencies: Optional[List[DependencyInfo]] = None,
    ) -> Path:
        """Store already-normalized items wrapped with checksum metadata."""
        snapshot = create_enhanced_snapshot(items, item_type, dependencies=dependencies)
        return self.store.store(item_type, snapshot.to_dict(), identifier)

    def log(self, entry: Union[AuditLogEntry, Mapping[str, Any]]) -> AuditLogEntry:
        """Append an audit entry. See AuditLog.append()."""
        return self.audit_log.append(entry)

    def audit_export_operation(
        self,
        item_type: str,
        manager: str,
        data: Any,
        message: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> AuditLogEntry:
        """Snapshot exported data and record a successful export entry."""
        path = self.store_snapshot(item_type, data, identifier)
        return self.audit_log.append(
            AuditLogEntry(
                operation=Operation.EXPORT.value,
                manager=manager,
                item_type=item_type,
                status=Status.SUCCESS.value,
                message=message,
                snapshot_file=str(path),
            )
        )

    def audit_import_operation(
        self,
        item_type: str,
        manager: str,
        local_config: Any,
        fetch_remote: Callable[[], Any],
        do_import: Callable[[], Any],
        dry_run: bool = False,
    ) -> ImportAuditResult:
        """Run an import inside the audit protocol. See ImportAuditProtocol.run()."""
        return self.protocol.run(item_type, manager, local_config, fetch_remote, do_import, dry_run)

    def prune(
        self,
        item_type: Optional[str] = None,
        retention_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Prune one item type, or every item type when none is given."""
        if item_type is None:
            return self.store.pruner.prune_all(now=now, retention_days=retention_days)
        return self.store.pruner.prune_item_type(item_type, now=now, retention_days=retention_days)

    def plan_prune(
        self,
        item_type: str,
        retention_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PrunePlan:
        return self.store.pruner.plan(item_type, now=now, retention_days=retention_days)

    # =========================================================================
    # Read side
    # =========================================================================

    def get_snapshots(self, item_type: str) -> List[SnapshotInfo]:
        return self.store.list_snapshots(item_type)

    def load_snapshot(self, path: Path) -> Any:
        return self.store.load(path)

    def load_enhanced_snapshot(self, path: Path, item_type: str) -> LoadedSnapshot:
        """Load a snapshot as an enhanced snapshot, synthesizing legacy metadata."""
        return from_payload(self.store.load(path), path, item_type)

    def diff_snapshots(self, path_a: Path, path_b: Path) -> DiffReport:
        return self.diff_engine.diff(path_a, path_b)

    def time_machine(
        self,
        item_type: str,
        limit: Optional[int] = DEFAULT_TIME_MACHINE_LIMIT,
        start_time: Optional[datetime] = None,
    ) -> TimeMachineReport:
        return self.history.time_machine(item_type, limit=limit, start_time=start_time)

    def latest_import_diff(self, item_type: str) -> ImportDiffReport:
        return self.history.latest_import_diff(item_type)

    def read_log(
        self,
        item_type: Optional[str] = None,
        operation: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditLogEntry]:
        return self.audit_log.read_entries(item_type=item_type, operation=operation, limit=limit)

    def validate(self, item_type: str) -> ValidationSummary:
        return self.integrity.validate_item_type(item_type)

    def integrity_check(self, item_types: Optional[Iterable[str]] = None) -> Dict[str, ValidationSummary]:
        return self.integrity.integrity_check(item_types)

    def check_export_consistency(self, item_type: str, exported_items: List[Any]) -> ConsistencyResult:
        return self.integrity.check_export_consistency(item_type, exported_items)
