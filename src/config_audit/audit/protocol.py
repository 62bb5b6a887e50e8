"""
Import audit protocol.

Wraps one import in a before/local/after snapshot sequence and records a
single consolidated audit entry:

    Start -> CaptureLocal -> CaptureBefore -> [RunImport -> CaptureAfter] -> Log

The bracketed steps are skipped on a dry run. A failing import callback is
captured as a failure status; the remaining steps still run.
"""

import logging
from typing import Any, Callable

from ..core.timestamps import timestamp_id
from ..snapshot.models import ImportRole
from ..snapshot.store import SnapshotStore
from .audit_log import AuditLog
from .models import (
    DRY_RUN_MESSAGE,
    AuditLogEntry,
    ImportAuditResult,
    ImportResult,
    Operation,
    Status,
)

logger = logging.getLogger(__name__)


class ImportAuditProtocol:
    """Orchestrates the three-snapshot capture around an import."""

    def __init__(self, store: SnapshotStore, audit_log: AuditLog):
        self.store = store
        self.audit_log = audit_log

    def run(
        self,
        item_type: str,
        manager: str,
        local_config: Any,
        fetch_remote: Callable[[], Any],
        do_import: Callable[[], Any],
        dry_run: bool = False,
    ) -> ImportAuditResult:
        """
        Capture snapshots around an import and log the outcome.

        Args:
            item_type: Config type being imported
            manager: Name of the Config Manager performing the import
            local_config: The local configuration about to be applied
            fetch_remote: Returns the current remote state as JSON data
            do_import: Applies the import; returns an ImportResult or a
                mapping with 'status' and optional 'message'
            dry_run: If True, do_import is not called and no after snapshot
                is taken

        Returns:
            ImportAuditResult describing the outcome and written files
        """
        ts = timestamp_id()
        context = {"item_type": item_type, "operation": Operation.IMPORT.value, "manager": manager}

        local_path = self.store.store_import_snapshot(item_type, local_config, ts, ImportRole.LOCAL)

        remote_before = fetch_remote()
        before_path = self.store.store_import_snapshot(
            item_type, remote_before, ts, ImportRole.REMOTE_BEFORE
        )

        after_path = None
        if dry_run:
            result = ImportResult(status=Status.SUCCESS.value, message=DRY_RUN_MESSAGE)
        else:
            try:
                result = ImportResult.coerce(do_import())
            except Exception as e:
                logger.error(f"Import failed: {e}", extra=context)
                result = ImportResult(status=Status.FAILURE.value, message=str(e))

            # Taken even after a failure so partially applied changes are visible
            remote_after = fetch_remote()
            after_path = self.store.store_import_snapshot(
                item_type, remote_after, ts, ImportRole.REMOTE_AFTER
            )

        entry = self.audit_log.append(
            AuditLogEntry(
                operation=Operation.IMPORT.value,
                manager=manager,
                item_type=item_type,
                status=result.status,
                message=result.message,
                local_config_snapshot=str(local_path),
                remote_before_snapshot=str(before_path),
                remote_after_snapshot=str(after_path) if after_path else None,
            )
        )
        logger.info(
            f"Import audited ({'dry run' if dry_run else 'applied'}): {result.status}",
            extra={**context, "status": result.status},
        )

        if self.store.auto_prune:
            self.store.pruner.prune_item_type(item_type)

        return ImportAuditResult(
            status=result.status,
            message=result.message,
            dry_run=dry_run,
            timestamp_id=ts,
            local_config_snapshot=str(local_path),
            remote_before_snapshot=str(before_path),
            remote_after_snapshot=str(after_path) if after_path else None,
            entry=entry,
        )
