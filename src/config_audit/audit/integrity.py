"""
Snapshot integrity and export/audit consistency checks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..core.exceptions import AuditError
from ..snapshot.canonical import compute_checksum
from ..snapshot.enhanced import from_payload
from ..snapshot.store import SnapshotStore

logger = logging.getLogger(__name__)

# Issues that make a stored snapshot invalid; the rest are reported only
BLOCKING_ISSUES = ("Checksum mismatch", "Snapshot data is not a list")

DEFAULT_ITEM_TYPES = (
    "flows",
    "roles",
    "policies",
    "permissions",
    "access",
    "files",
    "folders",
    "operations",
    "schema",
    "settings",
)


@dataclass
class SnapshotCheck:
    """Validation outcome of one snapshot file."""
    id: str
    path: str
    is_valid: bool
    legacy: bool = False
    issues: List[str] = field(default_factory=list)


@dataclass
class ValidationSummary:
    item_type: str
    checks: List[SnapshotCheck] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return sum(1 for c in self.checks if c.is_valid)

    @property
    def invalid_count(self) -> int:
        return sum(1 for c in self.checks if not c.is_valid)

    @property
    def total(self) -> int:
        return len(self.checks)


@dataclass
class ConsistencyResult:
    is_consistent: bool
    differences: List[str] = field(default_factory=list)


class IntegrityChecker:
    """Validates stored snapshots against their metadata."""

    def __init__(self, store: SnapshotStore):
        self.store = store

    def validate_item_type(self, item_type: str) -> ValidationSummary:
        """
        Validate every snapshot of an item type.

        An enhanced snapshot is valid when its checksum verifies; item count
        and item type mismatches are listed as issues. Legacy snapshots are
        valid as long as they parse.
        """
        summary = ValidationSummary(item_type=item_type)
        for info in self.store.list_snapshots(item_type):
            try:
                loaded = from_payload(self.store.load(info.path), info.path, item_type)
            except AuditError as e:
                summary.checks.append(
                    SnapshotCheck(id=info.id, path=str(info.path), is_valid=False, issues=[str(e)])
                )
                continue

            issues = list(loaded.validation.issues)
            blocking = [i for i in issues if i.startswith(BLOCKING_ISSUES)]
            summary.checks.append(
                SnapshotCheck(
                    id=info.id,
                    path=str(info.path),
                    is_valid=loaded.legacy or not blocking,
                    legacy=loaded.legacy,
                    issues=issues,
                )
            )

        if summary.invalid_count:
            logger.warning(
                f"{summary.invalid_count} of {summary.total} snapshot(s) failed validation",
                extra={"item_type": item_type},
            )
        return summary

    def integrity_check(
        self,
        item_types: Optional[Iterable[str]] = None,
    ) -> Dict[str, ValidationSummary]:
        """Validate several item types (the standard set by default)."""
        types = list(item_types) if item_types else list(DEFAULT_ITEM_TYPES)
        return {item_type: self.validate_item_type(item_type) for item_type in types}

    def check_export_consistency(
        self,
        item_type: str,
        exported_items: List[Any],
    ) -> ConsistencyResult:
        """
        Compare freshly exported (already normalized) items with the latest
        regular snapshot of the item type.
        """
        snapshots = [s for s in self.store.list_snapshots(item_type) if not s.is_import]
        if not snapshots:
            return ConsistencyResult(False, ["No audit snapshots found for comparison"])

        latest = snapshots[-1]
        try:
            loaded = from_payload(self.store.load(latest.path), latest.path, item_type)
        except AuditError as e:
            return ConsistencyResult(False, [f"Cannot validate latest snapshot: {e}"])

        if not loaded.validation.is_valid:
            return ConsistencyResult(
                False,
                [f"Cannot validate latest snapshot: {', '.join(loaded.validation.issues)}"],
            )

        differences = []
        if compute_checksum(list(exported_items)) != loaded.snapshot.metadata.checksum:
            differences.append("Data checksum mismatch between export and audit snapshot")
        if len(exported_items) != len(loaded.snapshot.data):
            differences.append(
                f"Item count differs: export has {len(exported_items)}, "
                f"audit has {len(loaded.snapshot.data)}"
            )
        return ConsistencyResult(is_consistent=not differences, differences=differences)
