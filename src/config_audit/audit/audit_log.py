"""
Append-only audit ledger, one JSON object per line (NDJSON).
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from ..core.exceptions import AuditLogError
from ..core.timestamps import iso_timestamp
from .models import AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLog:
    """
    Appends audit entries to an NDJSON file.

    Prior lines are never rewritten; the ledger outlives snapshot pruning.
    """

    def __init__(self, log_path: Path, create: bool = True):
        """
        Initialize the audit log.

        Args:
            log_path: Path to audit.ndjson
            create: Whether to create the (empty) file and its directory now
        """
        self.log_path = Path(log_path).resolve()
        if create:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.log_path.touch(exist_ok=True)

    def append(self, entry: Union[AuditLogEntry, Mapping[str, Any]]) -> AuditLogEntry:
        """
        Stamp an entry with the current time and append it as one line.

        Args:
            entry: AuditLogEntry or mapping in the on-disk shape (camelCase),
                without a timestamp

        Returns:
            The entry as written

        Raises:
            AuditLogError: If a required field is missing
        """
        if not isinstance(entry, AuditLogEntry):
            entry = AuditLogEntry.from_dict(entry)
        entry.timestamp = iso_timestamp()

        line = json.dumps(entry.to_dict(), ensure_ascii=False, separators=(",", ":"))
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

        logger.debug(
            f"Audit entry appended: {entry.operation} {entry.status}",
            extra={"item_type": entry.item_type, "operation": entry.operation},
        )
        return entry

    def read_entries(
        self,
        item_type: Optional[str] = None,
        operation: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditLogEntry]:
        """
        Read entries back, oldest first.

        Args:
            item_type: Only entries for this item type
            operation: Only 'import' or 'export' entries
            limit: Only the last N matching entries

        Returns:
            Matching entries; undecodable lines are skipped with a warning
        """
        if not self.log_path.exists():
            return []

        entries: List[AuditLogEntry] = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                    if not isinstance(payload, dict):
                        raise AuditLogError("entry is not a JSON object")
                    entry = AuditLogEntry.from_dict(payload)
                except (json.JSONDecodeError, AuditLogError) as e:
                    logger.warning(f"Invalid audit entry at {self.log_path}:{line_num}: {e}")
                    continue
                if item_type is not None and entry.item_type != item_type:
                    continue
                if operation is not None and entry.operation != operation:
                    continue
                entries.append(entry)

        if limit is not None and limit > 0:
            entries = entries[-limit:]
        return entries
