"""
File-based snapshot storage.

Directory structure:
    {snapshots_dir}/
        {item_type}/
            {id}_{item_type}.json
            {ts}_import_local.json
            {ts}_import_remote_before.json
            {ts}_import_remote_after.json
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from ..config.config_loader import RetentionPolicy
from ..core.exceptions import SnapshotNotFoundError, SnapshotParseError
from ..core.timestamps import timestamp_id
from .canonical import to_pretty_json
from .models import (
    ImportRole,
    SnapshotInfo,
    import_snapshot_filename,
    regular_snapshot_filename,
)
from .retention import RetentionPruner

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Persists and retrieves timestamped JSON snapshots per item type.

    Every store() is followed by a retention pass over the item type unless
    auto_prune is disabled.
    """

    def __init__(
        self,
        snapshots_dir: Path,
        retention: Optional[RetentionPolicy] = None,
        auto_prune: bool = True,
    ):
        """
        Initialize the snapshot store.

        Args:
            snapshots_dir: Root directory holding one subdirectory per item type
            retention: Retention policy applied after writes
            auto_prune: Whether store() triggers pruning
        """
        self.snapshots_dir = Path(snapshots_dir).resolve()
        self.auto_prune = auto_prune
        self.pruner = RetentionPruner(self, retention or RetentionPolicy())

    def item_dir(self, item_type: str) -> Path:
        """Directory holding the snapshots of one item type."""
        return self.snapshots_dir / item_type

    def _write(self, path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(to_pretty_json(data))
        logger.debug(f"Wrote snapshot: {path}", extra={"snapshot": path.name})
        return path

    def store(self, item_type: str, data: Any, identifier: Optional[str] = None) -> Path:
        """
        Write a regular snapshot and apply retention to its item type.

        Args:
            item_type: Config type (e.g. 'flows', 'roles')
            data: JSON-serializable data to snapshot
            identifier: Optional custom identifier; defaults to a timestamp id

        Returns:
            Absolute path of the written file
        """
        filename = regular_snapshot_filename(identifier or timestamp_id(), item_type)
        path = self._write(self.item_dir(item_type) / filename, data)

        if self.auto_prune:
            self.pruner.prune_item_type(item_type)

        return path

    def store_import_snapshot(
        self,
        item_type: str,
        data: Any,
        ts: str,
        role: ImportRole,
    ) -> Path:
        """
        Write one member of an import triple.

        Pruning is left to the caller so a triple is never pruned half-written.
        """
        filename = import_snapshot_filename(ts, role)
        return self._write(self.item_dir(item_type) / filename, data)

    def list_snapshots(self, item_type: str) -> List[SnapshotInfo]:
        """
        List all snapshots for an item type, oldest first.

        Returns an empty list if the item type has no directory yet.
        """
        directory = self.item_dir(item_type)
        if not directory.is_dir():
            return []

        snapshots = [
            SnapshotInfo(id=path.name, path=path)
            for path in directory.iterdir()
            if path.name.endswith(".json") and path.is_file()
        ]
        snapshots.sort(key=lambda s: s.id)
        return snapshots

    def list_item_types(self) -> List[str]:
        """Item types that have a snapshot directory."""
        if not self.snapshots_dir.is_dir():
            return []
        return sorted(p.name for p in self.snapshots_dir.iterdir() if p.is_dir())

    def load(self, path: Path) -> Any:
        """
        Load a snapshot's JSON document.

        Raises:
            SnapshotNotFoundError: If the file does not exist
            SnapshotParseError: If the file is not valid JSON
        """
        path = Path(path)
        if not path.exists():
            raise SnapshotNotFoundError(path)

        with open(path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise SnapshotParseError(path, str(e)) from e

    def delete(self, path: Path) -> None:
        """Remove a snapshot file; a file that is already gone is ignored."""
        Path(path).unlink(missing_ok=True)
