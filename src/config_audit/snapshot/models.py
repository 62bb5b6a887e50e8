"""
Data models for configuration snapshots.

Defines the on-disk naming convention for regular and import-triple
snapshots and the optional metadata-wrapped EnhancedSnapshot shape.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.timestamps import parse_timestamp_id


class ImportRole(str, Enum):
    """Member of an import triple."""
    LOCAL = "local"
    REMOTE_BEFORE = "remote_before"
    REMOTE_AFTER = "remote_after"


IMPORT_FILE_PATTERN = re.compile(
    r"^(?P<ts>.+)_import_(?P<role>local|remote_before|remote_after)\.json$"
)


def import_snapshot_filename(timestamp_id: str, role: ImportRole) -> str:
    """Build the filename of one import-triple member."""
    return f"{timestamp_id}_import_{ImportRole(role).value}.json"


def regular_snapshot_filename(identifier: str, item_type: str) -> str:
    """Build the filename of a regular snapshot."""
    return f"{identifier}_{item_type}.json"


@dataclass(frozen=True)
class SnapshotInfo:
    """
    A stored snapshot as found by listing its item-type directory.

    Attributes:
        id: The snapshot filename (e.g. 2024-03-01T12-00-00-000Z_roles.json)
        path: Absolute path to the file
    """
    id: str
    path: Path

    @property
    def is_import(self) -> bool:
        """Whether this file is a member of an import triple."""
        return IMPORT_FILE_PATTERN.match(self.id) is not None

    @property
    def import_timestamp(self) -> Optional[str]:
        """Shared timestamp id of the import triple, if any."""
        match = IMPORT_FILE_PATTERN.match(self.id)
        return match.group("ts") if match else None

    @property
    def import_role(self) -> Optional[ImportRole]:
        match = IMPORT_FILE_PATTERN.match(self.id)
        return ImportRole(match.group("role")) if match else None

    @property
    def timestamp(self) -> Optional[datetime]:
        """Parsed timestamp prefix, or None for custom identifiers."""
        return parse_timestamp_id(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "path": str(self.path)}


@dataclass
class ImportSnapshotSet:
    """
    The local / remote_before / remote_after files sharing one timestamp.

    ``local`` and ``remote_before`` are always written; ``remote_after`` is
    absent when the import was a dry run.
    """
    timestamp_id: str
    local: Optional[SnapshotInfo] = None
    remote_before: Optional[SnapshotInfo] = None
    remote_after: Optional[SnapshotInfo] = None

    @property
    def timestamp(self) -> Optional[datetime]:
        return parse_timestamp_id(self.timestamp_id)

    @property
    def members(self) -> List[SnapshotInfo]:
        return [s for s in (self.local, self.remote_before, self.remote_after) if s is not None]

    def add(self, info: SnapshotInfo) -> None:
        """Attach a listed file to its role slot."""
        role = info.import_role
        if role is ImportRole.LOCAL:
            self.local = info
        elif role is ImportRole.REMOTE_BEFORE:
            self.remote_before = info
        elif role is ImportRole.REMOTE_AFTER:
            self.remote_after = info


def group_import_sets(snapshots: List[SnapshotInfo]) -> Dict[str, ImportSnapshotSet]:
    """
    Group import-triple files by their shared timestamp id.

    Non-import snapshots are ignored.
    """
    sets: Dict[str, ImportSnapshotSet] = {}
    for info in snapshots:
        ts = info.import_timestamp
        if ts is None:
            continue
        sets.setdefault(ts, ImportSnapshotSet(timestamp_id=ts)).add(info)
    return sets


@dataclass
class DependencyInfo:
    """A dependency between two configuration items (e.g. flow -> operation)."""
    type: str
    source_id: str
    target_id: str
    relationship: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "relationship": self.relationship,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyInfo":
        return cls(
            type=data.get("type", ""),
            source_id=str(data.get("sourceId", "")),
            target_id=str(data.get("targetId", "")),
            relationship=data.get("relationship", ""),
        )


@dataclass
class SnapshotMetadata:
    """
    Metadata stored alongside enhanced snapshot data.

    Attributes:
        checksum: SHA-256 hex digest of the compact JSON of ``data``
        timestamp: ISO-8601 creation time
        tool_version: Version of the tool that wrote the snapshot
        item_type: Configuration type (flows, roles, ...)
        item_count: Number of items in ``data``
        dependencies: Optional dependency edges between items
    """
    checksum: str
    timestamp: str
    tool_version: str
    item_type: str
    item_count: int
    dependencies: Optional[List[DependencyInfo]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "checksum": self.checksum,
            "timestamp": self.timestamp,
            "toolVersion": self.tool_version,
            "itemType": self.item_type,
            "itemCount": self.item_count,
        }
        if self.dependencies is not None:
            result["dependencies"] = [d.to_dict() for d in self.dependencies]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SnapshotMetadata":
        dependencies = data.get("dependencies")
        return cls(
            checksum=data.get("checksum", ""),
            timestamp=data.get("timestamp", ""),
            tool_version=data.get("toolVersion", "unknown"),
            item_type=data.get("itemType", ""),
            item_count=data.get("itemCount", 0),
            dependencies=(
                [DependencyInfo.from_dict(d) for d in dependencies]
                if dependencies is not None
                else None
            ),
        )


@dataclass
class EnhancedSnapshot:
    """Snapshot data wrapped with integrity metadata."""
    metadata: SnapshotMetadata
    data: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"metadata": self.metadata.to_dict(), "data": self.data}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EnhancedSnapshot":
        return cls(
            metadata=SnapshotMetadata.from_dict(payload["metadata"]),
            data=payload["data"],
        )

    @staticmethod
    def is_enhanced(payload: Any) -> bool:
        """Whether a loaded JSON document has the metadata/data wrapper."""
        return (
            isinstance(payload, dict)
            and isinstance(payload.get("metadata"), dict)
            and "data" in payload
        )
