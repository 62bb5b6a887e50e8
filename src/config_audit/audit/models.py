"""
Data models for the audit log and the import audit protocol.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..core.exceptions import AuditLogError


class Operation(str, Enum):
    """Audited operation."""
    IMPORT = "import"
    EXPORT = "export"


class Status(str, Enum):
    """Outcome of an audited operation."""
    SUCCESS = "success"
    FAILURE = "failure"


DRY_RUN_MESSAGE = "Dry run: no changes applied."

# Wire name -> attribute name, in the order fields are written
_ENTRY_FIELDS = (
    ("timestamp", "timestamp"),
    ("operation", "operation"),
    ("manager", "manager"),
    ("itemType", "item_type"),
    ("status", "status"),
    ("message", "message"),
    ("snapshotFile", "snapshot_file"),
    ("localConfigSnapshot", "local_config_snapshot"),
    ("remoteBeforeSnapshot", "remote_before_snapshot"),
    ("remoteAfterSnapshot", "remote_after_snapshot"),
)
_REQUIRED_FIELDS = ("operation", "manager", "itemType", "status")


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass
class AuditLogEntry:
    """
    One line of the audit ledger.

    Attributes:
        timestamp: ISO-8601 UTC time the entry was appended
        operation: 'import' or 'export'
        manager: Name of the Config Manager that ran the operation
        item_type: Config type (flows, roles, ...)
        status: 'success' or 'failure'
        message: Optional human-readable outcome
        snapshot_file: Snapshot written by an export
        local_config_snapshot: Import triple local file
        remote_before_snapshot: Import triple remote_before file
        remote_after_snapshot: Import triple remote_after file (absent on dry run)
        extra: Unknown fields, preserved verbatim
    """
    operation: str
    manager: str
    item_type: str
    status: str
    timestamp: Optional[str] = None
    message: Optional[str] = None
    snapshot_file: Optional[str] = None
    local_config_snapshot: Optional[str] = None
    remote_before_snapshot: Optional[str] = None
    remote_after_snapshot: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == Status.SUCCESS.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk JSON shape; None fields are omitted."""
        result: Dict[str, Any] = {}
        for wire_name, attr in _ENTRY_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                result[wire_name] = value
        for key, value in self.extra.items():
            result.setdefault(key, value)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuditLogEntry":
        """
        Create from the on-disk JSON shape.

        Raises:
            AuditLogError: If a required field is missing
        """
        missing = [name for name in _REQUIRED_FIELDS if data.get(name) in (None, "")]
        if missing:
            raise AuditLogError(f"Audit entry is missing required field(s): {', '.join(missing)}")

        known = {wire_name for wire_name, _ in _ENTRY_FIELDS}
        values = {
            attr: _enum_value(data.get(wire_name))
            for wire_name, attr in _ENTRY_FIELDS
            if data.get(wire_name) is not None
        }
        for key in ("snapshot_file", "local_config_snapshot",
                    "remote_before_snapshot", "remote_after_snapshot"):
            if key in values:
                values[key] = str(values[key])
        return cls(
            **values,
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class ImportResult:
    """Outcome reported by an import callback."""
    status: str
    message: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "ImportResult":
        """
        Accept an ImportResult or a mapping with status/message keys.

        A missing or unknown status is recorded as a failure naming the
        offending result.

        Raises:
            TypeError: If the value is neither an ImportResult nor a mapping
        """
        if isinstance(value, ImportResult):
            status, message = value.status, value.message
        elif isinstance(value, Mapping):
            status, message = value.get("status"), value.get("message")
        else:
            raise TypeError(f"Import callback returned unsupported result: {value!r}")

        try:
            return cls(status=Status(status).value, message=message)
        except ValueError:
            return cls(
                status=Status.FAILURE.value,
                message=f"Import callback returned invalid status: {value!r}",
            )


@dataclass
class ImportAuditResult:
    """
    Everything one run of the import audit protocol produced.

    Callers inspect ``status`` rather than relying on an exception: a failing
    import is captured here, never re-raised.
    """
    status: str
    message: Optional[str]
    dry_run: bool
    timestamp_id: str
    local_config_snapshot: str
    remote_before_snapshot: str
    remote_after_snapshot: Optional[str]
    entry: AuditLogEntry

    @property
    def succeeded(self) -> bool:
        return self.status == Status.SUCCESS.value
