"""
Custom exceptions for the audit & snapshot engine.
"""


class AuditError(Exception):
    """Base exception for all audit engine errors."""
    pass


class SnapshotNotFoundError(AuditError):
    """
    A requested snapshot file does not exist.

    Raised when a snapshot path passed to load() or diff() is missing.
    """

    def __init__(self, path):
        super().__init__(f"Snapshot file not found: {path}")
        self.path = str(path)


class SnapshotParseError(AuditError):
    """
    A stored snapshot is not valid JSON.

    The offending path is always part of the message so corruption can be
    located from a CLI report.
    """

    def __init__(self, path, reason: str = ""):
        message = f"Snapshot file is not valid JSON: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = str(path)
        self.reason = reason


class AuditLogError(AuditError):
    """
    An audit log entry is malformed.

    Raised when a required field (operation, manager, itemType, status)
    is missing from an entry passed to AuditLog.append().
    """
    pass


class AuditConfigError(AuditError):
    """
    Error in audit configuration.

    Raised when:
    - The YAML config file is missing or not a mapping
    - The retention period is not a non-negative integer
    """
    pass
