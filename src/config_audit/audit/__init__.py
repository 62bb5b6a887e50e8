"""
Audit ledger, import audit protocol and history views.
"""

from .models import (
    AuditLogEntry,
    ImportAuditResult,
    ImportResult,
    Operation,
    Status,
)
from .audit_log import AuditLog
from .protocol import ImportAuditProtocol
from .history import HistoryPresenters, HistoryPrinter, ImportDiffReport, TimeMachineReport
from .integrity import IntegrityChecker, ValidationSummary
from .manager import AuditManager

__all__ = [
    "AuditLogEntry",
    "ImportAuditResult",
    "ImportResult",
    "Operation",
    "Status",
    "AuditLog",
    "ImportAuditProtocol",
    "HistoryPresenters",
    "HistoryPrinter",
    "ImportDiffReport",
    "TimeMachineReport",
    "IntegrityChecker",
    "ValidationSummary",
    "AuditManager",
]
