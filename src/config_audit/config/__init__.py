"""
Configuration for the audit engine.
"""

from .config_loader import AuditConfig, RetentionPolicy

__all__ = ["AuditConfig", "RetentionPolicy"]
