"""
Configuration loader for the audit engine.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..core.exceptions import AuditConfigError


logger = logging.getLogger(__name__)

ENV_AUDIT_PATH = "DCT_AUDIT_PATH"
ENV_CONFIG_PATH = "DCT_CONFIG_PATH"
ENV_RETENTION_DAYS = "DCT_RETENTION_DAYS"
ENV_CONFIG_FILE = "DCT_AUDIT_CONFIG"

DEFAULT_RETENTION_DAYS = 30
DEFAULT_MIN_REGULAR = 3
DEFAULT_MIN_IMPORT_SETS = 2

AUDIT_LOG_FILENAME = "audit.ndjson"
SNAPSHOTS_DIRNAME = "snapshots"


def _first_non_empty_env(*keys: str) -> Optional[str]:
    """Return the first non-empty env var value for the given keys."""
    for key in keys:
        value = os.environ.get(key)
        if value is not None and value.strip() != "":
            return value
    return None


def _non_negative_int(value: Any, name: str) -> int:
    """Coerce a config value to a non-negative int or raise AuditConfigError."""
    if isinstance(value, bool):
        raise AuditConfigError(f"{name} must be a non-negative integer, got {value!r}")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise AuditConfigError(f"{name} must be a non-negative integer, got {value!r}")
    if number < 0:
        raise AuditConfigError(f"{name} must be a non-negative integer, got {value!r}")
    return number


@dataclass(frozen=True)
class RetentionPolicy:
    """
    Snapshot retention settings.

    Attributes:
        retention_days: Snapshots older than this many days may be pruned
        min_regular: Regular snapshots always kept regardless of age
        min_import_sets: Import triples always kept regardless of age
    """
    retention_days: int = DEFAULT_RETENTION_DAYS
    min_regular: int = DEFAULT_MIN_REGULAR
    min_import_sets: int = DEFAULT_MIN_IMPORT_SETS


@dataclass(frozen=True)
class AuditConfig:
    """
    Resolved configuration for one audit directory.

    Precedence for every value: explicit argument > environment > YAML file
    > built-in default.
    """
    audit_dir: Path
    retention: RetentionPolicy = field(default_factory=RetentionPolicy)
    auto_prune: bool = True

    @property
    def audit_log_path(self) -> Path:
        return self.audit_dir / AUDIT_LOG_FILENAME

    @property
    def snapshots_dir(self) -> Path:
        return self.audit_dir / SNAPSHOTS_DIRNAME

    @classmethod
    def load(
        cls,
        audit_dir: Optional[Path] = None,
        config_path: Optional[Path] = None,
        retention_days: Optional[int] = None,
    ) -> "AuditConfig":
        """
        Resolve configuration from arguments, environment and YAML.

        Args:
            audit_dir: Explicit audit directory (wins over everything)
            config_path: YAML config file; defaults to $DCT_AUDIT_CONFIG
            retention_days: Explicit retention period in days

        Returns:
            AuditConfig with an absolute audit_dir
        """
        if config_path is None:
            env_config = _first_non_empty_env(ENV_CONFIG_FILE)
            config_path = Path(env_config) if env_config else None

        settings = _load_yaml(config_path) if config_path else {}

        resolved_dir = cls._resolve_audit_dir(audit_dir, settings)

        days = settings.get("retention_days", DEFAULT_RETENTION_DAYS)
        env_days = _first_non_empty_env(ENV_RETENTION_DAYS)
        if env_days is not None:
            days = env_days
        if retention_days is not None:
            days = retention_days

        retention = RetentionPolicy(
            retention_days=_non_negative_int(days, "retention_days"),
            min_regular=_non_negative_int(
                settings.get("min_regular", DEFAULT_MIN_REGULAR), "min_regular"
            ),
            min_import_sets=_non_negative_int(
                settings.get("min_import_sets", DEFAULT_MIN_IMPORT_SETS), "min_import_sets"
            ),
        )

        config = cls(
            audit_dir=resolved_dir,
            retention=retention,
            auto_prune=bool(settings.get("auto_prune", True)),
        )
        logger.debug(
            f"Resolved audit config: dir={config.audit_dir} "
            f"retention_days={retention.retention_days}"
        )
        return config

    @staticmethod
    def _resolve_audit_dir(audit_dir: Optional[Path], settings: Dict[str, Any]) -> Path:
        """Apply the audit directory fallback chain."""
        if audit_dir:
            return Path(audit_dir).resolve()

        env_audit = _first_non_empty_env(ENV_AUDIT_PATH)
        if env_audit:
            return Path(env_audit).resolve()

        env_config_dir = _first_non_empty_env(ENV_CONFIG_PATH)
        if env_config_dir:
            return (Path(env_config_dir) / "audit").resolve()

        if settings.get("dir"):
            return Path(settings["dir"]).resolve()

        return (Path.cwd() / "audit").resolve()


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    """Load the ``audit`` section of a YAML config file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise AuditConfigError(f"Config file not found: {config_path}")

    logger.info(f"Loading config from: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise AuditConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise AuditConfigError(f"Config file must contain a mapping: {config_path}")

    section = config.get("audit", {}) or {}
    if not isinstance(section, dict):
        raise AuditConfigError(f"'audit' section must be a mapping: {config_path}")
    return section
