"""
Shared test fixtures and configuration for pytest.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config_audit.audit.manager import AuditManager  # noqa: E402
from config_audit.config.config_loader import AuditConfig, RetentionPolicy  # noqa: E402
from config_audit.snapshot.store import SnapshotStore  # noqa: E402


logger = logging.getLogger(__name__)

AUDIT_ENV_VARS = (
    "DCT_AUDIT_PATH",
    "DCT_CONFIG_PATH",
    "DCT_RETENTION_DAYS",
    "DCT_AUDIT_CONFIG",
)


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "e2e: End-to-end tests over a real audit directory")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_audit_env(monkeypatch):
    """Keep the developer's DCT_* variables out of every test."""
    for name in AUDIT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def audit_dir(tmp_path) -> Path:
    """Fixture providing an empty audit directory."""
    path = tmp_path / "audit"
    path.mkdir()
    return path


@pytest.fixture
def snapshot_store(audit_dir) -> SnapshotStore:
    """Snapshot store without automatic pruning."""
    return SnapshotStore(audit_dir / "snapshots", auto_prune=False)


@pytest.fixture
def audit_config(audit_dir) -> AuditConfig:
    """Configuration with the default retention policy and auto-prune on."""
    return AuditConfig(audit_dir=audit_dir, retention=RetentionPolicy())


@pytest.fixture
def audit_manager(audit_config) -> AuditManager:
    """Fixture providing an AuditManager over the temporary audit directory."""
    return AuditManager(config=audit_config)


@pytest.fixture
def write_snapshot():
    """Write a JSON snapshot file directly, bypassing the store."""
    import json

    def _write(directory: Path, name: str, data) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        return path

    return _write
