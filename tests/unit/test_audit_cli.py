"""
Unit tests for the config-audit command line.
"""

import json
import logging
import os
from unittest.mock import patch

import pytest

from config_audit.audit_cli import main
from config_audit.core.logging import PACKAGE_LOGGER
from config_audit.snapshot.models import ImportRole


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch):
    """Run from an empty directory and reset the package logger afterwards."""
    monkeypatch.chdir(tmp_path)
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def run(audit_dir):
    def _run(*args):
        return main(["--no-color", "--audit-dir", str(audit_dir), *args])
    return _run


class TestListAndDiff:
    """Tests for list and diff."""

    def test_list_empty(self, run, capsys):
        """Test listing an item type without snapshots."""
        assert run("list", "roles") == 0
        assert "No snapshots found for type: roles" in capsys.readouterr().out

    def test_list(self, run, audit_manager, capsys):
        """Test 1-based numbering in list output."""
        audit_manager.store_snapshot("roles", [], identifier="2024-03-01T00-00-00-000Z")
        audit_manager.store_snapshot("roles", [], identifier="2024-03-02T00-00-00-000Z")

        assert run("list", "roles") == 0

        out = capsys.readouterr().out
        assert "1. 2024-03-01T00-00-00-000Z_roles.json" in out
        assert "2. 2024-03-02T00-00-00-000Z_roles.json" in out

    def test_diff(self, run, audit_manager, capsys):
        """Test diffing two listed snapshots."""
        audit_manager.store_snapshot("roles", [{"id": "a"}], identifier="1")
        audit_manager.store_snapshot("roles", [{"id": "b"}], identifier="2")

        assert run("diff", "roles", "1", "2") == 0

        out = capsys.readouterr().out
        assert '-     "id": "a"' in out
        assert '+     "id": "b"' in out

    @pytest.mark.parametrize("indices", [("0", "1"), ("1", "3")])
    def test_diff_invalid_indices(self, run, audit_manager, capsys, indices):
        """Test that out-of-range indices fail."""
        audit_manager.store_snapshot("roles", [], identifier="1")
        audit_manager.store_snapshot("roles", [], identifier="2")

        assert run("diff", "roles", *indices) == 1
        assert "Invalid snapshot indices." in capsys.readouterr().err

    def test_diff_corrupt_snapshot(self, run, audit_manager, capsys):
        """Test that a corrupt snapshot is reported with its path."""
        first = audit_manager.store_snapshot("roles", [], identifier="1")
        audit_manager.store_snapshot("roles", [], identifier="2")
        first.write_text("{", encoding="utf-8")

        assert run("diff", "roles", "1", "2") == 1
        assert str(first) in capsys.readouterr().err


class TestHistoryCommands:
    """Tests for timemachine and import-diffs."""

    def test_timemachine(self, run, audit_manager, capsys):
        """Test the time machine output."""
        audit_manager.store_snapshot("roles", [1], identifier="2024-03-01T00-00-00-000Z")
        audit_manager.store_snapshot("roles", [2], identifier="2024-03-02T00-00-00-000Z")

        assert run("timemachine", "roles", "--limit", "1") == 0
        assert "=== Diff:" in capsys.readouterr().out

    def test_timemachine_bad_start_time(self, run, capsys):
        """Test that an unparsable --start-time fails."""
        assert run("timemachine", "roles", "--start-time", "yesterday") == 1
        assert "Invalid --start-time" in capsys.readouterr().err

    def test_import_diffs_none(self, run, capsys):
        """Test import-diffs without any snapshots."""
        assert run("import-diffs", "roles") == 0
        assert 'No snapshots found for "roles".' in capsys.readouterr().out

    def test_import_diffs(self, run, audit_manager, capsys):
        """Test import-diffs on a dry-run triple."""
        ts = "2024-03-01T00-00-00-000Z"
        audit_manager.store.store_import_snapshot("roles", [], ts, ImportRole.REMOTE_BEFORE)
        audit_manager.store.store_import_snapshot("roles", [{"id": "a"}], ts, ImportRole.LOCAL)

        assert run("import-diffs", "roles") == 0

        out = capsys.readouterr().out
        assert f"Latest Import Diff Set @ {ts}" in out
        assert "Preview" in out
        assert "Actual" not in out


class TestMaintenanceCommands:
    """Tests for validate, integrity-check, prune and log."""

    def test_validate_ok(self, run, audit_manager, capsys):
        """Test validate on a healthy item type."""
        audit_manager.store_enhanced_snapshot("roles", [{"id": "a"}], identifier="1")

        assert run("validate", "roles") == 0
        assert "Valid snapshots: 1" in capsys.readouterr().out

    def test_validate_failure(self, run, audit_manager, capsys):
        """Test that an invalid snapshot yields exit code 1."""
        path = audit_manager.store_snapshot("roles", [], identifier="1")
        path.write_text("nope", encoding="utf-8")

        assert run("validate", "roles") == 1
        assert "INVALID" in capsys.readouterr().out

    def test_integrity_check(self, run, audit_manager, capsys):
        """Test integrity-check over selected types."""
        audit_manager.store_snapshot("roles", [{"id": "a"}], identifier="1")

        assert run("integrity-check", "--types", "roles", "flows") == 0

        out = capsys.readouterr().out
        assert "roles: 1 valid, 0 invalid" in out
        assert "flows: No snapshots" in out

    def test_prune_dry_run(self, run, audit_manager, capsys):
        """Test that --dry-run lists files without deleting them."""
        audit_manager.store.auto_prune = False
        for day in range(1, 6):
            audit_manager.store.store(
                "roles", [], identifier=f"2000-01-{day:02d}T00-00-00-000Z"
            )

        assert run("prune", "roles", "--dry-run") == 0

        out = capsys.readouterr().out
        assert out.count("would delete roles/") == 2
        assert len(audit_manager.get_snapshots("roles")) == 5

    def test_prune(self, run, audit_manager, capsys):
        """Test pruning with an explicit retention period."""
        audit_manager.store.auto_prune = False
        for day in range(1, 6):
            audit_manager.store.store(
                "roles", [], identifier=f"2000-01-{day:02d}T00-00-00-000Z"
            )

        assert run("prune", "--retention-days", "10") == 0
        assert "Removed 2 snapshot file(s)." in capsys.readouterr().out
        assert len(audit_manager.get_snapshots("roles")) == 3

    def test_log_json(self, run, audit_manager, capsys):
        """Test raw NDJSON log output with filters."""
        audit_manager.audit_export_operation("roles", "RolesManager", [])
        audit_manager.audit_export_operation("flows", "FlowsManager", [])

        assert run("log", "--type", "flows", "--json") == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["manager"] == "FlowsManager"

    def test_log_text(self, run, audit_manager, capsys):
        """Test human-readable log output."""
        audit_manager.audit_export_operation("roles", "RolesManager", [], message="ok")

        assert run("log") == 0
        assert "RolesManager  - ok" in capsys.readouterr().out


class TestMain:
    """Tests for argument handling."""

    def test_no_command(self, capsys):
        """Test that running without a command fails."""
        assert main([]) == 1
        assert "No command specified" in capsys.readouterr().err

    def test_bad_config_file(self, tmp_path, capsys):
        """Test that a missing --config file is reported."""
        assert main(["--config", str(tmp_path / "missing.yaml"), "list", "roles"]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_dotenv_loaded(self, tmp_path, monkeypatch, capsys):
        """Test that DCT_AUDIT_PATH is picked up from ./.env."""
        env_audit = tmp_path / "from-dotenv"
        (tmp_path / ".env").write_text(f"DCT_AUDIT_PATH={env_audit}\n", encoding="utf-8")

        with patch.dict(os.environ):
            assert main(["list", "roles"]) == 0
            assert os.environ["DCT_AUDIT_PATH"] == str(env_audit)
        assert (env_audit / "audit.ndjson").exists()
