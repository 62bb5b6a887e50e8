"""
Unit tests for AuditConfig resolution.
"""

from pathlib import Path

import pytest

from config_audit.config.config_loader import (
    DEFAULT_RETENTION_DAYS,
    AuditConfig,
    RetentionPolicy,
)
from config_audit.core.exceptions import AuditConfigError


@pytest.fixture
def yaml_config(tmp_path):
    def _write(text: str) -> Path:
        path = tmp_path / "audit.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write


class TestAuditDir:
    """Tests for the audit directory fallback chain."""

    def test_default_is_cwd_audit(self, tmp_path, monkeypatch):
        """Test the ./audit default."""
        monkeypatch.chdir(tmp_path)

        config = AuditConfig.load()

        assert config.audit_dir == (tmp_path / "audit").resolve()
        assert config.audit_log_path.name == "audit.ndjson"
        assert config.snapshots_dir.name == "snapshots"

    def test_config_path_env(self, tmp_path, monkeypatch):
        """Test that DCT_CONFIG_PATH implies <config>/audit."""
        monkeypatch.setenv("DCT_CONFIG_PATH", str(tmp_path / "cfg"))

        assert AuditConfig.load().audit_dir == (tmp_path / "cfg" / "audit").resolve()

    def test_audit_path_env_wins(self, tmp_path, monkeypatch):
        """Test that DCT_AUDIT_PATH beats DCT_CONFIG_PATH."""
        monkeypatch.setenv("DCT_CONFIG_PATH", str(tmp_path / "cfg"))
        monkeypatch.setenv("DCT_AUDIT_PATH", str(tmp_path / "explicit"))

        assert AuditConfig.load().audit_dir == (tmp_path / "explicit").resolve()

    def test_argument_wins(self, tmp_path, monkeypatch):
        """Test that an explicit argument beats the environment."""
        monkeypatch.setenv("DCT_AUDIT_PATH", str(tmp_path / "env"))

        config = AuditConfig.load(audit_dir=tmp_path / "arg")

        assert config.audit_dir == (tmp_path / "arg").resolve()

    def test_blank_env_ignored(self, tmp_path, monkeypatch):
        """Test that an empty variable falls through to the next source."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DCT_AUDIT_PATH", "  ")

        assert AuditConfig.load().audit_dir == (tmp_path / "audit").resolve()


class TestRetention:
    """Tests for retention settings."""

    def test_defaults(self, tmp_path):
        """Test the default policy."""
        config = AuditConfig.load(audit_dir=tmp_path)

        assert config.retention == RetentionPolicy(
            retention_days=DEFAULT_RETENTION_DAYS, min_regular=3, min_import_sets=2
        )
        assert config.auto_prune

    def test_env_retention_days(self, tmp_path, monkeypatch):
        """Test DCT_RETENTION_DAYS."""
        monkeypatch.setenv("DCT_RETENTION_DAYS", "7")

        assert AuditConfig.load(audit_dir=tmp_path).retention.retention_days == 7

    def test_explicit_retention_days(self, tmp_path, monkeypatch):
        """Test that the argument beats the environment."""
        monkeypatch.setenv("DCT_RETENTION_DAYS", "7")

        assert AuditConfig.load(audit_dir=tmp_path, retention_days=90).retention.retention_days == 90

    @pytest.mark.parametrize("value", ["-1", "abc", "1.5"])
    def test_invalid_retention_days(self, tmp_path, monkeypatch, value):
        """Test that bad retention values are rejected."""
        monkeypatch.setenv("DCT_RETENTION_DAYS", value)

        with pytest.raises(AuditConfigError):
            AuditConfig.load(audit_dir=tmp_path)


class TestYamlConfig:
    """Tests for the optional YAML file."""

    def test_yaml_values(self, tmp_path, yaml_config):
        """Test that the audit section is applied."""
        path = yaml_config(
            "audit:\n"
            f"  dir: {tmp_path / 'from-yaml'}\n"
            "  retention_days: 14\n"
            "  min_regular: 5\n"
            "  min_import_sets: 1\n"
            "  auto_prune: false\n"
        )

        config = AuditConfig.load(config_path=path)

        assert config.audit_dir == (tmp_path / "from-yaml").resolve()
        assert config.retention == RetentionPolicy(14, 5, 1)
        assert not config.auto_prune

    def test_env_overrides_yaml(self, tmp_path, monkeypatch, yaml_config):
        """Test that environment variables beat the YAML file."""
        path = yaml_config(f"audit:\n  dir: {tmp_path / 'yaml'}\n  retention_days: 14\n")
        monkeypatch.setenv("DCT_AUDIT_PATH", str(tmp_path / "env"))
        monkeypatch.setenv("DCT_RETENTION_DAYS", "3")

        config = AuditConfig.load(config_path=path)

        assert config.audit_dir == (tmp_path / "env").resolve()
        assert config.retention.retention_days == 3

    def test_config_file_from_env(self, tmp_path, monkeypatch, yaml_config):
        """Test DCT_AUDIT_CONFIG."""
        path = yaml_config("audit:\n  retention_days: 10\n")
        monkeypatch.setenv("DCT_AUDIT_CONFIG", str(path))

        assert AuditConfig.load(audit_dir=tmp_path).retention.retention_days == 10

    def test_missing_file(self, tmp_path):
        """Test that a missing config file is an error."""
        with pytest.raises(AuditConfigError, match="not found"):
            AuditConfig.load(config_path=tmp_path / "nope.yaml")

    def test_not_a_mapping(self, yaml_config):
        """Test that a YAML list is rejected."""
        with pytest.raises(AuditConfigError):
            AuditConfig.load(config_path=yaml_config("- a\n- b\n"))

    def test_invalid_yaml(self, yaml_config):
        """Test that unparsable YAML is reported as a config error."""
        with pytest.raises(AuditConfigError, match="Invalid YAML"):
            AuditConfig.load(config_path=yaml_config("audit: [unclosed\n"))
