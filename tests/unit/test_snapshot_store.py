"""
Unit tests for SnapshotStore.

Tests file naming, listing order, loading and error reporting.
"""

import pytest

from config_audit.core.exceptions import SnapshotNotFoundError, SnapshotParseError
from config_audit.core.timestamps import TIMESTAMP_ID_PATTERN
from config_audit.snapshot.models import ImportRole
from config_audit.snapshot.store import SnapshotStore


class TestStore:
    """Tests for writing regular snapshots."""

    def test_store_with_identifier(self, snapshot_store):
        """Test that a custom identifier names the file."""
        path = snapshot_store.store("roles", [{"id": "a"}], identifier="baseline")

        assert path.name == "baseline_roles.json"
        assert path.parent == snapshot_store.snapshots_dir / "roles"
        assert path.is_absolute()

    def test_store_default_identifier_is_timestamp(self, snapshot_store):
        """Test that the default identifier is a filename-safe timestamp."""
        path = snapshot_store.store("flows", {"x": 1})

        assert TIMESTAMP_ID_PATTERN.match(path.name)
        assert path.name.endswith("_flows.json")
        assert ":" not in path.name

    def test_store_writes_pretty_json(self, snapshot_store):
        """Test that files are 2-space indented and end with a newline."""
        path = snapshot_store.store("roles", [{"id": "a"}], identifier="one")

        text = path.read_text(encoding="utf-8")
        assert text == '[\n  {\n    "id": "a"\n  }\n]\n'

    def test_store_preserves_key_order(self, snapshot_store):
        """Test that keys are written in document order, not sorted."""
        path = snapshot_store.store("roles", {"zeta": 1, "alpha": 2}, identifier="one")

        text = path.read_text(encoding="utf-8")
        assert text.index("zeta") < text.index("alpha")

    def test_store_preserves_non_ascii(self, snapshot_store):
        """Test that non-ASCII text is stored as-is."""
        path = snapshot_store.store("roles", [{"name": "Zoë"}], identifier="one")

        assert "Zoë" in path.read_text(encoding="utf-8")

    def test_store_triggers_prune(self, audit_dir):
        """Test that auto_prune runs retention after a write."""
        store = SnapshotStore(audit_dir / "snapshots")
        called = []
        store.pruner.prune_item_type = lambda item_type, **kwargs: called.append(item_type) or 0

        store.store("roles", [], identifier="one")

        assert called == ["roles"]

    def test_store_without_auto_prune(self, snapshot_store):
        """Test that pruning is skipped when auto_prune is off."""
        called = []
        snapshot_store.pruner.prune_item_type = lambda item_type, **kwargs: called.append(item_type)

        snapshot_store.store("roles", [], identifier="one")

        assert called == []


class TestImportSnapshots:
    """Tests for import-triple file naming."""

    def test_import_filenames(self, snapshot_store):
        """Test exact import-triple filenames."""
        ts = "2024-03-01T12-00-00-000Z"
        paths = [
            snapshot_store.store_import_snapshot("roles", [], ts, role)
            for role in ImportRole
        ]

        assert [p.name for p in paths] == [
            "2024-03-01T12-00-00-000Z_import_local.json",
            "2024-03-01T12-00-00-000Z_import_remote_before.json",
            "2024-03-01T12-00-00-000Z_import_remote_after.json",
        ]

    def test_import_snapshots_listed_as_import(self, snapshot_store):
        """Test that listed import files are classified as imports."""
        snapshot_store.store_import_snapshot("roles", [], "2024-03-01T12-00-00-000Z", ImportRole.LOCAL)
        snapshot_store.store("roles", [], identifier="2024-03-01T11-00-00-000Z")

        infos = snapshot_store.list_snapshots("roles")
        flags = {info.id: info.is_import for info in infos}

        assert flags == {
            "2024-03-01T11-00-00-000Z_roles.json": False,
            "2024-03-01T12-00-00-000Z_import_local.json": True,
        }


class TestListSnapshots:
    """Tests for list_snapshots and list_item_types."""

    def test_missing_directory_returns_empty(self, snapshot_store):
        """Test that an unknown item type lists nothing."""
        assert snapshot_store.list_snapshots("nope") == []

    def test_sorted_by_filename(self, snapshot_store):
        """Test that snapshots are listed oldest first by filename."""
        for ident in ("2024-03-02T00-00-00-000Z", "2024-03-01T00-00-00-000Z", "2024-03-03T00-00-00-000Z"):
            snapshot_store.store("roles", [], identifier=ident)

        ids = [s.id for s in snapshot_store.list_snapshots("roles")]

        assert ids == sorted(ids)
        assert ids[0].startswith("2024-03-01")

    def test_ignores_non_json_files(self, snapshot_store):
        """Test that stray files are not listed."""
        snapshot_store.store("roles", [], identifier="one")
        (snapshot_store.item_dir("roles") / "notes.txt").write_text("hi")

        assert [s.id for s in snapshot_store.list_snapshots("roles")] == ["one_roles.json"]

    def test_list_item_types(self, snapshot_store):
        """Test that item types are discovered from directories."""
        snapshot_store.store("roles", [], identifier="one")
        snapshot_store.store("flows", [], identifier="one")

        assert snapshot_store.list_item_types() == ["flows", "roles"]


class TestLoad:
    """Tests for loading snapshots."""

    def test_load_roundtrip(self, snapshot_store):
        """Test that loaded data equals stored data."""
        data = [{"id": "a", "nested": {"k": [1, 2, None]}}]
        path = snapshot_store.store("roles", data, identifier="one")

        assert snapshot_store.load(path) == data

    def test_load_missing_file(self, snapshot_store, tmp_path):
        """Test that a missing file raises SnapshotNotFoundError with its path."""
        missing = tmp_path / "missing.json"

        with pytest.raises(SnapshotNotFoundError) as exc_info:
            snapshot_store.load(missing)

        assert str(missing) in str(exc_info.value)

    def test_load_corrupt_file(self, snapshot_store):
        """Test that invalid JSON raises SnapshotParseError with its path."""
        path = snapshot_store.store("roles", [], identifier="one")
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SnapshotParseError) as exc_info:
            snapshot_store.load(path)

        assert str(path) in str(exc_info.value)

    def test_delete_is_idempotent(self, snapshot_store):
        """Test that deleting twice does not raise."""
        path = snapshot_store.store("roles", [], identifier="one")

        snapshot_store.delete(path)
        snapshot_store.delete(path)

        assert not path.exists()
