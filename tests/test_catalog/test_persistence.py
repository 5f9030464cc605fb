import json
import time

import pytest

from bitrecord.catalog import Domain, DomainPersistence, PermissionLevel
from bitrecord.config import SNAPSHOT_FILE_NAME, SNAPSHOT_VERSION
from bitrecord.core.exceptions import SnapshotError
from bitrecord.storage import Collection


@pytest.fixture
def populated_domain():
    d = Domain()
    d.initialize_domain(d.context("alice"), [8, 8, 16, 256])
    owner = d.context("alice")
    d.grant_permission(owner, "carol", PermissionLevel.VIEWER)
    d.create_collection(owner, [64, 128])
    d.push(owner, 0)
    d.push(owner, 0)
    d.multimod(owner, 0, 1, [0, 3], [200, 2**256 - 1])
    d.toggle_private(owner, 0, 3)
    return d


class TestDomainPersistence:
    """Tests for saving and loading domain snapshots."""

    def test_save_creates_snapshot(self, tmp_path, populated_domain):
        persistence = DomainPersistence(tmp_path / "snap")
        path = persistence.save(populated_domain)

        assert path == tmp_path / "snap" / SNAPSHOT_FILE_NAME
        data = json.loads(path.read_text())
        assert data["version"] == SNAPSHOT_VERSION
        assert data["permissions"] == [["alice", "OWNER"], ["carol", "VIEWER"]]
        assert data["private_fields"] == [[0, 3]]
        assert data["collections"]["0"]["fields"] == [8, 8, 16, 256]
        assert not (tmp_path / "snap" / "domain_snapshot.tmp").exists()

    def test_round_trip(self, tmp_path, populated_domain):
        persistence = DomainPersistence(tmp_path)
        persistence.save(populated_domain)
        restored = persistence.load()

        owner = restored.context("alice")
        assert owner.level == PermissionLevel.OWNER
        assert restored.collection_ids() == [0, 1]
        assert restored.read_record(owner, 0, 0) == [0, 0, 0, 0]
        assert restored.read_record(owner, 0, 1) == [200, 0, 0, 2**256 - 1]
        assert restored.is_private(0, 3)
        assert restored.create_collection(owner, [8]) == 2

        viewer = restored.context("carol")
        assert restored.read_field(viewer, 0, 1, 0) == 200

    def test_load_without_snapshot(self, tmp_path):
        domain = DomainPersistence(tmp_path).load()
        assert not domain.is_initialized()
        assert domain.collection_ids() == []

    def test_version_mismatch(self, tmp_path, populated_domain):
        persistence = DomainPersistence(tmp_path)
        path = persistence.save(populated_domain)
        data = json.loads(path.read_text())
        data["version"] = "0.1"
        path.write_text(json.dumps(data))

        with pytest.raises(SnapshotError, match="Unsupported snapshot version"):
            persistence.load()

    def test_corrupt_json(self, tmp_path):
        (tmp_path / SNAPSHOT_FILE_NAME).write_text("{not json")
        with pytest.raises(SnapshotError, match="Failed to read snapshot"):
            DomainPersistence(tmp_path).load()

    def test_malformed_snapshot(self, tmp_path):
        (tmp_path / SNAPSHOT_FILE_NAME).write_text(json.dumps({
            "version": SNAPSHOT_VERSION,
            "collections": {"0": {"fields": [8, 12], "record_count": 0, "records": {}}},
        }))
        with pytest.raises(SnapshotError, match="Malformed snapshot"):
            DomainPersistence(tmp_path).load()

    def test_backup_and_restore(self, tmp_path, populated_domain):
        persistence = DomainPersistence(tmp_path)
        backup = persistence.create_backup(populated_domain)

        assert backup.parent == tmp_path / "backups"
        restored = persistence.restore_from_backup(backup)
        assert restored.read_record(restored.context("alice"), 0, 1) == [200, 0, 0, 2**256 - 1]

    def test_restore_missing_backup(self, tmp_path):
        with pytest.raises(SnapshotError, match="Backup file not found"):
            DomainPersistence(tmp_path).restore_from_backup(tmp_path / "nope.json")

    def _corrupt(self, tmp_path, populated_domain, mutate):
        persistence = DomainPersistence(tmp_path)
        path = persistence.save(populated_domain)
        data = json.loads(path.read_text())
        mutate(data)
        path.write_text(json.dumps(data))
        return persistence

    def test_word_wider_than_page(self, tmp_path, populated_domain):
        def mutate(data):
            data["collections"]["0"]["records"]["1"]["1"] = hex(1 << 300)

        persistence = self._corrupt(tmp_path, populated_domain, mutate)
        with pytest.raises(SnapshotError, match="Malformed snapshot.*outside its fields"):
            persistence.load()

    def test_record_beyond_record_count(self, tmp_path, populated_domain):
        def mutate(data):
            data["collections"]["0"]["records"]["7"] = {"0": "0x1"}

        persistence = self._corrupt(tmp_path, populated_domain, mutate)
        with pytest.raises(SnapshotError, match="Record 7 outside record count 2"):
            persistence.load()

    def test_negative_record_count(self, tmp_path, populated_domain):
        def mutate(data):
            data["collections"]["1"]["record_count"] = -3

        persistence = self._corrupt(tmp_path, populated_domain, mutate)
        with pytest.raises(SnapshotError, match="Negative record count"):
            persistence.load()

    def test_private_flags_on_missing_fields(self, tmp_path, populated_domain):
        def mutate(data):
            data["private_fields"] = [[0, 9], [5, 0]]

        persistence = self._corrupt(tmp_path, populated_domain, mutate)
        with pytest.raises(SnapshotError, match="Private field 9"):
            persistence.load()

    def test_snapshot_without_owner(self, tmp_path, populated_domain):
        def mutate(data):
            data["permissions"] = [["carol", "VIEWER"]]

        persistence = self._corrupt(tmp_path, populated_domain, mutate)
        with pytest.raises(SnapshotError, match="has no owner"):
            persistence.load()

    def test_non_object_snapshot(self, tmp_path):
        (tmp_path / SNAPSHOT_FILE_NAME).write_text("[1, 2]")
        with pytest.raises(SnapshotError, match="top level is not an object"):
            DomainPersistence(tmp_path).load()

    def test_save_failure(self, tmp_path, populated_domain):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(SnapshotError, match="Failed to save domain snapshot"):
            DomainPersistence(blocker / "snap").save(populated_domain)

    def test_unstorable_identity_is_not_saved(self, tmp_path):
        d = Domain()
        d.initialize_domain(d.context(("team", 7)), [8])
        persistence = DomainPersistence(tmp_path)
        with pytest.raises(SnapshotError, match="cannot be snapshotted"):
            persistence.save(d)
        assert not persistence.snapshot_file.exists()

    def test_int_and_str_identities_survive_save(self, tmp_path):
        d = Domain()
        d.initialize_domain(d.context(1), [8])
        d.grant_permission(d.context(1), "1", PermissionLevel.VIEWER)
        persistence = DomainPersistence(tmp_path)
        persistence.save(d)

        restored = persistence.load()
        assert restored.get_permission(1) == PermissionLevel.OWNER
        assert restored.get_permission("1") == PermissionLevel.VIEWER

    def test_collection_factory_round_trip(self, tmp_path, populated_domain):
        class TrackingCollection(Collection):
            pass

        persistence = DomainPersistence(tmp_path, collection_factory=TrackingCollection)
        assert isinstance(persistence.load(), Domain)
        persistence.save(populated_domain)

        restored = persistence.load()
        assert isinstance(restored.get_collection(0), TrackingCollection)
        assert isinstance(restored.get_collection(1), TrackingCollection)

    def test_backups_in_the_same_millisecond(self, tmp_path, populated_domain, monkeypatch):
        monkeypatch.setattr(time, "time", lambda: 1700000000.0)
        persistence = DomainPersistence(tmp_path)
        first = persistence.create_backup(populated_domain)
        populated_domain.push(populated_domain.context("alice"), 1)
        second = persistence.create_backup(populated_domain)

        assert first != second
        assert second.name == "domain_backup_1700000000000_1.json"
        first_domain = persistence.restore_from_backup(first)
        second_domain = persistence.restore_from_backup(second)
        assert first_domain.get_collection(1).get_record_count() == 0
        assert second_domain.get_collection(1).get_record_count() == 1
