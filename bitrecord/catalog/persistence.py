"""
Domain snapshot persistence.
Handles saving/loading a domain's permission table, privacy flags and
collections to/from a JSON file.
"""
import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

from ..config import BACKUP_DIR_NAME, SNAPSHOT_FILE_NAME, SNAPSHOT_VERSION
from ..core.exceptions import InvalidWidthError, SnapshotError
from ..storage import RecordCollection
from .domain import Domain

logger = logging.getLogger(__name__)


class DomainPersistence:
    """Handles domain snapshot persistence operations."""

    def __init__(self, snapshot_dir: Union[str, Path],
                 collection_factory: Optional[Callable[[int], RecordCollection]] = None):
        self.snapshot_dir = Path(snapshot_dir)
        self.backup_dir = self.snapshot_dir / BACKUP_DIR_NAME
        self.snapshot_file = self.snapshot_dir / SNAPSHOT_FILE_NAME
        self.collection_factory = collection_factory
        self._lock = threading.RLock()

    def save(self, domain: Domain) -> Path:
        """Save a domain snapshot, replacing any previous one."""
        with self._lock:
            data = self._envelope(domain)
            try:
                self.snapshot_dir.mkdir(parents=True, exist_ok=True)

                # Write to temp file first, then rename over the old snapshot
                temp_file = self.snapshot_file.with_suffix('.tmp')
                with open(temp_file, 'w') as f:
                    json.dump(data, f, indent=2)
                temp_file.replace(self.snapshot_file)

            except OSError as e:
                raise SnapshotError(f"Failed to save domain snapshot: {e}") from e

            logger.info("Saved domain snapshot to %s", self.snapshot_file)
            return self.snapshot_file

    def load(self) -> Domain:
        """Load the domain snapshot; a missing file yields a fresh domain."""
        if not self.snapshot_file.exists():
            return Domain(self.collection_factory)

        with self._lock:
            domain = self._read(self.snapshot_file)
            logger.info("Loaded domain snapshot from %s", self.snapshot_file)
            return domain

    def create_backup(self, domain: Domain) -> Path:
        """Write a timestamped copy of the domain under backups/."""
        with self._lock:
            data = self._envelope(domain)
            try:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                timestamp = int(time.time() * 1000)
                backup_file = self.backup_dir / f"domain_backup_{timestamp}.json"
                suffix = 1
                while backup_file.exists():
                    backup_file = self.backup_dir / f"domain_backup_{timestamp}_{suffix}.json"
                    suffix += 1

                with open(backup_file, 'x') as f:
                    json.dump(data, f, indent=2)

            except OSError as e:
                raise SnapshotError(f"Failed to write domain backup: {e}") from e

            return backup_file

    def restore_from_backup(self, backup_file: Union[str, Path]) -> Domain:
        """Restore a domain from a backup file."""
        backup_file = Path(backup_file)
        with self._lock:
            if not backup_file.exists():
                raise SnapshotError(f"Backup file not found: {backup_file}")
            return self._read(backup_file)

    @staticmethod
    def _envelope(domain: Domain) -> dict:
        try:
            snapshot = domain.to_dict()
        except ValueError as e:
            raise SnapshotError(f"Domain cannot be snapshotted: {e}") from e
        return {
            "version": SNAPSHOT_VERSION,
            "created_at": time.time(),
            **snapshot,
        }

    def _read(self, path: Path) -> Domain:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Failed to read snapshot {path}: {e}") from e

        if not isinstance(data, dict):
            raise SnapshotError(f"Malformed snapshot {path}: top level is not an object")

        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r} (expected {SNAPSHOT_VERSION})")

        try:
            return Domain.from_dict(data, self.collection_factory)
        except (KeyError, ValueError, TypeError, AttributeError, InvalidWidthError) as e:
            raise SnapshotError(f"Malformed snapshot {path}: {e}") from e
