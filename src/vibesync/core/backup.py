#!/usr/bin/env python3
"""
Backup store for the local configuration tree.

A backup is taken at the start of every import that writes to disk. Backups
are timestamp-named directories mirroring the catalog layout; they are kept
indefinitely and restored by name only.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .config import SyncFileSet, SyncPaths, DEFAULT_FILE_SET
from .errors import BackupNotFoundError, InvalidBackupNameError
from ..utils.fs import copy_path
from ..utils.logger import get_logger

TIMESTAMP_FORMAT = '%Y%m%dT%H%M%S'


class BackupStore:
    """Creates, lists and restores backups of the local tree."""

    def __init__(self, paths: SyncPaths, fileset: SyncFileSet = DEFAULT_FILE_SET):
        """
        Initialize backup store.

        Args:
            paths: Locations of the local tree and the backup root
            fileset: Catalog of artifacts to back up and restore
        """
        self.logger = get_logger(f"{__name__}.BackupStore")
        self.paths = paths
        self.fileset = fileset

    @property
    def backup_root(self) -> Path:
        return self.paths.backup_root

    def _artifacts(self):
        """Yield (relative name in backup, local path) pairs for the catalog."""
        home = self.paths.claude_home
        for name in self.fileset.files:
            yield name, home / name
        for name in self.fileset.dirs:
            yield name, home / name
        yield self.fileset.skills_dir, home / self.fileset.skills_dir
        for name in self.fileset.plugin_files:
            rel = f"{self.fileset.plugins_dir}/{name}"
            yield rel, home / self.fileset.plugins_dir / name
        yield self.fileset.mcp_backup_name, self.paths.claude_json

    @staticmethod
    def generate_name(now: Optional[datetime] = None) -> str:
        """Sortable backup identifier, one per second."""
        return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)

    def backup_existing(self) -> Path:
        """Copy every catalog artifact present locally into a new backup.

        Artifacts missing locally are skipped, so partial backups are normal.

        Returns:
            Path of the new backup directory
        """
        backup_dir = self.backup_root / self.generate_name()
        backup_dir.mkdir(parents=True, exist_ok=True)

        copied = 0
        for rel, src in self._artifacts():
            if src.exists():
                copy_path(src, backup_dir / rel)
                copied += 1
                self.logger.debug(f"Backed up {rel}")

        self.logger.ok(f"Backup created: {backup_dir} ({copied} items)")
        return backup_dir

    def list_backups(self) -> List[str]:
        """Return backup names, newest first."""
        if not self.backup_root.is_dir():
            return []
        names = [entry.name for entry in self.backup_root.iterdir() if entry.is_dir()]
        return sorted(names, reverse=True)

    def _resolve_backup(self, name: str) -> Path:
        """Map a backup name to its directory, refusing anything path-like."""
        if not name or name in ('.', '..') or '/' in name or '\\' in name:
            raise InvalidBackupNameError(f"Invalid backup name: {name!r}")

        root = self.backup_root.resolve()
        backup_dir = (root / name).resolve()
        if backup_dir.parent != root:
            raise InvalidBackupNameError(f"Invalid backup name: {name!r}")
        return backup_dir

    def restore_from_backup(self, name: str) -> int:
        """Copy every artifact found in the named backup over the local tree.

        Artifacts the backup does not contain are left alone.

        Returns:
            Number of artifacts restored

        Raises:
            InvalidBackupNameError: if the name is not a plain backup name
            BackupNotFoundError: if no such backup exists
        """
        backup_dir = self._resolve_backup(name)
        if not backup_dir.is_dir():
            raise BackupNotFoundError(f"Backup not found: {name}")

        restored = 0
        for rel, dest in self._artifacts():
            src = backup_dir / rel
            if not src.exists():
                continue
            copy_path(src, dest)
            restored += 1
            self.logger.info(f"Restored: {rel}")

        self.logger.ok(f"Restored from backup: {name}")
        return restored
