#!/usr/bin/env python3
"""
Paths and the catalog of syncable artifacts for vibe-sync.

The catalog (``SyncFileSet``) is the single source of truth for export,
import, backup, restore and status: anything it does not list is invisible to
all of them. Both the catalog and ``SyncPaths`` are plain values passed to each
component, so tests can substitute their own.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ..utils.platform import platform_detector

CLAUDE_HOME_ENV = 'CLAUDE_HOME'
CLAUDE_JSON_ENV = 'CLAUDE_JSON'
SYNC_DIR_ENV = 'VIBE_SYNC_DIR'


@dataclass(frozen=True)
class SyncFileSet:
    """Ordered catalog of everything that is synchronized."""

    # Whole-file copy targets
    files: Tuple[str, ...] = ('settings.json', 'CLAUDE.md')
    # Whole-tree copy targets
    dirs: Tuple[str, ...] = ('commands', 'agents')

    skills_dir: str = 'skills'
    skills_manifest: str = 'external-skills.json'

    # JSON registries, relative to ``plugins_dir``
    plugins_dir: str = 'plugins'
    plugins_file: str = 'installed_plugins.json'
    marketplaces_file: str = 'known_marketplaces.json'

    # Synced copy of the global MCP server map
    mcp_file: str = 'mcp-servers.json'
    # Name of the global document inside a backup
    mcp_backup_name: str = '.claude.json'

    settings_file: str = 'settings.json'

    @property
    def plugin_files(self) -> Tuple[str, ...]:
        """Registry file names in sync order."""
        return (self.plugins_file, self.marketplaces_file)


DEFAULT_FILE_SET = SyncFileSet()


@dataclass(frozen=True)
class SyncPaths:
    """Filesystem locations used by a single invocation."""

    claude_home: Path
    claude_json: Path
    sync_dir: Path
    data_dirname: str = 'data'

    @classmethod
    def from_env(cls, home: Optional[Path] = None) -> 'SyncPaths':
        """Build paths from the environment, falling back to the home directory."""
        home = Path(home) if home else platform_detector.home_dir

        def _resolve(env_name: str, default: Path) -> Path:
            value = os.environ.get(env_name)
            return Path(value).expanduser() if value else default

        return cls(
            claude_home=_resolve(CLAUDE_HOME_ENV, home / '.claude'),
            claude_json=_resolve(CLAUDE_JSON_ENV, home / '.claude.json'),
            sync_dir=_resolve(SYNC_DIR_ENV, home / '.vibe-sync'),
        )

    @property
    def data_dir(self) -> Path:
        """Root of the synced tree inside the repository."""
        return self.sync_dir / self.data_dirname

    @property
    def backup_root(self) -> Path:
        """Directory holding timestamped backups of the local tree."""
        return self.sync_dir / 'backups' / 'claude'

    def external_skills_file(self, fileset: SyncFileSet = DEFAULT_FILE_SET) -> Path:
        """Manifest of symlinked skills inside the synced tree."""
        return self.data_dir / fileset.skills_manifest

    def is_initialized(self) -> bool:
        """Check whether the sync repository has been set up."""
        return (self.sync_dir / '.git').exists()
