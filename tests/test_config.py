#!/usr/bin/env python3
"""
Tests for sync paths and the artifact catalog.
"""

from pathlib import Path

import pytest

from vibesync.core.config import (
    CLAUDE_HOME_ENV,
    CLAUDE_JSON_ENV,
    SYNC_DIR_ENV,
    DEFAULT_FILE_SET,
    SyncFileSet,
    SyncPaths,
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove path overrides from the environment."""
    for name in (CLAUDE_HOME_ENV, CLAUDE_JSON_ENV, SYNC_DIR_ENV):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSyncFileSet:
    """Test the default catalog."""

    def test_default_catalog(self):
        """Test the artifacts synced by default."""
        assert DEFAULT_FILE_SET.files == ('settings.json', 'CLAUDE.md')
        assert DEFAULT_FILE_SET.dirs == ('commands', 'agents')
        assert DEFAULT_FILE_SET.skills_dir == 'skills'
        assert DEFAULT_FILE_SET.plugin_files == (
            'installed_plugins.json', 'known_marketplaces.json'
        )
        assert DEFAULT_FILE_SET.mcp_file == 'mcp-servers.json'

    def test_immutable(self):
        """Test that the catalog cannot be modified in place."""
        with pytest.raises(AttributeError):
            DEFAULT_FILE_SET.files = ('other',)

    def test_custom_catalog(self):
        """Test substituting a narrower catalog."""
        fileset = SyncFileSet(files=('CLAUDE.md',), dirs=())

        assert fileset.files == ('CLAUDE.md',)
        assert fileset.settings_file == 'settings.json'


class TestSyncPaths:
    """Test path resolution."""

    def test_defaults_from_home(self, tmp_path, clean_env):
        """Test defaults under the given home directory."""
        paths = SyncPaths.from_env(home=tmp_path)

        assert paths.claude_home == tmp_path / '.claude'
        assert paths.claude_json == tmp_path / '.claude.json'
        assert paths.sync_dir == tmp_path / '.vibe-sync'
        assert paths.data_dir == tmp_path / '.vibe-sync' / 'data'
        assert paths.backup_root == tmp_path / '.vibe-sync' / 'backups' / 'claude'

    def test_environment_overrides(self, tmp_path, clean_env):
        """Test that environment variables take precedence."""
        clean_env.setenv(CLAUDE_HOME_ENV, str(tmp_path / 'c'))
        clean_env.setenv(CLAUDE_JSON_ENV, str(tmp_path / 'c.json'))
        clean_env.setenv(SYNC_DIR_ENV, str(tmp_path / 's'))

        paths = SyncPaths.from_env(home=tmp_path / 'ignored')

        assert paths.claude_home == tmp_path / 'c'
        assert paths.claude_json == tmp_path / 'c.json'
        assert paths.sync_dir == tmp_path / 's'

    def test_empty_override_is_ignored(self, tmp_path, clean_env):
        """Test that an empty variable falls back to the default."""
        clean_env.setenv(SYNC_DIR_ENV, '')

        assert SyncPaths.from_env(home=tmp_path).sync_dir == tmp_path / '.vibe-sync'

    def test_external_skills_file(self, sync_paths):
        """Test the manifest location inside the synced tree."""
        assert sync_paths.external_skills_file() == sync_paths.data_dir / 'external-skills.json'

    def test_is_initialized(self, sync_paths):
        """Test that initialization is keyed on the .git directory."""
        assert sync_paths.is_initialized() is False
        (sync_paths.sync_dir / '.git').mkdir(parents=True)
        assert sync_paths.is_initialized() is True

    def test_paths_are_path_objects(self, tmp_path, clean_env):
        """Test that every location is a Path."""
        paths = SyncPaths.from_env(home=tmp_path)
        assert all(isinstance(p, Path) for p in (paths.claude_home, paths.claude_json, paths.sync_dir))
