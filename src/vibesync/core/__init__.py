"""
Core modules for vibe-sync.

This package contains the catalog of synced artifacts, export and import
reconciliation, backups, plugin replay, and git operations.
"""

from .config import SyncFileSet, SyncPaths, DEFAULT_FILE_SET
from .errors import (
    VibeSyncError,
    ConfigNotFoundError,
    InvalidBackupNameError,
    BackupNotFoundError,
    PluginToolUnavailableError,
)
from .backup import BackupStore
from .plugins import ClaudeCli, ExistingPluginState, PluginStateMachine, reinstall_plugins
from .reconcile import Reconciler, ExportReport, ImportReport
from .diff import DiffReporter
from .git_handler import GitHandler, GitError

__all__ = [
    'SyncFileSet',
    'SyncPaths',
    'DEFAULT_FILE_SET',
    'VibeSyncError',
    'ConfigNotFoundError',
    'InvalidBackupNameError',
    'BackupNotFoundError',
    'PluginToolUnavailableError',
    'BackupStore',
    'ClaudeCli',
    'ExistingPluginState',
    'PluginStateMachine',
    'reinstall_plugins',
    'Reconciler',
    'ExportReport',
    'ImportReport',
    'DiffReporter',
    'GitHandler',
    'GitError',
]
