"""
vibe-sync - Sync AI coding tool configurations across machines via git

This package exports the ~/.claude configuration tree into a git repository,
imports it back on other machines, and replays plugin state idempotently.
"""

__version__ = "1.0.0"
__author__ = "vibe-sync contributors"
__description__ = "Sync AI coding tool configurations across machines via git"

from .core.config import SyncFileSet, SyncPaths, DEFAULT_FILE_SET
from .core.reconcile import Reconciler
from .core.git_handler import GitHandler
from .utils.logger import get_logger

# Version info
VERSION = __version__
VERSION_INFO = tuple(map(int, __version__.split('.')))

__all__ = [
    'SyncFileSet',
    'SyncPaths',
    'DEFAULT_FILE_SET',
    'Reconciler',
    'GitHandler',
    'get_logger',
    'VERSION',
    'VERSION_INFO',
]
