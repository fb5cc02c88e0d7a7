"""
Test package for vibe-sync.

This package contains unit tests and integration tests for export, import,
backups, plugin replay, git operations and the command-line interface.
"""

import sys
from pathlib import Path

# Add src directory to path so tests can import vibesync modules
test_dir = Path(__file__).parent
src_dir = test_dir.parent / 'src'
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))
