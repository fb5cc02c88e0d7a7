"""
Utility modules for vibe-sync.

This package contains platform detection, logging, and filesystem helpers
used throughout vibe-sync.
"""

from .logger import get_logger, setup_logging
from .platform import platform_detector

__all__ = [
    'get_logger',
    'setup_logging',
    'platform_detector',
]
