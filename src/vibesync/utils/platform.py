#!/usr/bin/env python3
"""
Platform detection and OS-specific utilities for vibe-sync.

This module detects the operating system and creates directory links the way
the host supports them, which the skills import needs to rebuild external
skill links.
"""

import os
import platform
from pathlib import Path
from typing import Dict, Union
from enum import Enum


class OSType(Enum):
    """Supported operating system types."""
    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


class PlatformDetector:
    """Handles platform detection and OS-specific operations."""

    def __init__(self):
        self._os_type = self._detect_os()
        self._home_dir = Path.home()

    @staticmethod
    def _detect_os() -> OSType:
        """Detect the current operating system."""
        system = platform.system().lower()

        if system == "linux":
            return OSType.LINUX
        elif system == "darwin":
            return OSType.MACOS
        elif system == "windows":
            return OSType.WINDOWS
        else:
            return OSType.UNKNOWN

    @property
    def os_type(self) -> OSType:
        """Get the detected OS type."""
        return self._os_type

    @property
    def is_windows(self) -> bool:
        """Check if running on Windows."""
        return self._os_type == OSType.WINDOWS

    @property
    def home_dir(self) -> Path:
        """Get the user's home directory."""
        return self._home_dir

    def create_dir_link(self, target: Union[str, Path], link_path: Union[str, Path]):
        """Create a directory link at ``link_path`` pointing to ``target``.

        The target string is written as given, so relative links stay
        relative. On Windows a directory symlink is requested explicitly,
        since the link type cannot be inferred from a relative target there.
        """
        link_path = Path(link_path)
        link_path.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(str(target), str(link_path), target_is_directory=self.is_windows)

    def get_system_info(self) -> Dict[str, str]:
        """Get basic system information."""
        return {
            'os_type': self.os_type.value,
            'platform': platform.platform(),
            'python_version': platform.python_version(),
            'home_directory': str(self.home_dir),
        }


# Global instance for convenience
platform_detector = PlatformDetector()
