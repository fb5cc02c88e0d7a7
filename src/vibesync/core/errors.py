"""
Exception types raised by vibe-sync.

Only precondition violations and security-relevant rejections raise; malformed
input is reported through result objects instead.
"""


class VibeSyncError(Exception):
    """Base class for errors surfaced to the operator."""
    pass


class ConfigNotFoundError(VibeSyncError):
    """A required configuration tree does not exist."""
    pass


class InvalidBackupNameError(VibeSyncError):
    """A backup name contains path separators or escapes the backup root."""
    pass


class BackupNotFoundError(VibeSyncError):
    """The requested backup does not exist."""
    pass


class PluginToolUnavailableError(VibeSyncError):
    """The external plugin-management executable cannot be reached."""
    pass
