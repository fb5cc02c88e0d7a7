#!/usr/bin/env python3
"""
Logging utilities for vibe-sync.

This module provides a centralized logging system with colored console output
through rich, an extra "ok" tier for completed steps, and optional rotating
file logging.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = 'vibesync'


def _configure_root(logger: logging.Logger):
    """Attach the console handler to the package root logger once."""
    if logger.handlers:
        return

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)
    logger.setLevel(logging.INFO)


class VibeSyncLogger:
    """Thin wrapper around a stdlib logger in the ``vibesync`` namespace."""

    def __init__(self, name: str = ROOT_LOGGER_NAME):
        self.name = name
        self.logger = logging.getLogger(name)
        _configure_root(logging.getLogger(ROOT_LOGGER_NAME))

    def set_level(self, level: str):
        """Set the logging level on this logger and its handlers."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        if not isinstance(log_level, int):
            log_level = logging.INFO

        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(log_level)

    def debug(self, message: str, *args, **kwargs):
        """Log debug message."""
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        """Log info message."""
        self.logger.info(message, *args, **kwargs)

    def ok(self, message: str, *args, **kwargs):
        """Log a completed step."""
        self.logger.info(f"✓ {message}", *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        """Log warning message."""
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        """Log error message."""
        self.logger.error(message, *args, **kwargs)


# Global logger instances
_loggers: Dict[str, VibeSyncLogger] = {}


def get_logger(name: str = ROOT_LOGGER_NAME) -> VibeSyncLogger:
    """Get or create a logger instance."""
    if name not in _loggers:
        _loggers[name] = VibeSyncLogger(name)
    return _loggers[name]


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[Path] = None,
    verbose: bool = False
):
    """Setup logging configuration for a CLI run."""
    if verbose:
        level = 'DEBUG'

    logger = get_logger()
    logger.set_level(level)

    if log_file:
        try:
            log_file = Path(log_file).expanduser()
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=5 * 1024 * 1024,  # 5MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            file_handler.setLevel(logging.DEBUG)

            logger.logger.addHandler(file_handler)
            logger.debug(f"Logging to file: {log_file}")

        except OSError as e:
            logger.warning(f"Could not setup log file {log_file}: {e}")
