"""Logging for SpeakEasy.

All module loggers hang off the ``"SpeakEasy"`` logger, so the entry point
decides once where output goes (console, rotating file, both or neither).
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

ROOT_LOGGER_NAME = "SpeakEasy"
PACKAGE_PREFIX = "speakEasy."
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SpeakEasyLogger:
    """Configures the SpeakEasy logger tree."""

    _configured = False

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_file: Optional[Path] = None,
        console: bool = True,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 3,
    ) -> logging.Logger:
        """Replace the handlers on the root SpeakEasy logger.

        Args:
            level: threshold for the logger and every handler
            log_file: rotating log file, created with its parent directory
            console: also log to stdout
            max_bytes: size at which the log file rotates
            backup_count: rotated files to keep

        Returns:
            The root SpeakEasy logger
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        for handler in cls._build_handlers(log_file, console, max_bytes, backup_count):
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

        cls._configured = True
        return root

    @staticmethod
    def _build_handlers(
        log_file: Optional[Path], console: bool, max_bytes: int, backup_count: int
    ) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        if console:
            handlers.append(logging.StreamHandler(sys.stdout))
        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
            )
        if not handlers:
            handlers.append(logging.NullHandler())
        return handlers

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Child of the SpeakEasy logger for module ``name``.

        Module loggers carry no level of their own, so :meth:`setup` alone
        decides what gets through.
        """
        if not cls._configured:
            cls.setup()
        if name.startswith(PACKAGE_PREFIX):
            name = name[len(PACKAGE_PREFIX):]
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Shortcut for ``SpeakEasyLogger.get_logger(__name__)``."""
    return SpeakEasyLogger.get_logger(name)
