"""
Editor Sync Logging

The sync core runs inside an IDE plugin host, so it never touches the root
logger: everything hangs off the ``editor_sync`` logger, which
``setup_logging`` wires from a SyncConfig.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from editor_sync.config import SyncConfig

ROOT_LOGGER = "editor_sync"

LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 3

_FILE_FORMAT = "%(asctime)s | %(threadName)s | %(name)s | %(levelname)s | %(message)s"
_CONSOLE_FORMAT = "editor-sync %(levelname)s: %(message)s"


def resolve_level(name: str) -> int:
    """Map a level name to its value, falling back to INFO for unknown names."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config: "SyncConfig") -> logging.Logger:
    """
    Configure the ``editor_sync`` logger from a SyncConfig.

    Reads ``log_level``, ``log_to_file`` and ``log_file``. Handlers from a
    previous call are closed and replaced, so reloading config is safe.

    Returns:
        The configured ``editor_sync`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolve_level(config.log_level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.log_to_file:
        config.ensure_dirs()
        file_handler = RotatingFileHandler(
            config.log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
        # Transport threads call the gate concurrently, keep the thread name
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    # stderr ends up in the IDE's plugin log, only surface problems there
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(logging.WARNING, logger.level))
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``editor_sync`` logger, e.g. ``get_logger("sync.gate")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
