"""Logging configuration for ProFlow."""

import getpass
import logging
import os
import platform
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FILENAME = "proflow.log"

# Create logger
logger = logging.getLogger("proflow")
logger.setLevel(logging.DEBUG)

# Console handler for warnings and above
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.WARNING)
console_formatter = logging.Formatter('%(levelname)s: %(message)s')
console_handler.setFormatter(console_formatter)
logger.addHandler(console_handler)

_file_handler: Optional[RotatingFileHandler] = None


def enable_file_logging(log_dir: Optional[str] = None) -> Optional[str]:
    """Attach a rotating file handler to the ProFlow logger.

    Args:
        log_dir: Directory for the log file. Defaults to the config directory.

    Returns:
        Path of the log file, or None if it could not be created
    """
    global _file_handler

    if log_dir is None:
        from .models.settings import get_config_dir
        log_dir = get_config_dir()

    log_file = os.path.join(log_dir, LOG_FILENAME)
    if _file_handler is not None:
        if _file_handler.baseFilename == os.path.abspath(log_file):
            return log_file
        logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    # File handler with rotation (max 5MB, keep 3 backups)
    try:
        handler = RotatingFileHandler(
            log_file,
            maxBytes=5*1024*1024,
            backupCount=3,
            encoding='utf-8'
        )
    except OSError as e:
        # If we can't create the log file, just use console
        logger.warning(f"Could not create log file {log_file}: {e}")
        return None

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s - %(message)s'
    ))
    logger.addHandler(handler)
    _file_handler = handler
    return log_file


def set_console_level(level: int) -> None:
    """Change the verbosity of console output."""
    console_handler.setLevel(level)


def get_logger(name: str = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for the logger (will be prefixed with 'proflow.')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"proflow.{name}")
    return logger


def log_startup_info() -> None:
    """Log version, user and platform information."""
    from . import __version__, __revision__

    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        username = "unknown"

    logger.info("=" * 60)
    logger.info(f"  ProFlow {__version__} (revision: {__revision__})")
    logger.info(f"  User: {username}@{platform.node() or 'unknown'}")
    logger.info(f"  Python: {platform.python_version()}")
    logger.info(f"  Platform: {platform.system()} {platform.release()}")
    logger.info(f"  Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 60)
