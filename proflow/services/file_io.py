"""Atomic file writes with bounded retry."""

import os
import tempfile
import time
from typing import BinaryIO, Callable, Type

from ..errors import FileWriteError
from ..logging_config import get_logger

logger = get_logger("file_io")


def atomic_write(path: str, writer: Callable[[BinaryIO], None], retries: int = 2,
                 delay: float = 0.2, error_cls: Type[FileWriteError] = FileWriteError) -> None:
    """Write a file through a temporary sibling and rename it into place.

    The target path only ever holds a complete file. Transient ``OSError``s
    are retried ``retries`` times with a linear back-off; other exceptions
    from ``writer`` propagate immediately. The temporary file is always
    removed on failure.

    Args:
        path: Final file path
        writer: Callable writing the full content to a binary file object
        retries: Extra attempts after the first failure
        delay: Base delay in seconds between attempts
        error_cls: Exception raised once all attempts failed
    """
    directory = os.path.dirname(os.path.abspath(path))
    attempts = max(retries, 0) + 1
    last_error = None

    for attempt in range(1, attempts + 1):
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".proflow-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "wb") as f:
                writer(f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
            logger.debug(f"Wrote {path} (attempt {attempt})")
            return
        except OSError as e:
            last_error = e
            logger.warning(f"Write attempt {attempt}/{attempts} for {path} failed: {e}")
            if attempt < attempts:
                time.sleep(delay * attempt)
        finally:
            if tmp_path is not None:
                _remove_quietly(tmp_path)

    logger.error(f"Giving up writing {path} after {attempts} attempts")
    raise error_cls(path, last_error)


def atomic_write_bytes(path: str, data: bytes, retries: int = 2, delay: float = 0.2,
                       error_cls: Type[FileWriteError] = FileWriteError) -> None:
    """Atomically write ``data`` to ``path``."""
    atomic_write(path, lambda f: f.write(data), retries=retries, delay=delay, error_cls=error_cls)


def _remove_quietly(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.error(f"Could not remove temporary file {path}: {e}")
