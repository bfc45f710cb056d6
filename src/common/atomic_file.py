"""Atomic JSON persistence helpers for the wordlens store.

The settings and saved-word store is rewritten as a whole on every change, so
each write goes to a temporary file that is fsync'd and renamed over the
target while an adjacent ``.lock`` file is held. The previous version is kept
as ``.bak`` and used to recover from a corrupt read.

Usage:
    from common.atomic_file import atomic_write_json, read_json_with_lock

    atomic_write_json("/path/to/store.json", {"settings": {}})
    data = read_json_with_lock("/path/to/store.json")
"""

import fcntl
import json
import os
import tempfile
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from common.base.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_LOCK_TIMEOUT = 10


class AtomicWriteError(Exception):
    """Raised when a store file could not be replaced."""
    pass


class FileLockError(Exception):
    """Raised when the lock file cannot be acquired in time."""
    pass


@contextmanager
def file_lock(file_path: str, timeout: float = DEFAULT_LOCK_TIMEOUT, shared: bool = False):
    """Hold an flock on ``<file_path>.lock`` for the duration of the block.

    Args:
        file_path: Path of the file being protected
        timeout: Seconds to keep retrying before giving up (0 = try once)
        shared: Take a shared (read) lock instead of an exclusive one

    Raises:
        FileLockError: If the lock cannot be acquired within timeout
    """
    lock_path = file_path + ".lock"
    lock_dir = os.path.dirname(lock_path)
    if lock_dir:
        os.makedirs(lock_dir, exist_ok=True)

    lock_type = fcntl.LOCK_SH if shared else fcntl.LOCK_EX
    deadline = time.monotonic() + timeout

    with open(lock_path, 'w') as lock_file:
        while True:
            try:
                fcntl.flock(lock_file.fileno(), lock_type | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise FileLockError(f"Could not acquire lock on {file_path} within {timeout} seconds")
                time.sleep(0.05)
        try:
            yield lock_file
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def atomic_write_json(
    file_path: str,
    data: Dict[str, Any],
    backup: bool = True,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    indent: Optional[int] = 2,
) -> None:
    """Serialize ``data`` and atomically replace ``file_path`` with it.

    Raises:
        AtomicWriteError: If serialization, locking or the rename fails
    """
    try:
        content = json.dumps(data, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise AtomicWriteError(f"Cannot serialize store for {file_path}: {e}") from e

    file_dir = os.path.dirname(file_path) or '.'
    os.makedirs(file_dir, exist_ok=True)

    try:
        with file_lock(file_path, timeout=lock_timeout):
            fd, temp_path = tempfile.mkstemp(dir=file_dir, prefix='.tmp_', suffix=os.path.basename(file_path))
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                if backup and os.path.exists(file_path):
                    os.replace(file_path, file_path + ".bak")
                os.replace(temp_path, file_path)
            except OSError:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise
    except (OSError, FileLockError) as e:
        logger.error(f"Atomic write to {file_path} failed: {e}")
        raise AtomicWriteError(f"Could not write {file_path}: {e}") from e


def read_json_with_lock(file_path: str, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> Optional[Dict[str, Any]]:
    """Read a JSON store under a shared lock.

    Returns:
        The parsed object, or None if the file is missing, unreadable or not valid JSON
    """
    if not os.path.exists(file_path):
        return None

    try:
        with file_lock(file_path, timeout=lock_timeout, shared=True):
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {file_path}: {e}")
        return None
    except (OSError, FileLockError) as e:
        logger.error(f"Error reading {file_path}: {e}")
        return None


def recover_from_backup(file_path: str) -> bool:
    """Replace a corrupt store with its ``.bak`` copy if the copy parses.

    The corrupt file is kept as ``.corrupted`` for inspection.
    """
    backup_path = file_path + ".bak"
    if not os.path.exists(backup_path):
        logger.warning(f"No backup file found at {backup_path}")
        return False

    try:
        with open(backup_path, 'r', encoding='utf-8') as f:
            json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Backup file {backup_path} is unusable: {e}")
        return False

    if os.path.exists(file_path):
        os.replace(file_path, file_path + ".corrupted")
    os.replace(backup_path, file_path)
    logger.info(f"Recovered {file_path} from backup")
    return True
