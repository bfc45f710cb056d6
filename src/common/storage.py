"""Persistent key-value store for user settings and saved words.

Everything lives in a single JSON document written through
``common.atomic_file``::

    {"settings": {"language": "ru", "showGrammar": true},
     "lists": {"savedWords": [{"word": ..., "base": ..., ...}]}}
"""

import enum
import os
import threading
from typing import Any, Callable, Dict, List, Optional

import constants
from common.atomic_file import atomic_write_json, read_json_with_lock, recover_from_backup
from common.base.logging_config import get_logger

logger = get_logger(__name__)

SETTING_LANGUAGE = "language"
SETTING_SHOW_GRAMMAR = "showGrammar"
LIST_SAVED_WORDS = "savedWords"


class SaveOutcome(enum.Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


class JsonStore:
    """Settings and lists kept in one JSON file; all mutations are read-modify-write under a lock."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()

    def _read(self) -> Dict[str, Any]:
        data = read_json_with_lock(self.path)
        if data is None and os.path.exists(self.path) and recover_from_backup(self.path):
            data = read_json_with_lock(self.path)
        if not isinstance(data, dict):
            data = {}
        data.setdefault("settings", {})
        data.setdefault("lists", {})
        return data

    def load_setting(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read()["settings"].get(key, default)

    def load_settings(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._read()["settings"])

    def save_setting(self, key: str, value: Any) -> None:
        """
        Persist a single setting.

        :raises AtomicWriteError: if the store could not be written
        """
        with self._lock:
            data = self._read()
            data["settings"][key] = value
            atomic_write_json(self.path, data)
        logger.debug(f"Saved setting {key}={value!r}")

    def load_list(self, key: str) -> List[Any]:
        with self._lock:
            return list(self._read()["lists"].get(key, []))

    def append_if_absent(self, key: str, item: Any, equality: Callable[[Any, Any], bool]) -> SaveOutcome:
        """
        Append ``item`` to a list unless an equal item is already there.

        :param key: List name
        :param item: Item to append
        :param equality: Predicate deciding whether two items are the same
        :return: ACCEPTED if appended, DUPLICATE otherwise
        :raises AtomicWriteError: if the store could not be written
        """
        with self._lock:
            data = self._read()
            items = data["lists"].setdefault(key, [])
            if any(equality(existing, item) for existing in items):
                return SaveOutcome.DUPLICATE
            items.append(item)
            atomic_write_json(self.path, data)
        logger.info(f"Appended item to {key} ({len(items)} total)")
        return SaveOutcome.ACCEPTED


# Global store instance
_store: Optional[JsonStore] = None


def init_store(path: Optional[str] = None) -> JsonStore:
    global _store
    _store = JsonStore(path or constants.get_store_path())
    return _store


def get_store() -> JsonStore:
    global _store
    if _store is None:
        _store = JsonStore(constants.get_store_path())
    return _store
