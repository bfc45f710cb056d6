"""Session-scoped state: resolved entries, the result cache and the active lookup."""

import itertools
import threading
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple

from common.base.logging_config import get_logger
from common.config.language_config import AUTO_DETECT
from wordlens.text import fold

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedEntry:
    """
    A best-effort dictionary entry for one surface form.

    ``chain`` lists the headwords from the page that matched to the final
    lemma: ("говорящий",) for a direct hit, ("книгами", "книга") after one
    form-of hop.
    """
    surface_word: str
    actual_word: str
    lemma: str
    part_of_speech: Optional[str] = None
    primary_definition_html: str = ""
    secondary_definition_html: str = ""
    grammar_tables_html: str = ""
    section: Optional[str] = None
    resolved_by: str = "exact"
    chain: Tuple[str, ...] = ()

    @property
    def lemma_differs(self) -> bool:
        return fold(self.lemma) != fold(self.actual_word)

    @property
    def corrected(self) -> bool:
        """True when the page shown is not the surface form itself."""
        return fold(self.actual_word) != fold(self.surface_word)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["chain"] = list(self.chain)
        return data


_MISSING = object()


class LookupCache:
    """
    Resolved entries keyed by folded surface form.

    A stored None means the form was looked up and deliberately suppressed.
    The first stored result for a key wins; later stores are ignored.

    A page session's cache is unbounded. Caches that outlive a page (the HTTP
    service shares one across clients) pass ``max_entries`` and then drop the
    least recently used key when full.
    """

    MISSING = _MISSING

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Optional[ResolvedEntry]]" = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, word: str):
        """Cached entry, None for a suppressed form, or ``LookupCache.MISSING``."""
        key = fold(word)
        with self._lock:
            if key not in self._entries:
                return _MISSING
            self._entries.move_to_end(key)
            return self._entries[key]

    def __contains__(self, word: str) -> bool:
        return fold(word) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def store(self, word: str, entry: Optional[ResolvedEntry]) -> bool:
        key = fold(word)
        with self._lock:
            if key in self._entries:
                logger.debug(f"Cache already holds '{key}', keeping first result")
                return False
            self._entries[key] = entry
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full ({self.max_entries}), evicted '{evicted}'")
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class LookupSession:
    """Tracks which word the overlay is currently waiting for."""

    def __init__(self):
        self._counter = itertools.count(1)
        self.token: Optional[int] = None
        self.word: Optional[str] = None

    def begin(self, word: str) -> int:
        self.token = next(self._counter)
        self.word = word
        return self.token

    def is_current(self, token: Optional[int]) -> bool:
        return token is not None and token == self.token

    def matches(self, word: str) -> bool:
        """True if ``word`` is the word the overlay is waiting for."""
        return self.word is not None and fold(self.word) == fold(word)

    def end(self) -> None:
        self.token = None
        self.word = None


@dataclass
class SessionContext:
    """State owned by one document session, shared by the engine, controller and pipeline."""
    language: str = AUTO_DETECT
    show_grammar: bool = True
    metalanguage: str = "English"
    cache: LookupCache = field(default_factory=LookupCache)
    lookup: LookupSession = field(default_factory=LookupSession)

    def switch_language(self, language: str) -> None:
        """Entries depend on the language section, so switching empties the cache."""
        if language != self.language:
            self.language = language
            self.cache.clear()


def saved_word_record(entry: ResolvedEntry, today: Optional[date] = None) -> Dict[str, str]:
    """Record appended to the saved-words list for an entry."""
    return {
        "word": entry.surface_word,
        "base": entry.lemma,
        "translation": entry.primary_definition_html,
        "date": (today or date.today()).isoformat(),
    }


def same_saved_word(first: Dict[str, Any], second: Dict[str, Any]) -> bool:
    """Saved words are unique per (surface form, lemma)."""
    return (
        fold(first.get("word", "")) == fold(second.get("word", ""))
        and fold(first.get("base", "")) == fold(second.get("base", ""))
    )
