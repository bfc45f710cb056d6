"""Wiktionary client: exact-title page fetches and did-you-mean suggestions."""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from common.base.logging_config import get_logger
from common.config.lookup_config import SourceSettings

logger = get_logger(__name__)

# API error codes meaning "no such page" rather than "source broken"
_MISSING_CODES = {'missingtitle', 'invalidtitle', 'nosuchpageid'}

class SourceUnavailable(Exception):
    """The dictionary source could not be reached or answered garbage."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

@dataclass(frozen=True)
class PageDocument:
    """A rendered dictionary page."""
    title: str
    html: str

class WiktionaryService:
    """Read-only access to the dictionary source.

    Each call is a single request bounded by ``timeout_seconds``. There are no
    retries here: the resolution cascade decides what to try next.
    """

    def __init__(self, settings: Optional[SourceSettings] = None, session: Optional[requests.Session] = None,
                 on_request: Optional[Callable[[str, float], None]] = None):
        """
        Initialize the service.

        :param settings: Source settings (URLs, timeout, suggestion limits)
        :param session: Optional preconfigured requests session
        :param on_request: Called with (action, seconds) after every request
        """
        self.settings = settings or SourceSettings()
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': self.settings.user_agent})
        self.request_count = 0
        self.on_request = on_request

    def _get_json(self, params: dict) -> dict:
        """
        Issue one API request.

        :raises SourceUnavailable: on network errors, timeouts, server errors or invalid JSON
        """
        self.request_count += 1
        started = time.monotonic()
        try:
            response = self.session.get(self.settings.api_url, params=params, timeout=self.settings.timeout_seconds)
        except requests.exceptions.Timeout:
            logger.warning(f"Dictionary request timed out after {self.settings.timeout_seconds}s: {params}")
            raise SourceUnavailable("Request timed out")
        except requests.exceptions.RequestException as e:
            logger.warning(f"Dictionary request failed: {e}")
            raise SourceUnavailable(f"Network error: {e.__class__.__name__}")
        finally:
            elapsed = time.monotonic() - started
            logger.debug(f"Dictionary request {params.get('action')} took {elapsed:.3f}s")
            if self.on_request is not None:
                self.on_request(params.get('action', ''), elapsed)

        if response.status_code == 404:
            return {'error': {'code': 'missingtitle'}}
        if response.status_code != 200:
            logger.warning(f"Dictionary source returned status {response.status_code}")
            raise SourceUnavailable(f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError:
            logger.warning("Dictionary source returned invalid JSON")
            raise SourceUnavailable("Invalid response from dictionary source")

    def fetch_page(self, title: str) -> Optional[PageDocument]:
        """
        Fetch the rendered page for an exact title.

        :param title: Page title
        :return: The page, or None if the title does not exist
        :raises SourceUnavailable: if the source could not answer
        """
        if not title or not title.strip():
            return None

        data = self._get_json({
            'action': 'parse',
            'page': title,
            'prop': 'text',
            'redirects': 1,
            'disableeditsection': 1,
            'disabletoc': 1,
            'format': 'json',
            'formatversion': 2,
        })

        error = data.get('error')
        if error:
            code = error.get('code', '')
            if code in _MISSING_CODES:
                logger.debug(f"No dictionary page for '{title}'")
                return None
            raise SourceUnavailable(f"API error: {code or 'unknown'}")

        parsed = data.get('parse') or {}
        text = parsed.get('text')
        if isinstance(text, dict):
            # formatversion=1 shape
            text = text.get('*')
        if not text:
            return None
        return PageDocument(title=parsed.get('title', title), html=text)

    def suggest(self, word: str) -> List[str]:
        """
        Ranked alternative titles for a word that has no page of its own.

        The search engine's did-you-mean suggestion comes first, then the
        full-text search hits, de-duplicated in rank order.

        :raises SourceUnavailable: if the source could not answer
        """
        data = self._get_json({
            'action': 'query',
            'list': 'search',
            'srsearch': word,
            'srlimit': self.settings.suggestion_limit,
            'srinfo': 'suggestion',
            'srprop': '',
            'format': 'json',
            'formatversion': 2,
        })

        query = data.get('query') or {}
        titles: List[str] = []
        suggestion = (query.get('searchinfo') or {}).get('suggestion')
        if suggestion:
            titles.append(suggestion)
        for hit in query.get('search') or []:
            title = hit.get('title')
            if title and title not in titles:
                titles.append(title)
        return titles

# Global dictionary service instance
_wiktionary_service: Optional[WiktionaryService] = None

def init_wiktionary_service(settings: Optional[SourceSettings] = None,
                            on_request: Optional[Callable[[str, float], None]] = None) -> WiktionaryService:
    """
    Initialize global dictionary service instance.

    :param settings: Source settings
    :param on_request: Optional request timing observer
    :return: Service instance
    """
    global _wiktionary_service
    _wiktionary_service = WiktionaryService(settings, on_request=on_request)
    return _wiktionary_service

def get_wiktionary_service() -> Optional[WiktionaryService]:
    """
    Get global dictionary service instance.

    :return: Service instance or None if not initialized
    """
    return _wiktionary_service
