"""HTML panels for the lookup overlay and an in-memory overlay view."""

from dataclasses import dataclass
from html import escape
from typing import Optional, Protocol
from urllib.parse import quote, quote_plus

from common.base.logging_config import get_logger
from wordlens.session import ResolvedEntry, SessionContext

logger = get_logger(__name__)

DEFAULT_PAGE_URL = "https://en.wiktionary.org/wiki/"
SEARCH_URL = "https://www.google.com/search?q=define+"

OVERLAY_WIDTH = 400
OVERLAY_HEIGHT = 500
OVERLAY_OFFSET = 8


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float = 0
    height: float = 0

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, x: float, y: float, padding: float = 0) -> bool:
        return (
            self.x - padding <= x <= self.x + self.width + padding
            and self.y - padding <= y <= self.y + self.height + padding
        )


class OverlayView(Protocol):
    """What the interaction controller needs from whatever draws the overlay."""

    def show_loading(self, word: str, anchor: Optional[Rect]) -> None:
        ...

    def show_entry(self, word: str, entry: ResolvedEntry, anchor: Optional[Rect]) -> None:
        ...

    def show_error(self, word: str, message: str, anchor: Optional[Rect]) -> None:
        ...

    def hide(self) -> None:
        ...

    def contains(self, x: float, y: float, padding: float = 0) -> bool:
        ...


def source_link(title: str, section: Optional[str] = None, page_url: str = DEFAULT_PAGE_URL) -> str:
    """Dictionary page for a headword, anchored at its language section."""
    url = page_url + quote(title.replace(" ", "_"))
    if section:
        url += "#" + quote(section)
    return url


def search_link(query: str) -> str:
    return SEARCH_URL + quote_plus(query)


def render_loading(word: str) -> str:
    return f'<div class="rl-loading">Searching for <b>{escape(word)}</b>...</div>'


def render_error(word: str, message: str) -> str:
    return (
        f'<div class="rl-header"><div class="rl-word">{escape(word)}</div></div>'
        f'<div class="rl-error">{escape(message)}</div>'
    )


def render_entry(entry: ResolvedEntry, show_grammar: bool = True, page_url: str = DEFAULT_PAGE_URL) -> str:
    """
    Full result panel for an entry.

    Definition and table markup come from extraction and are already
    sanitized spans; everything else is escaped here.

    :param entry: Resolved entry
    :param show_grammar: Whether to include the grammar section at all
    :param page_url: Base URL of dictionary pages
    :return: Panel HTML
    """
    parts = ['<div class="rl-header">', f'<div class="rl-word">{escape(entry.actual_word)}']
    if entry.lemma_differs:
        parts.append(f'<span class="rl-base">base: {escape(entry.lemma)}</span>')
    if entry.part_of_speech:
        parts.append(f'<span class="rl-pos">{escape(entry.part_of_speech)}</span>')
    parts.append("</div>")

    if entry.corrected:
        parts.append(f'<div class="rl-notice">Showing result for <b>{escape(entry.actual_word)}</b></div>')

    source = escape(source_link(entry.lemma, entry.section, page_url), quote=True)
    search = escape(search_link(entry.lemma), quote=True)
    parts.append(
        '<div class="rl-actions">'
        f'<a class="rl-source" href="{source}" target="_blank" rel="noopener noreferrer">Wiktionary</a>'
        f'<a class="rl-search" href="{search}" target="_blank" rel="noopener noreferrer">Google</a>'
        '<button class="rl-copy" type="button">Copy</button>'
        '<button class="rl-save" type="button">Save</button>'
        "</div>"
    )
    parts.append("</div>")

    parts.append(f'<div class="rl-definition">{entry.primary_definition_html}</div>')
    if entry.secondary_definition_html:
        parts.append(f'<div class="rl-definition rl-secondary">{entry.secondary_definition_html}</div>')

    if show_grammar:
        tables = entry.grammar_tables_html or '<div class="rl-empty">No grammar tables found.</div>'
        parts.append(f'<div class="rl-grammar-container">{tables}</div>')

    return "".join(parts)


class HtmlOverlayView:
    """
    Overlay state kept as markup plus a screen rectangle.

    The rectangle sits just below the anchor marker; it is what pointer
    padding checks are made against.
    """

    def __init__(self, session: SessionContext, page_url: str = DEFAULT_PAGE_URL,
                 width: float = OVERLAY_WIDTH, height: float = OVERLAY_HEIGHT):
        self.session = session
        self.page_url = page_url
        self.width = width
        self.height = height
        self.html = ""
        self.visible = False
        self.rect: Optional[Rect] = None
        self.word: Optional[str] = None
        self.entry: Optional[ResolvedEntry] = None

    def _place(self, word: str, html: str, anchor: Optional[Rect]) -> None:
        self.word = word
        self.html = html
        self.visible = True
        if anchor is not None:
            self.rect = Rect(anchor.x, anchor.bottom + OVERLAY_OFFSET, self.width, self.height)

    def show_loading(self, word: str, anchor: Optional[Rect]) -> None:
        self.entry = None
        self._place(word, render_loading(word), anchor)

    def show_entry(self, word: str, entry: ResolvedEntry, anchor: Optional[Rect]) -> None:
        self.entry = entry
        self._place(word, render_entry(entry, self.session.show_grammar, self.page_url), anchor)

    def show_error(self, word: str, message: str, anchor: Optional[Rect]) -> None:
        self.entry = None
        self._place(word, render_error(word, message), anchor)

    def hide(self) -> None:
        self.visible = False
        self.html = ""
        self.word = None
        self.entry = None

    def contains(self, x: float, y: float, padding: float = 0) -> bool:
        return self.visible and self.rect is not None and self.rect.contains(x, y, padding)
