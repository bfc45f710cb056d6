"""
Structured extraction from a rendered dictionary page.

A page holds one section per language, each opened by an ``<h2>`` (wrapped in
``<div class="mw-heading mw-heading2">`` in current markup). Within the
section for the target language this module collects the ordered-list
definitions, the first "form of X" cross-reference, the part of speech
heading and the cleaned inflection tables, with every cell equal to the
looked-up form marked ``rl-highlight-form``.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional
from urllib.parse import unquote

import regex
from bs4 import BeautifulSoup, NavigableString, Tag

from common.base.logging_config import get_logger
from wordlens.document import PARSER
from wordlens.text import fold

logger = get_logger(__name__)

HIGHLIGHT_CLASS = "rl-highlight-form"
LINK_CLASS = "rl-link"

# Links that point structurally at the lemma of an inflected form
FORM_OF_SELECTORS = [
    ".form-of-definition-link a",
    ".form-of-definition .mention a",
    ".use-with-mention .mention a",
]

# Removed from definitions: example lists, quotations, citations
DEFINITION_NOISE = "ul, dl, sup.reference, .reference, .mw-ref, style, script"

# Removed from tables: transliterations, footnote markers, citations
TABLE_NOISE = ".tr, .mention-tr, sup, .reference, .mw-ref, .annotation-paren, style, script"

# Tables that are never inflection data
SKIPPED_TABLE_CLASSES = {"audiotable"}
SKIPPED_CONTAINER_CLASSES = {"toc", "sister-project"}

# Triangles and superscript digits used as footnote glyphs
DECORATIVE_GLYPHS = regex.compile(r"[\u25B2\u25B3\u25BC\u25BD\u00B9\u00B2\u00B3\u2070\u2074-\u2079]")
PUNCTUATION_ONLY = regex.compile(r"[\p{P}\p{S}\s]*")
CELL_SEPARATORS = regex.compile(r"[,/]")

CROSS_REFERENCE = regex.compile(r"\bof\s+([\p{L}\p{M}'\-]+)")

# "first of all", "one of them" and similar are not lemma references
CROSS_REFERENCE_STOPLIST = frozenset({
    "all", "it", "us", "them", "him", "her", "me", "you", "one", "this", "that",
    "the", "a", "an", "some", "any", "these", "those",
})

TOC_HEADING_IDS = {"mw-toc-heading", "Contents"}


@dataclass
class Extraction:
    """Everything pulled out of one language section."""
    definitions_html: List[str] = field(default_factory=list)
    cross_reference: Optional[str] = None
    grammar_tables_html: List[str] = field(default_factory=list)
    part_of_speech: Optional[str] = None
    section: Optional[str] = None
    only_metalanguage: bool = False

    @property
    def section_found(self) -> bool:
        return self.section is not None

    @property
    def has_definitions(self) -> bool:
        return bool(self.definitions_html)

    @property
    def is_usable(self) -> bool:
        """A section with either prose or tables is a valid result."""
        return self.section_found and (self.has_definitions or bool(self.grammar_tables_html))

    def definitions_markup(self) -> str:
        if not self.definitions_html:
            return ""
        return "<ol>" + "".join(self.definitions_html) + "</ol>"

    def tables_markup(self) -> str:
        return "".join(self.grammar_tables_html)


def heading_id(heading: Tag) -> Optional[str]:
    """Anchor id of a section heading, from the heading or its headline span."""
    if heading.get("id"):
        return heading["id"]
    inner = heading.find(id=True)
    return inner["id"] if inner is not None else None


def _classes(tag: Tag) -> List[str]:
    value = tag.get("class") or []
    return value.split() if isinstance(value, str) else list(value)


def _inside(tag: Tag, class_names: set) -> bool:
    node = tag
    while node is not None and isinstance(node, Tag):
        if class_names.intersection(_classes(node)) or node.get("id") in class_names:
            return True
        node = node.parent
    return False


def _language_headings(soup: BeautifulSoup) -> Iterator[Tag]:
    for h2 in soup.find_all("h2"):
        if heading_id(h2) in TOC_HEADING_IDS or _inside(h2, {"toc"}):
            continue
        yield h2


def find_section_heading(soup: BeautifulSoup, section: str) -> Optional[Tag]:
    """The h2 opening ``section``: the element carrying the id, or its closest h2 ancestor."""
    anchor = soup.find(id=section)
    if anchor is None:
        return None
    if anchor.name == "h2":
        return anchor
    return anchor.find_parent("h2")


def detect_section_heading(soup: BeautifulSoup, metalanguage: str) -> Optional[Tag]:
    """First language heading that is not the dictionary's own language."""
    for h2 in _language_headings(soup):
        if heading_id(h2) != metalanguage:
            return h2
    return None


def _is_section_break(element: Tag) -> bool:
    return element.name == "h2" or element.find("h2") is not None


def _section_elements(heading: Tag) -> Iterator[Tag]:
    """Sibling elements following a language heading up to the next language heading."""
    start = heading
    parent = heading.parent
    if isinstance(parent, Tag) and parent.name == "div" and "mw-heading" in _classes(parent):
        start = parent
    element = start.find_next_sibling()
    while element is not None:
        if _is_section_break(element):
            break
        yield element
        element = element.find_next_sibling()


def _subheading_text(element: Tag) -> Optional[str]:
    if element.name in ("h3", "h4", "h5"):
        return element.get_text(" ", strip=True)
    if element.name == "div" and "mw-heading" in _classes(element):
        inner = element.find(["h3", "h4", "h5"])
        if inner is not None:
            return inner.get_text(" ", strip=True)
    return None


def link_title(link: Tag) -> Optional[str]:
    """Page title a link points at, or None for links outside the dictionary."""
    href = link.get("href") or ""
    if href.startswith("/wiki/"):
        title = href[len("/wiki/"):].split("#", 1)[0]
        return unquote(title).replace("_", " ") or None
    if href.startswith("./"):
        return unquote(href[2:].split("#", 1)[0]).replace("_", " ") or None
    if link.get("title") and not href.startswith(("http:", "https:", "//")):
        return link["title"]
    return None


def _neutralize_links(container: Tag) -> None:
    """Replace hyperlinks with text-preserving spans so nothing navigates."""
    for link in container.find_all("a"):
        title = link_title(link)
        link.name = "span"
        link.attrs = {"class": [LINK_CLASS], "data-lookup": title} if title else {}


def _decompose_all(container: Tag, selector: str) -> None:
    for element in container.select(selector):
        if not element.decomposed:
            element.decompose()


def _valid_reference(candidate: str) -> Optional[str]:
    normalized = fold(candidate)
    if len(normalized) <= 1 or normalized in CROSS_REFERENCE_STOPLIST:
        return None
    return normalized


def _structural_reference(item: Tag) -> Optional[str]:
    for selector in FORM_OF_SELECTORS:
        link = item.select_one(selector)
        if link is None:
            continue
        candidate = _valid_reference(link_title(link) or link.get_text(strip=True))
        if candidate:
            return candidate
    return None


def _textual_reference(text: str) -> Optional[str]:
    for match in CROSS_REFERENCE.finditer(text):
        candidate = _valid_reference(match.group(1))
        if candidate:
            return candidate
    return None


def _clean_table(table: Tag, highlight: Optional[str]) -> None:
    _decompose_all(table, TABLE_NOISE)
    _neutralize_links(table)

    for string in list(table.find_all(string=True)):
        if DECORATIVE_GLYPHS.search(string):
            string.replace_with(NavigableString(DECORATIVE_GLYPHS.sub("", string)))

    for cell in table.find_all(["td", "th"]):
        if PUNCTUATION_ONLY.fullmatch(cell.get_text().strip()):
            cell.clear()

    for row in table.find_all("tr"):
        if row.find("td") is not None and not row.get_text().strip():
            row.decompose()

    if not highlight:
        return
    target = fold(highlight)
    for cell in table.find_all("td"):
        forms = [fold(part) for part in CELL_SEPARATORS.split(cell.get_text())]
        if target in forms:
            cell["class"] = _classes(cell) + [HIGHLIGHT_CLASS]


def _section_tables(element: Tag) -> List[Tag]:
    if element.name == "table":
        candidates = [element]
    else:
        # Outermost tables only; nested ones travel with their parent
        candidates = []
        for table in element.find_all("table"):
            node = table.parent
            while node is not element and node.name != "table":
                node = node.parent
            if node is element:
                candidates.append(table)
    return [
        table for table in candidates
        if not SKIPPED_TABLE_CLASSES.intersection(_classes(table)) and not _inside(table, SKIPPED_CONTAINER_CLASSES)
    ]


def extract(html: str, section: Optional[str], highlight: Optional[str] = None, metalanguage: str = "English") -> Extraction:
    """
    Extract definitions, cross-reference and tables for one language.

    :param html: Rendered page markup
    :param section: Section anchor of the target language, or None to detect it
    :param highlight: Surface form whose table cells should be marked
    :param metalanguage: Section of the dictionary's own language, skipped when detecting
    :return: Extraction; empty when the section is missing
    """
    soup = BeautifulSoup(html or "", PARSER)

    if section:
        heading = find_section_heading(soup, section)
    else:
        heading = detect_section_heading(soup, metalanguage)

    if heading is None:
        only_meta = section is None and any(heading_id(h) == metalanguage for h in _language_headings(soup))
        logger.debug(f"No section {section or '(auto)'} in document; only metalanguage: {only_meta}")
        return Extraction(only_metalanguage=only_meta)

    result = Extraction(section=heading_id(heading) or section)
    last_subheading: Optional[str] = None

    for element in _section_elements(heading):
        subheading = _subheading_text(element)
        if subheading:
            last_subheading = subheading
            continue

        if element.name == "ol":
            for item in element.find_all("li", recursive=False):
                _decompose_all(item, DEFINITION_NOISE)
                if not item.get_text(strip=True):
                    continue
                if result.cross_reference is None:
                    result.cross_reference = _structural_reference(item) or _textual_reference(item.get_text(" "))
                _neutralize_links(item)
                result.definitions_html.append(f"<li>{item.decode_contents().strip()}</li>")
            if result.part_of_speech is None and result.definitions_html:
                result.part_of_speech = last_subheading
            continue

        for table in _section_tables(element):
            _clean_table(table, highlight)
            result.grammar_tables_html.append(str(table))

    logger.debug(
        f"Extracted {len(result.definitions_html)} definition(s), {len(result.grammar_tables_html)} table(s), "
        f"cross-reference {result.cross_reference!r} from section {result.section}"
    )
    return result
