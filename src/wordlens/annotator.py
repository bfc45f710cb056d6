"""
Annotation engine: wraps lookup candidates in a live HTML tree with markers.

A marker is ``<mark class="word-lookup-mark" data-lookup="<key>"
data-marker-id="m<n>">`` around the candidate's original text. Markers never
nest, and text inside non-content elements, existing markers or the overlay
itself is left alone, so annotating the same subtree twice adds nothing.
Restoring unwraps every marker and merges the split text back together.
"""

from typing import Iterable, List, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

from common.base.logging_config import get_logger
from wordlens.document import PARSER, LiveDocument
from wordlens.scripts import TokenPattern
from wordlens.text import fold, lookup_key

logger = get_logger(__name__)

MARKER_TAG = "mark"
MARKER_CLASS = "word-lookup-mark"
OVERLAY_ID = "word-lookup-tooltip"

# Elements whose text is never content
SKIP_TAGS = {"script", "style", "noscript", "textarea", "input", "select", "option", "template"}

_factory = BeautifulSoup("", PARSER)


def is_marker(node: PageElement) -> bool:
    return isinstance(node, Tag) and node.name == MARKER_TAG and MARKER_CLASS in (node.get("class") or [])


class AnnotationEngine:
    """Marks candidates matching a TokenPattern and keeps a LiveDocument annotated."""

    def __init__(self, pattern: TokenPattern, overlay_id: str = OVERLAY_ID):
        self.pattern = pattern
        self.overlay_id = overlay_id
        self.document: Optional[LiveDocument] = None
        self._next_id = 0

    # Tree walking

    def _excluded(self, node: PageElement) -> bool:
        for parent in node.parents:
            if parent.name in SKIP_TAGS or is_marker(parent):
                return True
            if parent.get("id") == self.overlay_id:
                return True
        return False

    def _text_nodes(self, root: Union[Tag, NavigableString]) -> List[NavigableString]:
        if isinstance(root, NavigableString):
            nodes = [root]
        elif isinstance(root, Tag):
            if root.name in SKIP_TAGS or is_marker(root) or root.get("id") == self.overlay_id:
                return []
            nodes = root.find_all(string=True)
        else:
            return []
        # Comments, CDATA and doctype are NavigableString subclasses
        return [node for node in nodes if type(node) is NavigableString and not self._excluded(node)]

    def _make_marker(self, text: str, key: str) -> Tag:
        self._next_id += 1
        marker = _factory.new_tag(
            MARKER_TAG,
            attrs={"class": [MARKER_CLASS], "data-lookup": key, "data-marker-id": f"m{self._next_id}"},
        )
        marker.string = text
        return marker

    def _annotate_text(self, node: NavigableString) -> int:
        text = str(node)
        if not self.pattern.has_candidates(text):
            return 0

        pieces: List[PageElement] = []
        cursor = 0
        for candidate in self.pattern.candidates(text):
            key = lookup_key(candidate.text)
            if not key:
                continue
            if candidate.start > cursor:
                pieces.append(NavigableString(text[cursor:candidate.start]))
            pieces.append(self._make_marker(candidate.text, key))
            cursor = candidate.end

        if not pieces:
            return 0
        if cursor < len(text):
            pieces.append(NavigableString(text[cursor:]))

        node.replace_with(*pieces)
        return sum(1 for piece in pieces if isinstance(piece, Tag))

    # Public operations

    def annotate(self, root: Union[Tag, NavigableString]) -> int:
        """
        Wrap every unmarked candidate under ``root`` in a marker.

        :param root: Subtree (or single text node) to scan
        :return: Number of markers created
        """
        created = 0
        for node in self._text_nodes(root):
            created += self._annotate_text(node)
        if created:
            logger.debug(f"Annotated {created} candidate(s) using {self.pattern.name} pattern")
        return created

    def markers(self, root: Tag) -> List[Tag]:
        return [tag for tag in root.find_all(MARKER_TAG) if is_marker(tag)]

    def find_marker(self, root: Tag, marker_id: str) -> Optional[Tag]:
        for marker in self.markers(root):
            if marker.get("data-marker-id") == marker_id:
                return marker
        return None

    def _unwrap(self, markers: Iterable[Tag]) -> int:
        # Tag equality is structural, so parents are tracked by identity
        parents = {}
        count = 0
        for marker in list(markers):
            parent = marker.parent
            marker.unwrap()
            count += 1
            if parent is not None:
                parents[id(parent)] = parent
        for parent in parents.values():
            parent.smooth()
        return count

    def restore(self, root: Tag) -> int:
        """
        Replace every marker under ``root`` with its text and merge adjacent text.

        :return: Number of markers removed
        """
        removed = self._unwrap(self.markers(root))
        if removed:
            logger.debug(f"Restored {removed} marker(s)")
        return removed

    def prune(self, root: Tag, key: str) -> int:
        """Unwrap every marker whose lookup key folds to the same form as ``key``."""
        target = fold(key)
        return self._unwrap(m for m in self.markers(root) if fold(m.get("data-lookup", "")) == target)

    # Live document integration

    def attach(self, document: LiveDocument) -> int:
        """Annotate the whole document and follow its future insertions."""
        if self.document is not None:
            self.detach()
        self.document = document
        document.subscribe(self)
        return self.annotate(document.root)

    def detach(self) -> None:
        """Stop following the document and remove all its markers."""
        if self.document is None:
            return
        self.document.unsubscribe(self)
        self.restore(self.document.root)
        self.document = None

    def set_pattern(self, pattern: TokenPattern) -> None:
        """Switch patterns, re-annotating the attached document from scratch."""
        self.pattern = pattern
        if self.document is not None:
            self.restore(self.document.root)
            self.annotate(self.document.root)

    def on_inserted(self, nodes: List[PageElement]) -> None:
        created = 0
        for node in nodes:
            if node.parent is None:
                continue
            created += self.annotate(node)
        logger.debug(f"Mutation batch of {len(nodes)} node(s) produced {created} marker(s)")
