"""A mutable HTML tree that tells its subscribers about inserted subtrees."""

from typing import List, Optional, Protocol, Union

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

from common.base.logging_config import get_logger

logger = get_logger(__name__)

PARSER = "html.parser"


class MutationSubscriber(Protocol):
    def on_inserted(self, nodes: List[PageElement]) -> None:
        ...


def parse_fragment(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, PARSER)


class LiveDocument:
    """
    Owns a parsed tree; every structural change goes through this class.

    Subscribers are notified after each insertion with exactly the nodes that
    were added, so they can process the change without rescanning the tree.
    Nodes moved around by a subscriber while handling a notification are not
    reported back to it.
    """

    def __init__(self, markup: str = ""):
        self.soup = parse_fragment(markup)
        self._subscribers: List[MutationSubscriber] = []

    @property
    def root(self) -> BeautifulSoup:
        return self.soup

    def subscribe(self, subscriber: MutationSubscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: MutationSubscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def _notify(self, nodes: List[PageElement]) -> None:
        if not nodes:
            return
        for subscriber in list(self._subscribers):
            subscriber.on_inserted(nodes)

    def insert(self, parent: Optional[Tag], content: Union[str, PageElement], index: Optional[int] = None) -> List[PageElement]:
        """
        Insert markup or a node under ``parent`` (the document root when None).

        :param parent: Element to insert into
        :param content: HTML markup or an already built node
        :param index: Child position; appended when None
        :return: The inserted top-level nodes
        """
        parent = parent if parent is not None else self.soup
        if isinstance(content, str):
            nodes = list(parse_fragment(content).contents)
        else:
            nodes = [content]

        position = len(parent.contents) if index is None else index
        for offset, node in enumerate(nodes):
            parent.insert(position + offset, node.extract())

        logger.debug(f"Inserted {len(nodes)} node(s) under <{parent.name}>")
        self._notify(nodes)
        return nodes

    def remove(self, node: PageElement) -> PageElement:
        return node.extract()

    def replace_html(self, markup: str) -> None:
        """Replace the whole document; subscribers see the new top-level nodes as inserted."""
        self.soup = parse_fragment(markup)
        self._notify(list(self.soup.contents))

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def text(self) -> str:
        return self.soup.get_text()

    def html(self) -> str:
        return str(self.soup)
