"""Common services for wordlens."""

from .wiktionary import (
    PageDocument,
    SourceUnavailable,
    WiktionaryService,
    init_wiktionary_service,
    get_wiktionary_service,
)

__all__ = [
    "PageDocument",
    "SourceUnavailable",
    "WiktionaryService",
    "init_wiktionary_service",
    "get_wiktionary_service",
]
