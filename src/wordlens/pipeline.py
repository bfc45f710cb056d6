"""
Lexical resolution: from a surface form on the page to a dictionary entry.

The cascade tries the form as written, its lower-cased and capitalized
variants, morphological back-formations and finally the source's
did-you-mean suggestions. A page only counts as a hit when it has a usable
section for the target language. From the hit, "form of X" cross-references
are followed up to ``max_depth`` pages, refusing any headword already
visited.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Protocol, Tuple, Union

from common.base.logging_config import get_logger
from common.config.language_config import AUTO_DETECT, LanguageManager, get_language_manager
from common.config.lookup_config import PipelineSettings, SourceSettings
from common.services.wiktionary import PageDocument, SourceUnavailable
from wordlens.cascade import Failure, Found, Miss, Step, StepResult, first_success
from wordlens.extraction import Extraction, extract
from wordlens.morphology import generate_candidates, has_suffix_table
from wordlens.session import ResolvedEntry, SessionContext
from wordlens.text import capitalize_first, fold, lookup_key

logger = get_logger(__name__)


class DictionarySource(Protocol):
    def fetch_page(self, title: str) -> Optional[PageDocument]:
        ...

    def suggest(self, word: str) -> List[str]:
        ...


@dataclass(frozen=True)
class EntryFound:
    entry: ResolvedEntry


@dataclass(frozen=True)
class NotFound:
    word: str


@dataclass(frozen=True)
class Suppressed:
    """Only the dictionary's own language has an entry; nothing worth showing."""
    word: str


@dataclass(frozen=True)
class LookupFailed:
    word: str
    reason: str


Outcome = Union[EntryFound, NotFound, Suppressed, LookupFailed]

# A page plus what was extracted from it
Hit = Tuple[str, Extraction]


class _Attempt:
    """Per-resolution bookkeeping: pages already fetched, their extractions and metalanguage-only hits."""

    def __init__(self, surface: str, section: Optional[str]):
        self.surface = surface
        self.section = section
        # title -> page, None for a missing page, or the Failure that fetching it produced
        self.pages: Dict[str, Union[PageDocument, None, Failure]] = {}
        self.results: Dict[Tuple[str, Optional[str]], StepResult] = {}
        self.saw_only_metalanguage = False


class LexicalResolver:
    """Resolves surface forms against a dictionary source."""

    def __init__(
        self,
        source: DictionarySource,
        languages: Optional[LanguageManager] = None,
        pipeline_settings: Optional[PipelineSettings] = None,
        source_settings: Optional[SourceSettings] = None,
    ):
        self.source = source
        self.languages = languages or get_language_manager()
        self.max_depth = (pipeline_settings or PipelineSettings()).max_depth
        self.max_suggestions = (source_settings or SourceSettings()).max_suggestions_tried

    # Source access

    def _page(self, attempt: _Attempt, key: str) -> Union[PageDocument, None, Failure]:
        """Fetch one page from the source, at most once per resolution."""
        if key not in attempt.pages:
            try:
                attempt.pages[key] = self.source.fetch_page(key)
            except SourceUnavailable as e:
                logger.warning(f"Fetching '{key}' failed: {e.reason}")
                attempt.pages[key] = Failure(e.reason)
        return attempt.pages[key]

    def _fetch(self, attempt: _Attempt, title: str, section: Optional[str] = None) -> StepResult:
        """
        Fetch a page and extract one language section from it.

        :param attempt: Current resolution
        :param title: Page title
        :param section: Section to extract; the attempt's section (None in auto mode) when omitted
        :return: Found with (title, extraction), Miss or Failure
        """
        key = title.strip()
        section = section or attempt.section
        if (key, section) in attempt.results:
            return attempt.results[(key, section)]

        page = self._page(attempt, key)
        if isinstance(page, Failure):
            result: StepResult = page
        elif page is None:
            result = Miss()
        else:
            extraction = extract(page.html, section, attempt.surface, self.languages.metalanguage)
            if extraction.is_usable:
                result = Found((page.title, extraction))
            else:
                if extraction.only_metalanguage:
                    attempt.saw_only_metalanguage = True
                result = Miss()

        attempt.results[(key, section)] = result
        return result

    def _suggestions(self, attempt: _Attempt) -> StepResult:
        try:
            titles = self.source.suggest(attempt.surface)
        except SourceUnavailable as e:
            logger.warning(f"Suggestions for '{attempt.surface}' failed: {e.reason}")
            return Failure(e.reason)

        fresh = [t for t in titles if t.strip() and t.strip() not in attempt.pages][:self.max_suggestions]
        if not fresh:
            return Miss()
        logger.debug(f"Trying suggestions for '{attempt.surface}': {fresh}")
        return first_success(
            (f"suggestion:{title}", lambda title=title: self._fetch(attempt, title)) for title in fresh
        )

    # Cascade

    def _cascade(self, attempt: _Attempt, language: str) -> Iterator[Step]:
        word = attempt.surface
        variants = [("exact", word), ("lowercase", word.lower()), ("capitalized", capitalize_first(word))]
        seen = set()
        for name, title in variants:
            if title in seen:
                continue
            seen.add(title)
            yield name, lambda title=title: self._fetch(attempt, title)

        if has_suffix_table(language):
            for candidate in generate_candidates(word, language):
                if candidate in seen:
                    continue
                seen.add(candidate)
                yield "morphology", lambda candidate=candidate: self._fetch(attempt, candidate)

        yield "suggestion", lambda: self._suggestions(attempt)

    def _follow_references(self, attempt: _Attempt, hit: Hit) -> List[Hit]:
        """
        Follow form-of cross-references from a hit, bounded by depth and refusing cycles.

        Every hop reads the section the hit was found in, so an auto-detected
        language stays fixed along the chain.
        """
        chain = [hit]
        section = hit[1].section
        visited = {fold(hit[0]), fold(attempt.surface)}
        while len(chain) < self.max_depth:
            reference = chain[-1][1].cross_reference
            if not reference:
                break
            if fold(reference) in visited:
                logger.debug(f"Cross-reference '{reference}' already visited, stopping")
                break
            visited.add(fold(reference))

            hop = first_success([
                ("lemma", lambda: self._fetch(attempt, reference, section)),
                ("lemma-capitalized", lambda: self._fetch(attempt, capitalize_first(reference), section)),
            ])
            if not isinstance(hop, Found):
                logger.debug(f"Cross-reference '{reference}' has no usable page")
                break
            chain.append(hop.value)
        return chain

    # Public entry points

    def resolve(self, word: str, language: str = AUTO_DETECT, show_grammar: bool = True) -> Outcome:
        """
        Resolve a surface form to a dictionary entry.

        :param word: Surface form as found on the page
        :param language: Target language code, or ``auto``
        :param show_grammar: Whether inflection tables are kept in the entry
        :return: EntryFound, NotFound, Suppressed or LookupFailed
        """
        surface = lookup_key(word)
        if not surface:
            return NotFound(word)

        section = self.languages.section_for(language)
        attempt = _Attempt(surface, section)
        logger.debug(f"Resolving '{surface}' in section {section or '(auto)'}")

        result = first_success(self._cascade(attempt, language))
        if isinstance(result, Failure):
            return LookupFailed(surface, result.reason)
        if not isinstance(result, Found):
            if attempt.saw_only_metalanguage:
                logger.debug(f"'{surface}' only has {self.languages.metalanguage} entries, suppressing")
                return Suppressed(surface)
            logger.info(f"No entry found for '{surface}'")
            return NotFound(surface)

        chain = self._follow_references(attempt, result.value)
        entry = _build_entry(surface, chain, result.step, show_grammar)
        logger.info(f"Resolved '{surface}' to '{entry.lemma}' via {entry.resolved_by}")
        return EntryFound(entry)

    def resolve_in(self, context: SessionContext, word: str) -> Outcome:
        """Resolve using a session's cache; a cached entry never reaches the source."""
        cached = context.cache.lookup(word)
        if cached is None:
            return Suppressed(lookup_key(word))
        if cached is not context.cache.MISSING:
            return EntryFound(cached)

        outcome = self.resolve(word, context.language, context.show_grammar)
        record_outcome(context, word, outcome)
        return outcome


def record_outcome(context: SessionContext, word: str, outcome: Outcome) -> None:
    """Cache entries and suppressions; misses and failures stay uncached so they can be retried."""
    if isinstance(outcome, EntryFound):
        context.cache.store(word, outcome.entry)
    elif isinstance(outcome, Suppressed):
        context.cache.store(word, None)


def _build_entry(surface: str, chain: List[Hit], step: str, show_grammar: bool) -> ResolvedEntry:
    actual_word, first = chain[0]
    lemma, last = chain[-1]

    tables = ""
    if show_grammar:
        tables = first.tables_markup() or last.tables_markup()

    # The lemma's gloss leads; the surface page's "form of" gloss follows it
    primary = last.definitions_markup()
    secondary = first.definitions_markup() if len(chain) > 1 else ""
    if not primary:
        primary, secondary = secondary, ""

    return ResolvedEntry(
        surface_word=surface,
        actual_word=actual_word,
        lemma=lemma,
        part_of_speech=first.part_of_speech or last.part_of_speech,
        primary_definition_html=primary,
        secondary_definition_html=secondary,
        grammar_tables_html=tables,
        section=last.section or first.section,
        resolved_by=step.split(":", 1)[0] if step else "exact",
        chain=tuple(title for title, _ in chain),
    )
