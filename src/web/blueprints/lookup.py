"""Lookup API: languages, settings, dictionary lookups, annotation and saved words."""

import threading
from datetime import date
from typing import Any, Dict, Optional, Tuple, Union

from flask import Blueprint, Response, current_app, has_app_context, jsonify, request

from common.base.logging_config import get_logger
from common.config.language_config import AUTO_DETECT, LanguageManager
from common.config.lookup_config import LookupConfig
from common.storage import (
    LIST_SAVED_WORDS,
    SETTING_LANGUAGE,
    SETTING_SHOW_GRAMMAR,
    JsonStore,
    SaveOutcome,
)
from wordlens.annotator import AnnotationEngine
from wordlens.document import LiveDocument
from wordlens.pipeline import EntryFound, LexicalResolver, LookupFailed, Suppressed
from wordlens.rendering import search_link, source_link
from wordlens.scripts import classify
from wordlens.session import LookupCache, ResolvedEntry, SessionContext, same_saved_word, saved_word_record
from wordlens.text import lookup_key
from web.blueprints.metrics import record_lookup

logger = get_logger(__name__)

lookup_bp = Blueprint('lookup', __name__, url_prefix='/api')

EXTENSION_KEY = 'wordlens'

LOOKUP_API_DOCS = {
    "GET /api/languages": "Configured target languages, popular first",
    "GET /api/settings": "Stored language and grammar display settings",
    "PUT /api/settings": "Update language and/or showGrammar",
    "GET /api/lookup?word=&lang=&grammar=": "Resolve a word to a dictionary entry",
    "POST /api/annotate": "Wrap lookup candidates in an HTML fragment with markers",
    "POST /api/restore": "Remove markers from an HTML fragment",
    "GET /api/saved-words": "List saved words",
    "POST /api/saved-words": "Save a word, unique per (word, base)",
}


class LookupState:
    """
    Per-application lookup state: one session context per (language, grammar) pair.

    The contexts live as long as the app and serve every client, so their
    caches are bounded by ``pipeline.shared_cache_entries``.
    """

    def __init__(self, resolver: LexicalResolver, languages: LanguageManager, store: JsonStore,
                 config: LookupConfig):
        self.resolver = resolver
        self.languages = languages
        self.store = store
        self.config = config
        self._contexts: Dict[Tuple[str, bool], SessionContext] = {}
        self._lock = threading.Lock()

    def context_for(self, language: str, show_grammar: bool) -> SessionContext:
        key = (language, show_grammar)
        with self._lock:
            context = self._contexts.get(key)
            if context is None:
                context = SessionContext(
                    language=language,
                    show_grammar=show_grammar,
                    metalanguage=self.languages.metalanguage,
                    cache=LookupCache(max_entries=self.config.pipeline.shared_cache_entries),
                )
                self._contexts[key] = context
            return context

    def cached_entry_count(self) -> int:
        with self._lock:
            return sum(len(context.cache) for context in self._contexts.values())


def get_lookup_state() -> Optional[LookupState]:
    if not has_app_context():
        return None
    return current_app.extensions.get(EXTENSION_KEY)


def _state() -> LookupState:
    return current_app.extensions[EXTENSION_KEY]


def _bad_request(message: str) -> Tuple[Response, int]:
    return jsonify({'error': 'bad_request', 'message': message}), 400


def _parse_bool(value: Union[str, bool, None], default: bool) -> Optional[bool]:
    """Parse a boolean query/body value; None means it was not a boolean."""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    return None


def _current_settings(state: LookupState) -> Dict[str, Any]:
    stored = state.store.load_settings()
    language = stored.get(SETTING_LANGUAGE)
    if not state.languages.is_known(language):
        language = state.languages.default_language
    show_grammar = stored.get(SETTING_SHOW_GRAMMAR)
    if not isinstance(show_grammar, bool):
        show_grammar = True
    return {SETTING_LANGUAGE: language, SETTING_SHOW_GRAMMAR: show_grammar}


def _entry_links(state: LookupState, entry: ResolvedEntry) -> Dict[str, str]:
    return {
        'source': source_link(entry.lemma, entry.section, state.config.source.page_url),
        'search': search_link(entry.lemma),
    }


@lookup_bp.route('/languages', methods=['GET'])
def list_languages() -> Response:
    """
    List the configured target languages.

    :return: JSON with the languages, popular first, and the default code
    """
    languages = _state().languages
    return jsonify({
        'languages': [lang.to_dict() for lang in languages.get_all_languages()],
        'default': languages.default_language,
    })


@lookup_bp.route('/settings', methods=['GET'])
def get_settings() -> Response:
    return jsonify(_current_settings(_state()))


@lookup_bp.route('/settings', methods=['PUT'])
def update_settings() -> Union[Response, Tuple[Response, int]]:
    """
    Update stored settings. Accepts ``language`` and/or ``showGrammar``.

    :return: JSON with the settings now in effect
    """
    state = _state()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request("Request body must be a JSON object")

    updates: Dict[str, Any] = {}
    if SETTING_LANGUAGE in data:
        language = data[SETTING_LANGUAGE]
        if not state.languages.is_known(language):
            return _bad_request(f"Unknown language: {language}")
        updates[SETTING_LANGUAGE] = language
    if SETTING_SHOW_GRAMMAR in data:
        if not isinstance(data[SETTING_SHOW_GRAMMAR], bool):
            return _bad_request(f"{SETTING_SHOW_GRAMMAR} must be a boolean")
        updates[SETTING_SHOW_GRAMMAR] = data[SETTING_SHOW_GRAMMAR]
    if not updates:
        return _bad_request(f"Nothing to update; expected {SETTING_LANGUAGE} or {SETTING_SHOW_GRAMMAR}")

    for key, value in updates.items():
        state.store.save_setting(key, value)
    logger.info(f"Settings updated: {updates}")
    return jsonify(_current_settings(state))


@lookup_bp.route('/lookup', methods=['GET'])
def lookup_word() -> Union[Response, Tuple[Response, int]]:
    """
    Resolve a word to a dictionary entry.

    Query parameters: ``word`` (required), ``lang`` (defaults to the stored
    setting) and ``grammar`` (defaults to the stored setting).

    :return: 200 with the entry, 200 ``suppressed``, 404 not found or 502 when the source is unreachable
    """
    state = _state()
    word = lookup_key(request.args.get('word', ''))
    if not word:
        return _bad_request("Missing required parameter: word")

    settings = _current_settings(state)
    language = request.args.get('lang') or settings[SETTING_LANGUAGE]
    if not state.languages.is_known(language):
        return _bad_request(f"Unknown language: {language}")
    show_grammar = _parse_bool(request.args.get('grammar'), settings[SETTING_SHOW_GRAMMAR])
    if show_grammar is None:
        return _bad_request("grammar must be a boolean")

    context = state.context_for(language, show_grammar)
    outcome = state.resolver.resolve_in(context, word)

    if isinstance(outcome, EntryFound):
        entry = outcome.entry
        record_lookup('found', entry.resolved_by)
        return jsonify({
            'status': 'found',
            'entry': entry.to_dict(),
            'links': _entry_links(state, entry),
        })
    if isinstance(outcome, Suppressed):
        record_lookup('suppressed')
        return jsonify({'status': 'suppressed', 'word': word})
    if isinstance(outcome, LookupFailed):
        record_lookup('failed')
        return jsonify({'error': 'source_unavailable', 'message': f"Error: {outcome.reason}"}), 502

    record_lookup('not_found')
    return jsonify({'error': 'not_found', 'message': "Definition not found"}), 404


@lookup_bp.route('/annotate', methods=['POST'])
def annotate_fragment() -> Union[Response, Tuple[Response, int]]:
    """
    Wrap lookup candidates in an HTML fragment.

    Body: ``{"html": "...", "lang": "ru"}``; ``lang`` picks the token pattern.

    :return: JSON with the annotated markup and the number of markers added
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('html'), str):
        return _bad_request("Request body must be a JSON object with an 'html' string")

    language = data.get('lang') or AUTO_DETECT
    document = LiveDocument(data['html'])
    engine = AnnotationEngine(classify(language))
    count = engine.annotate(document.root)
    logger.debug(f"Annotated fragment with {count} marker(s) for language '{language}'")
    return jsonify({'html': document.html(), 'markers': count})


@lookup_bp.route('/restore', methods=['POST'])
def restore_fragment() -> Union[Response, Tuple[Response, int]]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('html'), str):
        return _bad_request("Request body must be a JSON object with an 'html' string")

    document = LiveDocument(data['html'])
    engine = AnnotationEngine(classify(AUTO_DETECT))
    restored = engine.restore(document.root)
    return jsonify({'html': document.html(), 'restored': restored})


@lookup_bp.route('/saved-words', methods=['GET'])
def list_saved_words() -> Response:
    return jsonify({'words': _state().store.load_list(LIST_SAVED_WORDS)})


@lookup_bp.route('/saved-words', methods=['POST'])
def save_word() -> Union[Response, Tuple[Response, int]]:
    """
    Save a looked-up word.

    Body is either ``{"word": ..., "lang": ...}``, which resolves the word
    first, or an explicit record ``{"word", "base", "translation"}``.

    :return: 201 ``accepted`` for a new word, 200 ``duplicate`` otherwise
    """
    state = _state()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request("Request body must be a JSON object")
    if not isinstance(data.get('word'), str):
        return _bad_request("Missing required field: word")
    word = lookup_key(data['word'])
    if not word:
        return _bad_request("Missing required field: word")

    if data.get('base'):
        if not isinstance(data['base'], str) or not isinstance(data.get('translation', ''), str):
            return _bad_request("base and translation must be strings")
        record = {
            'word': word,
            'base': data['base'],
            'translation': data.get('translation', ''),
            'date': date.today().isoformat(),
        }
    else:
        settings = _current_settings(state)
        language = data.get('lang') or settings[SETTING_LANGUAGE]
        if not state.languages.is_known(language):
            return _bad_request(f"Unknown language: {language}")
        context = state.context_for(language, settings[SETTING_SHOW_GRAMMAR])
        outcome = state.resolver.resolve_in(context, word)
        if isinstance(outcome, LookupFailed):
            return jsonify({'error': 'source_unavailable', 'message': f"Error: {outcome.reason}"}), 502
        if not isinstance(outcome, EntryFound):
            return jsonify({'error': 'not_found', 'message': "Definition not found"}), 404
        record = saved_word_record(outcome.entry)

    outcome = state.store.append_if_absent(LIST_SAVED_WORDS, record, same_saved_word)
    if outcome is SaveOutcome.DUPLICATE:
        logger.info(f"'{word}' is already saved")
        return jsonify({'status': outcome.value, 'word': record}), 200
    return jsonify({'status': outcome.value, 'word': record}), 201
