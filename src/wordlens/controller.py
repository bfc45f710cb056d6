"""
Interaction controller for the lookup overlay.

The controller turns pointer and selection events into overlay updates:

    IDLE -> PENDING     pointer enters a marker (debounced by hover_delay)
    PENDING -> SHOWING  debounce elapsed, or a selection was made
    SHOWING -> SHOWING  another marker is hovered (switch_delay)
    SHOWING -> HIDING   pointer left both marker and overlay
    HIDING -> IDLE      hide_delay elapsed without the pointer coming back

All timers and every pipeline completion run on one Scheduler, so the cache
and the overlay are only ever touched from that thread. With a
ThreadedScheduler lookups resolve on worker threads and post their outcome
back. Each request takes a session token; a result whose token is no longer
current (the user moved on or dismissed) is cached if positive but never
rendered.
"""

import enum
import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from common.base.logging_config import get_logger
from common.config.lookup_config import OverlaySettings
from common.storage import LIST_SAVED_WORDS, JsonStore, SaveOutcome
from wordlens.annotator import AnnotationEngine
from wordlens.pipeline import EntryFound, LexicalResolver, LookupFailed, NotFound, Outcome, Suppressed, record_outcome
from wordlens.rendering import DEFAULT_PAGE_URL, OverlayView, Rect, search_link, source_link
from wordlens.session import ResolvedEntry, SessionContext, same_saved_word, saved_word_record
from wordlens.text import clean_selection, fold, lookup_key

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Definition not found"


class OverlayState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SHOWING = "showing"
    HIDING = "hiding"


class TimerHandle:
    """A scheduled callback; cancelling it before it runs drops it."""

    def __init__(self, due: float, fn: Callable, args: tuple):
        self.due = due
        self.fn = fn
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        if not self.cancelled:
            self.fn(*self.args)


class Scheduler(ABC):
    @abstractmethod
    def now(self) -> float:
        ...

    @abstractmethod
    def call_later(self, delay: float, fn: Callable, *args) -> TimerHandle:
        ...

    def post(self, fn: Callable, *args) -> TimerHandle:
        return self.call_later(0, fn, *args)


class ManualScheduler(Scheduler):
    """Cooperative scheduler with a virtual clock, advanced explicitly."""

    def __init__(self):
        self.time = 0.0
        self._queue: List[tuple] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, fn: Callable, *args) -> TimerHandle:
        handle = TimerHandle(self.time + max(0.0, delay), fn, args)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def advance(self, seconds: float = 0.0) -> int:
        """
        Move the clock forward, running every callback that falls due in order.

        Callbacks scheduled by other callbacks run too if they fall due in time.

        :return: Number of callbacks run
        """
        target = self.time + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.time = max(self.time, due)
            if not handle.cancelled:
                handle.run()
                ran += 1
        self.time = target
        return ran

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)


class ThreadedScheduler(Scheduler):
    """Runs every callback on a single dedicated thread, in due-time order."""

    def __init__(self, name: str = "wordlens-scheduler"):
        self.name = name
        self._queue: List[tuple] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def now(self) -> float:
        return time.monotonic()

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        with self._cond:
            self._running = False
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def call_later(self, delay: float, fn: Callable, *args) -> TimerHandle:
        handle = TimerHandle(self.now() + max(0.0, delay), fn, args)
        with self._cond:
            heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
            self._cond.notify()
        return handle

    def _next_due(self) -> Optional[TimerHandle]:
        with self._cond:
            while self._running:
                if not self._queue:
                    self._cond.wait()
                    continue
                wait = self._queue[0][0] - self.now()
                if wait <= 0:
                    return heapq.heappop(self._queue)[2]
                self._cond.wait(wait)
        return None

    def _loop(self) -> None:
        while True:
            handle = self._next_due()
            if handle is None:
                return
            try:
                handle.run()
            except Exception as e:
                logger.exception(f"Scheduled callback {handle.fn!r} failed: {e}")


ResolveFn = Callable[[str], Outcome]
SettleFn = Callable[[str, Outcome], None]


class InlineDispatcher:
    """Resolves immediately; the outcome is delivered on the scheduler's next turn."""

    def __init__(self, resolve: ResolveFn, scheduler: Scheduler):
        self.resolve = resolve
        self.scheduler = scheduler

    def submit(self, word: str, on_settled: SettleFn) -> None:
        self.scheduler.post(on_settled, word, self.resolve(word))


class ThreadedDispatcher:
    """Resolves on a worker thread and hands the outcome back to the scheduler thread."""

    def __init__(self, resolve: ResolveFn, scheduler: Scheduler):
        self.resolve = resolve
        self.scheduler = scheduler

    def _work(self, word: str, on_settled: SettleFn) -> None:
        try:
            outcome = self.resolve(word)
        except Exception as e:
            logger.exception(f"Resolving '{word}' raised: {e}")
            outcome = LookupFailed(word, str(e) or e.__class__.__name__)
        self.scheduler.post(on_settled, word, outcome)

    def submit(self, word: str, on_settled: SettleFn) -> None:
        threading.Thread(target=self._work, args=(word, on_settled), name=f"lookup-{word}", daemon=True).start()


class InteractionController:
    """Owns the overlay's timers and decides what it shows."""

    def __init__(
        self,
        context: SessionContext,
        resolver: LexicalResolver,
        view: OverlayView,
        scheduler: Scheduler,
        dispatcher=None,
        settings: Optional[OverlaySettings] = None,
        store: Optional[JsonStore] = None,
        engine: Optional[AnnotationEngine] = None,
        page_url: str = DEFAULT_PAGE_URL,
    ):
        self.context = context
        self.resolver = resolver
        self.view = view
        self.scheduler = scheduler
        if dispatcher is None:
            dispatcher_class = ThreadedDispatcher if isinstance(scheduler, ThreadedScheduler) else InlineDispatcher
            dispatcher = dispatcher_class(self._resolve, scheduler)
        self.dispatcher = dispatcher
        self.settings = settings or OverlaySettings()
        self.store = store
        self.engine = engine
        self.page_url = page_url

        self.state = OverlayState.IDLE
        self.current_entry: Optional[ResolvedEntry] = None
        self._anchor: Optional[Rect] = None
        self._hovered: Optional[str] = None
        self._over_overlay = False
        self._selection_active = False
        self._show_timer: Optional[TimerHandle] = None
        self._hide_timer: Optional[TimerHandle] = None
        # folded word -> token of the latest request waiting on it
        self._in_flight: Dict[str, int] = {}

    def _resolve(self, word: str) -> Outcome:
        return self.resolver.resolve(word, self.context.language, self.context.show_grammar)

    # Timers

    def _cancel_show(self) -> None:
        if self._show_timer is not None:
            self._show_timer.cancel()
            self._show_timer = None

    def _cancel_hide(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.cancel()
            self._hide_timer = None
        if self.state == OverlayState.HIDING:
            self.state = OverlayState.SHOWING

    def _schedule_hide(self) -> None:
        if self.state not in (OverlayState.SHOWING, OverlayState.HIDING) or self._hide_timer is not None:
            return
        self.state = OverlayState.HIDING
        self._hide_timer = self.scheduler.call_later(self.settings.hide_delay, self._fire_hide)

    def _fire_hide(self) -> None:
        self._hide_timer = None
        if self._hovered is not None or self._over_overlay:
            self.state = OverlayState.SHOWING
            return
        self._close()

    def _close(self) -> None:
        self.view.hide()
        self.state = OverlayState.IDLE
        self.current_entry = None
        self.context.lookup.end()

    def _fire_hover(self, key: str, anchor: Optional[Rect]) -> None:
        self._show_timer = None
        if self._hovered != key or self._selection_active:
            return
        self.request_lookup(key, anchor)

    # Pointer events

    def pointer_enter_marker(self, key: str, anchor: Optional[Rect] = None) -> None:
        """The pointer entered a marker carrying lookup key ``key``."""
        if self._selection_active:
            return
        self._hovered = key
        self._cancel_hide()

        showing = self.state == OverlayState.SHOWING
        if showing and self.context.lookup.matches(key):
            return

        self._cancel_show()
        delay = self.settings.switch_delay if showing else self.settings.hover_delay
        if self.state == OverlayState.IDLE:
            self.state = OverlayState.PENDING
        self._show_timer = self.scheduler.call_later(delay, self._fire_hover, key, anchor)

    def pointer_leave_marker(self) -> None:
        self._hovered = None
        self._cancel_show()
        if self.state == OverlayState.PENDING:
            self.state = OverlayState.IDLE
        elif not self._over_overlay:
            self._schedule_hide()

    def pointer_enter_overlay(self) -> None:
        self._over_overlay = True
        self._cancel_hide()

    def pointer_leave_overlay(self) -> None:
        self._over_overlay = False
        if self._hovered is None:
            self._schedule_hide()

    def pointer_move(self, x: float, y: float) -> None:
        """Pointer overshoot within the padded overlay area keeps it open."""
        if self.state not in (OverlayState.SHOWING, OverlayState.HIDING):
            return
        if self.view.contains(x, y, self.settings.overlay_padding):
            self._cancel_hide()
        elif self._hovered is None:
            self._over_overlay = False
            self._schedule_hide()

    def selection_changed(self, text: str, anchor: Optional[Rect] = None, inside_overlay: bool = False) -> bool:
        """
        React to the user's text selection.

        :param text: Selected text; empty when the selection collapsed
        :param anchor: Selection bounding box
        :param inside_overlay: Selections made inside the overlay are ignored
        :return: True if a lookup was requested
        """
        if inside_overlay:
            return False
        word = clean_selection(text or "")
        if not word:
            self._selection_active = False
            return False

        self._selection_active = True
        if not (self.settings.min_selection <= len(word) < self.settings.max_selection):
            logger.debug(f"Ignoring selection of length {len(word)}")
            return False

        self._cancel_show()
        self._cancel_hide()
        self.request_lookup(word, anchor)
        return True

    def dismiss(self) -> None:
        """Hide now and forget every pending timer."""
        self._cancel_show()
        self._cancel_hide()
        self._hovered = None
        self._over_overlay = False
        self._close()

    # Lookups

    def request_lookup(self, word: str, anchor: Optional[Rect] = None) -> Optional[int]:
        """
        Show ``word``: from the cache, or as a loading panel while it resolves.

        :return: The lookup session token, or None if the word is empty
        """
        key = lookup_key(word)
        if not key:
            return None

        token = self.context.lookup.begin(key)
        self._anchor = anchor
        cached = self.context.cache.lookup(key)

        if cached is None:
            self._close()
            return token
        if cached is not self.context.cache.MISSING:
            self._show_entry(key, cached)
            return token

        self.current_entry = None
        self.view.show_loading(key, anchor)
        self.state = OverlayState.SHOWING
        submitted = fold(key) in self._in_flight
        self._in_flight[fold(key)] = token
        if not submitted:
            self.dispatcher.submit(key, self._on_settled)
        return token

    def _show_entry(self, word: str, entry: ResolvedEntry) -> None:
        self.current_entry = entry
        self.view.show_entry(word, entry, self._anchor)
        self.state = OverlayState.SHOWING

    def _prune(self, word: str) -> None:
        if self.engine is not None and self.engine.document is not None:
            removed = self.engine.prune(self.engine.document.root, word)
            logger.debug(f"Pruned {removed} marker(s) for '{word}'")

    def _on_settled(self, word: str, outcome: Outcome) -> None:
        token = self._in_flight.pop(fold(word), None)

        if not self.context.lookup.is_current(token):
            logger.debug(f"Discarding stale result for '{word}'")
            if isinstance(outcome, EntryFound):
                self.context.cache.store(word, outcome.entry)
            return

        record_outcome(self.context, word, outcome)
        if isinstance(outcome, EntryFound):
            self._show_entry(word, outcome.entry)
        elif isinstance(outcome, Suppressed):
            self._close()
            self._prune(word)
        elif isinstance(outcome, NotFound):
            self.current_entry = None
            self.view.show_error(word, NOT_FOUND_MESSAGE, self._anchor)
            self._prune(word)
        elif isinstance(outcome, LookupFailed):
            self.current_entry = None
            self.view.show_error(word, f"Error: {outcome.reason}", self._anchor)

    # User actions on the shown entry

    def copy_text(self) -> Optional[str]:
        if self.current_entry is None:
            return None
        return self.current_entry.lemma or self.current_entry.surface_word

    def save_current(self) -> Optional[SaveOutcome]:
        """Append the shown entry to the saved words, unique per (word, lemma)."""
        if self.current_entry is None or self.store is None:
            return None
        outcome = self.store.append_if_absent(
            LIST_SAVED_WORDS, saved_word_record(self.current_entry), same_saved_word
        )
        if outcome is SaveOutcome.DUPLICATE:
            logger.info(f"'{self.current_entry.surface_word}' is already saved")
        return outcome

    def source_link(self) -> Optional[str]:
        if self.current_entry is None:
            return None
        return source_link(self.current_entry.lemma, self.current_entry.section, self.page_url)

    def search_link(self) -> Optional[str]:
        if self.current_entry is None:
            return None
        return search_link(self.current_entry.lemma)
