"""wordlens - dictionary lookups overlaid on running text."""

from .scripts import TokenPattern, classify
from .document import LiveDocument
from .annotator import AnnotationEngine
from .morphology import generate_candidates
from .extraction import Extraction, extract
from .session import LookupCache, LookupSession, ResolvedEntry, SessionContext
from .pipeline import EntryFound, LexicalResolver, LookupFailed, NotFound, Suppressed
from .controller import InteractionController, ManualScheduler, OverlayState, ThreadedScheduler

__all__ = [
    'TokenPattern', 'classify',
    'LiveDocument', 'AnnotationEngine',
    'generate_candidates',
    'Extraction', 'extract',
    'LookupCache', 'LookupSession', 'ResolvedEntry', 'SessionContext',
    'EntryFound', 'LexicalResolver', 'LookupFailed', 'NotFound', 'Suppressed',
    'InteractionController', 'ManualScheduler', 'OverlayState', 'ThreadedScheduler',
]
