"""Normalization of surface forms into lookup keys."""

import unicodedata

SOFT_HYPHEN = "\u00ad"

# Stripped from both ends of a candidate before it becomes a key
_EDGE_PUNCTUATION = "-'’" + SOFT_HYPHEN


def strip_marks(text: str) -> str:
    """Remove combining diacritics that do not compose into a precomposed letter.

    Stress accents over Cyrillic vowels disappear while letters such as
    é, ё and й, which have precomposed code points, are kept intact.
    """
    composed = unicodedata.normalize("NFC", text)
    return "".join(ch for ch in composed if not unicodedata.combining(ch))


def lookup_key(text: str) -> str:
    """Display form of a candidate: soft hyphens and stress marks removed, case kept."""
    cleaned = strip_marks(text.replace(SOFT_HYPHEN, ""))
    return cleaned.strip(_EDGE_PUNCTUATION).strip()


def fold(text: str) -> str:
    """Cache and comparison form of a candidate."""
    return lookup_key(text).casefold()


def capitalize_first(word: str) -> str:
    """Upper-case the first letter only; ``str.capitalize`` would lower the rest."""
    return word[:1].upper() + word[1:] if word else word


def clean_selection(text: str) -> str:
    """Trimmed selection text with soft hyphens removed."""
    return text.replace(SOFT_HYPHEN, "").strip()
