"""
Heuristic back-formation of dictionary headwords from inflected forms.

Each suffix table is an ordered list of (ending, replacement) pairs, longest
endings first, so that more specific rules are tried against the dictionary
before general ones. These are not a morphological analysis; they only
produce plausible headwords for the dictionary to confirm.
"""

from typing import Dict, List, Tuple

# Shortest stem left after removing an ending
MIN_STEM_LENGTH = 2

_RUSSIAN_RULES: List[Tuple[str, str]] = [
    # Reflexive participles
    ("ившимися", "ться"),
    ("ящимися", "ться"), ("ющимися", "ться"), ("ившимся", "ться"), ("ившиеся", "ться"),
    ("ившийся", "ться"), ("ащимися", "ть"),
    ("ящимся", "ться"), ("ящиеся", "ться"), ("ящийся", "ться"),
    ("ющимся", "ться"), ("ющиеся", "ться"), ("ющийся", "ться"),
    ("ащимся", "ть"), ("ащиеся", "ть"), ("ащийся", "ть"),
    # Passive participles
    ("енными", "енный"), ("анными", "анный"),
    ("ённых", "ённый"), ("енных", "енный"), ("анных", "анный"), ("янных", "янный"),
    ("ённым", "ённый"), ("енным", "енный"), ("анным", "анный"), ("янным", "янный"),
    ("ённой", "ённый"), ("енной", "енный"), ("анной", "анный"), ("янной", "янный"),
    ("ённом", "ённый"), ("енном", "енный"), ("анном", "анный"), ("янном", "янный"),
    ("ённую", "ённый"), ("енную", "енный"), ("анную", "анный"), ("янную", "янный"),
    ("ённые", "ённый"), ("енные", "енный"),
    # Adjectives, nouns and verbs with three-letter endings
    ("ыми", "ый"), ("ими", "ий"), ("ому", "ый"), ("ему", "ий"),
    ("ого", "ый"), ("его", "ий"),
    ("ами", "а"), ("ями", "я"),
    ("ишь", "ить"), ("ешь", "ать"), ("ёшь", "ть"),
    ("ите", "ить"), ("ете", "ать"), ("ёте", "ть"),
    ("ила", "ить"), ("ала", "ать"), ("яла", "ять"), ("ела", "еть"),
    ("или", "ить"), ("али", "ать"), ("яли", "ять"), ("ели", "еть"),
    # Two-letter endings
    ("ой", "ый"), ("ей", "ий"), ("ую", "ый"), ("юю", "ий"),
    ("ые", "ый"), ("ие", "ий"), ("ых", "ый"), ("их", "ий"),
    ("ом", "ий"), ("ом", "ый"),
    ("ам", "а"), ("ям", "я"), ("ов", ""), ("ев", ""), ("ей", "ь"),
    ("ах", "а"), ("ях", "я"),
    ("ит", "ить"), ("ет", "ать"), ("ёт", "ть"),
    ("им", "ить"), ("ем", "ать"), ("ём", "ть"),
    ("ят", "ить"), ("ют", "ать"), ("ут", "ть"),
    ("ил", "ить"), ("ал", "ать"), ("ял", "ять"), ("ел", "еть"),
    ("ло", "ть"), ("ли", "ть"), ("ла", "ть"),
    # Bare case endings
    ("а", ""), ("у", ""), ("е", ""), ("и", ""), ("ы", ""), ("й", ""),
]

SUFFIX_TABLES: Dict[str, List[Tuple[str, str]]] = {
    "ru": _RUSSIAN_RULES,
}


def has_suffix_table(language: str) -> bool:
    return language in SUFFIX_TABLES


def generate_candidates(surface: str, language: str) -> List[str]:
    """
    Plausible headwords for an inflected surface form, in rule order.

    :param surface: Surface form, already normalized
    :param language: Target language code
    :return: De-duplicated candidates, never including ``surface`` itself
    """
    rules = SUFFIX_TABLES.get(language)
    if not rules or not surface:
        return []

    word = surface.lower()
    candidates: List[str] = []
    for ending, replacement in rules:
        if not word.endswith(ending) or len(word) - len(ending) < MIN_STEM_LENGTH:
            continue
        candidate = word[:-len(ending)] + replacement
        if candidate != word and candidate not in candidates:
            candidates.append(candidate)
    return candidates
