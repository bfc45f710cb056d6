"""
Script classifier: which runs of text count as lookup candidates for a language.

Each language maps to a TokenPattern. The presence test is a cheap
single-character search run on a whole text node before the full candidate
scan; scripts written without spaces (kana, han, hangul, thai and their
neighbours) are detected by code-point range and accept single-character
candidates. Right-to-left scripts are tokenized exactly like left-to-right
ones.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, NamedTuple, Optional

import regex

from common.config.language_config import AUTO_DETECT

# Joiners that may appear inside a word in alphabetic scripts
_JOINERS = r"\-\u00AD"
_MARKS = r"\p{M}"


class Candidate(NamedTuple):
    """A contiguous run of text matching a TokenPattern."""
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class TokenPattern:
    name: str
    match_expression: "regex.Pattern"
    presence_test: "regex.Pattern"

    def has_candidates(self, text: str) -> bool:
        return bool(text) and self.presence_test.search(text) is not None

    def candidates(self, text: str) -> Iterator[Candidate]:
        """Yield candidates in order; runs made only of joiners are skipped."""
        if not self.has_candidates(text):
            return
        for match in self.match_expression.finditer(text):
            run = match.group(0)
            if self.presence_test.search(run):
                yield Candidate(run, match.start(), match.end())


def _alphabetic(name: str, letters: str, extra: str = "", presence: Optional[str] = None) -> TokenPattern:
    return TokenPattern(
        name=name,
        match_expression=regex.compile(rf"[{letters}{_MARKS}{extra}{_JOINERS}]{{2,}}"),
        presence_test=regex.compile(rf"[{presence or letters}]"),
    )


def _ranged(name: str, ranges: str, min_length: int = 2, presence: Optional[str] = None) -> TokenPattern:
    return TokenPattern(
        name=name,
        match_expression=regex.compile(rf"[{ranges}{_MARKS}]{{{min_length},}}"),
        presence_test=regex.compile(rf"[{presence or ranges}]"),
    )


LATIN = r"\p{Script=Latin}"
CYRILLIC = r"\p{Script=Cyrillic}"
GREEK = r"\p{Script=Greek}"

DEFAULT_PATTERN = _alphabetic("default", LATIN + CYRILLIC + GREEK, extra=r"'\u2019")

_LATIN_PATTERN = _alphabetic("latin", LATIN)
_CATALAN_PATTERN = _alphabetic("catalan", LATIN, extra=r"\u00B7")
_CYRILLIC_PATTERN = _alphabetic("cyrillic", CYRILLIC)
_GREEK_PATTERN = _alphabetic("greek", GREEK)

_JAPANESE = r"\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FFF"
_HAN = r"\u4E00-\u9FFF"
_HANGUL = r"\uAC00-\uD7AF\u1100-\u11FF"
_DEVANAGARI = r"\u0900-\u097F"
_ARABIC = r"\u0600-\u06FF\u0750-\u077F"

# Languages not listed here use DEFAULT_PATTERN
LANGUAGE_PATTERNS: Dict[str, TokenPattern] = {
    # Cyrillic
    **{code: _CYRILLIC_PATTERN for code in ("ru", "uk", "be", "bg", "sr", "mk", "mn", "kk")},
    # Latin with diacritics
    **{code: _LATIN_PATTERN for code in (
        "de", "fr", "es", "it", "pt", "pl", "cs", "sk", "hu", "ro", "hr", "sl", "nl", "sv", "da",
        "no", "fi", "is", "lt", "lv", "et", "sq", "eu", "cy", "ga", "tr", "az", "uz", "vi", "id",
        "ms", "tl", "sw", "af", "eo", "la",
    )},
    "ca": _CATALAN_PATTERN,
    # Greek
    "el": _GREEK_PATTERN,
    "grc": _GREEK_PATTERN,
    # East and Southeast Asian
    "ja": _ranged("japanese", _JAPANESE, min_length=1),
    "zh": _ranged("chinese", _HAN, min_length=1),
    "ko": _ranged("korean", _HANGUL, min_length=1, presence=r"\uAC00-\uD7AF"),
    "th": _ranged("thai", r"\u0E00-\u0E7F"),
    "lo": _ranged("lao", r"\u0E80-\u0EFF"),
    "km": _ranged("khmer", r"\u1780-\u17FF"),
    "my": _ranged("myanmar", r"\u1000-\u109F"),
    # South Asian
    "hi": _ranged("devanagari", _DEVANAGARI),
    "ne": _ranged("devanagari", _DEVANAGARI),
    "sa": _ranged("devanagari", _DEVANAGARI),
    "bn": _ranged("bengali", r"\u0980-\u09FF"),
    "pa": _ranged("gurmukhi", r"\u0A00-\u0A7F"),
    "ta": _ranged("tamil", r"\u0B80-\u0BFF"),
    "te": _ranged("telugu", r"\u0C00-\u0C7F"),
    "si": _ranged("sinhala", r"\u0D80-\u0DFF"),
    # Semitic and other right-to-left
    "ar": _ranged("arabic", _ARABIC),
    "fa": _ranged("arabic", _ARABIC),
    "ur": _ranged("arabic", _ARABIC),
    "he": _ranged("hebrew", r"\u0590-\u05FF"),
    # Caucasian
    "ka": _ranged("georgian", r"\u10A0-\u10FF"),
    "hy": _ranged("armenian", r"\u0530-\u058F"),
}


def classify(language_code: Optional[str]) -> TokenPattern:
    """
    Get the token pattern for a target language.

    :param language_code: Language code, ``auto`` or None
    :return: The language's pattern, or the mixed Latin/Cyrillic/Greek default
    """
    if not language_code or language_code == AUTO_DETECT:
        return DEFAULT_PATTERN
    return LANGUAGE_PATTERNS.get(language_code, DEFAULT_PATTERN)
