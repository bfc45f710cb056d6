"""Tests for the script classifier and token patterns."""

import unittest

from wordlens.scripts import DEFAULT_PATTERN, LANGUAGE_PATTERNS, classify


def words(pattern, text):
    return [candidate.text for candidate in pattern.candidates(text)]


class TestClassify(unittest.TestCase):

    def test_auto_and_unknown_use_default(self):
        self.assertIs(classify("auto"), DEFAULT_PATTERN)
        self.assertIs(classify(None), DEFAULT_PATTERN)
        self.assertIs(classify("xx"), DEFAULT_PATTERN)

    def test_known_languages(self):
        self.assertEqual(classify("ru").name, "cyrillic")
        self.assertEqual(classify("uk").name, "cyrillic")
        self.assertEqual(classify("de").name, "latin")
        self.assertEqual(classify("el").name, "greek")
        self.assertEqual(classify("ja").name, "japanese")
        self.assertEqual(classify("ar").name, "arabic")

    def test_every_pattern_compiles_to_usable_regex(self):
        for code, pattern in LANGUAGE_PATTERNS.items():
            self.assertFalse(pattern.has_candidates(""), code)


class TestCandidates(unittest.TestCase):

    def test_cyrillic_ignores_latin(self):
        self.assertEqual(words(classify("ru"), "Привет, world! Ёлка"), ["Привет", "Ёлка"])

    def test_single_letters_skipped(self):
        self.assertEqual(words(classify("ru"), "я и ты"), ["ты"])

    def test_hyphenated_word_is_one_candidate(self):
        self.assertEqual(words(classify("ru"), "кто-нибудь пришёл"), ["кто-нибудь", "пришёл"])

    def test_joiner_only_runs_skipped(self):
        self.assertEqual(words(DEFAULT_PATTERN, "word -- other"), ["word", "other"])

    def test_default_pattern_keeps_apostrophes(self):
        self.assertEqual(words(DEFAULT_PATTERN, "don’t stop"), ["don’t", "stop"])

    def test_default_pattern_mixes_scripts(self):
        self.assertEqual(words(DEFAULT_PATTERN, "haus дом σπίτι"), ["haus", "дом", "σπίτι"])

    def test_combining_stress_stays_inside_candidate(self):
        self.assertEqual(words(classify("ru"), "моло\u0301ко"), ["моло\u0301ко"])

    def test_candidate_offsets(self):
        candidates = list(classify("ru").candidates("a дом b"))
        self.assertEqual([(c.start, c.end) for c in candidates], [(2, 5)])

    def test_catalan_middle_dot(self):
        self.assertEqual(words(classify("ca"), "col·lecció"), ["col·lecció"])
        self.assertEqual(words(classify("es"), "col·lecció"), ["col", "lecció"])

    def test_greek(self):
        self.assertEqual(words(classify("el"), "καλημέρα κόσμε, hello"), ["καλημέρα", "κόσμε"])

    def test_unspaced_scripts_accept_single_characters(self):
        pattern = classify("ja")
        self.assertTrue(pattern.has_candidates("猫"))
        self.assertFalse(pattern.has_candidates("hello"))
        self.assertEqual(words(pattern, "猫"), ["猫"])

    def test_right_to_left(self):
        self.assertEqual(len(words(classify("ar"), "مرحبا بالعالم")), 2)
        self.assertEqual(len(words(classify("he"), "שלום עולם")), 2)

    def test_presence_test_short_circuits(self):
        pattern = classify("ru")
        self.assertFalse(pattern.has_candidates("only latin here"))
        self.assertEqual(words(pattern, "only latin here"), [])


if __name__ == '__main__':
    unittest.main()
