"""Tests for session state: cache, active lookup and saved-word records."""

import unittest
from datetime import date

from wordlens.session import (
    LookupCache,
    LookupSession,
    ResolvedEntry,
    SessionContext,
    same_saved_word,
    saved_word_record,
)


def entry(surface="книгами", actual="книгами", lemma="книга"):
    return ResolvedEntry(
        surface_word=surface,
        actual_word=actual,
        lemma=lemma,
        primary_definition_html="<ol><li>book</li></ol>",
        section="Russian",
        chain=(actual, lemma),
    )


class TestResolvedEntry(unittest.TestCase):

    def test_flags(self):
        self.assertTrue(entry().lemma_differs)
        self.assertFalse(entry().corrected)
        self.assertTrue(entry(surface="кнiгами").corrected)
        self.assertFalse(entry(actual="книга", lemma="Книга").lemma_differs)

    def test_to_dict(self):
        data = entry().to_dict()
        self.assertEqual(data["chain"], ["книгами", "книга"])
        self.assertEqual(data["lemma"], "книга")


class TestLookupCache(unittest.TestCase):

    def test_absent_and_suppressed_are_distinct(self):
        cache = LookupCache()
        cache.store("the", None)

        self.assertIsNone(cache.lookup("the"))
        self.assertIs(cache.lookup("книга"), LookupCache.MISSING)
        self.assertIn("THE", cache)

    def test_first_store_wins(self):
        cache = LookupCache()
        first, second = entry(), entry(lemma="другое")

        self.assertTrue(cache.store("Книгами", first))
        self.assertFalse(cache.store("книгами", second))
        self.assertIs(cache.lookup("КНИГАМИ"), first)
        self.assertEqual(len(cache), 1)

    def test_clear(self):
        cache = LookupCache()
        cache.store("a1", entry())
        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_bounded_cache_evicts_least_recently_used(self):
        cache = LookupCache(max_entries=2)
        cache.store("альфа", entry())
        cache.store("бета", None)
        cache.lookup("альфа")
        cache.store("гамма", entry())

        self.assertEqual(len(cache), 2)
        self.assertIn("альфа", cache)
        self.assertIn("гамма", cache)
        self.assertNotIn("бета", cache)
        self.assertIs(cache.lookup("бета"), LookupCache.MISSING)

    def test_unbounded_cache_keeps_everything(self):
        cache = LookupCache()
        for i in range(50):
            cache.store(f"w{i}", entry())
        self.assertEqual(len(cache), 50)
        self.assertIn("w0", cache)


class TestLookupSession(unittest.TestCase):

    def test_tokens(self):
        session = LookupSession()
        first = session.begin("книга")
        second = session.begin("дом")

        self.assertNotEqual(first, second)
        self.assertFalse(session.is_current(first))
        self.assertTrue(session.is_current(second))
        self.assertTrue(session.matches("ДОМ"))
        self.assertFalse(session.matches("книга"))

    def test_end(self):
        session = LookupSession()
        token = session.begin("книга")
        session.end()

        self.assertFalse(session.is_current(token))
        self.assertFalse(session.matches("книга"))


class TestSessionContext(unittest.TestCase):

    def test_switching_language_clears_cache(self):
        context = SessionContext(language="ru")
        context.cache.store("книга", entry())

        context.switch_language("ru")
        self.assertEqual(len(context.cache), 1)

        context.switch_language("uk")
        self.assertEqual(context.language, "uk")
        self.assertEqual(len(context.cache), 0)

    def test_contexts_do_not_share_caches(self):
        self.assertIsNot(SessionContext().cache, SessionContext().cache)


class TestSavedWords(unittest.TestCase):

    def test_record(self):
        record = saved_word_record(entry(), today=date(2024, 3, 1))
        self.assertEqual(record, {
            "word": "книгами",
            "base": "книга",
            "translation": "<ol><li>book</li></ol>",
            "date": "2024-03-01",
        })

    def test_uniqueness_is_word_and_base(self):
        a = {"word": "Книгами", "base": "книга"}
        self.assertTrue(same_saved_word(a, {"word": "книгами", "base": "Книга"}))
        self.assertFalse(same_saved_word(a, {"word": "книгами", "base": "книжка"}))


if __name__ == '__main__':
    unittest.main()
