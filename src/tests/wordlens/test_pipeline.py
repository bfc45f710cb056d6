"""Tests for the lexical resolution pipeline."""

import unittest

from common.config.language_config import DEFAULT_CONFIG_PATH, LanguageManager
from common.config.lookup_config import PipelineSettings, SourceSettings
from tests.pages import ENGLISH_AND_SPANISH, ENGLISH_ONLY, GOVORYASHCHIY, KNIGA, KNIGAMI, FakeSource, form_of
from wordlens.pipeline import EntryFound, LexicalResolver, LookupFailed, NotFound, Suppressed
from wordlens.session import SessionContext


class ResolverTestBase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.languages = LanguageManager(DEFAULT_CONFIG_PATH)

    def resolver(self, source, max_depth=2, max_suggestions=3):
        return LexicalResolver(
            source,
            self.languages,
            PipelineSettings(max_depth=max_depth),
            SourceSettings(max_suggestions_tried=max_suggestions),
        )


class TestCascade(ResolverTestBase):

    def test_exact_hit(self):
        source = FakeSource({"книга": KNIGA})
        outcome = self.resolver(source).resolve("книга", "ru")

        self.assertIsInstance(outcome, EntryFound)
        self.assertEqual(outcome.entry.resolved_by, "exact")
        self.assertEqual(source.fetched, ["книга"])

    def test_lowercase_variant(self):
        source = FakeSource({"книга": KNIGA})
        outcome = self.resolver(source).resolve("Книга", "ru")

        self.assertEqual(outcome.entry.resolved_by, "lowercase")
        self.assertEqual(outcome.entry.actual_word, "книга")
        self.assertEqual(outcome.entry.surface_word, "Книга")

    def test_capitalized_variant(self):
        source = FakeSource({"Berlin": '<h2 id="German">German</h2><ol><li>Berlin (city in Germany)</li></ol>'})
        outcome = self.resolver(source).resolve("berlin", "de")

        self.assertEqual(outcome.entry.resolved_by, "capitalized")
        self.assertEqual(source.fetched, ["berlin", "Berlin"])

    def test_morphological_back_formation(self):
        source = FakeSource({"говорящий": GOVORYASHCHIY})
        outcome = self.resolver(source).resolve("говорящего", "ru")

        self.assertIsInstance(outcome, EntryFound)
        entry = outcome.entry
        self.assertEqual(entry.surface_word, "говорящего")
        self.assertEqual(entry.actual_word, "говорящий")
        self.assertEqual(entry.lemma, "говорящий")
        self.assertEqual(entry.resolved_by, "morphology")
        self.assertEqual(entry.part_of_speech, "Participle")
        self.assertTrue(entry.corrected)
        self.assertIn("rl-highlight-form", entry.grammar_tables_html)

    def test_page_without_target_section_is_a_miss(self):
        source = FakeSource({"дом": '<h2 id="Ukrainian">Ukrainian</h2><ol><li>house</li></ol>'})
        outcome = self.resolver(source).resolve("дом", "ru")
        self.assertIsInstance(outcome, NotFound)

    def test_suggestion_fallback(self):
        source = FakeSource({"говорящий": GOVORYASHCHIY}, suggestions={"гаварящий": ["говорящий", "говорить"]})
        outcome = self.resolver(source).resolve("гаварящий", "ru")

        self.assertEqual(outcome.entry.resolved_by, "suggestion")
        self.assertEqual(outcome.entry.actual_word, "говорящий")
        self.assertNotIn("говорить", source.fetched[:source.fetched.index("говорящий")])

    def test_suggestions_limited(self):
        source = FakeSource(suggestions={"qqq": ["a1", "a2", "a3", "a4"]})
        self.resolver(source, max_suggestions=2).resolve("qqq", "es")

        self.assertIn("a2", source.fetched)
        self.assertNotIn("a3", source.fetched)

    def test_not_found(self):
        source = FakeSource()
        outcome = self.resolver(source).resolve("zzzz", "es")

        self.assertEqual(outcome, NotFound("zzzz"))
        self.assertEqual(source.suggested, ["zzzz"])

    def test_each_title_fetched_once(self):
        source = FakeSource(suggestions={"zzzz": ["zzzz", "Zzzz"]})
        self.resolver(source).resolve("zzzz", "es")
        self.assertEqual(sorted(source.fetched), sorted(set(source.fetched)))

    def test_surface_is_normalized(self):
        source = FakeSource({"книга": KNIGA})
        outcome = self.resolver(source).resolve("кни\u00adга\u0301", "ru")

        self.assertEqual(source.fetched[0], "книга")
        self.assertIsInstance(outcome, EntryFound)

    def test_empty_word(self):
        source = FakeSource()
        self.assertIsInstance(self.resolver(source).resolve("  ", "ru"), NotFound)
        self.assertEqual(source.fetched, [])

    def test_auto_detect(self):
        source = FakeSource({"casa": ENGLISH_AND_SPANISH})
        outcome = self.resolver(source).resolve("casa", "auto")

        self.assertEqual(outcome.entry.section, "Spanish")

    def test_grammar_hidden(self):
        source = FakeSource({"книга": KNIGA})
        outcome = self.resolver(source).resolve("книга", "ru", show_grammar=False)
        self.assertEqual(outcome.entry.grammar_tables_html, "")


class TestLemmaChasing(ResolverTestBase):

    def test_form_of_hop(self):
        source = FakeSource({"книгами": KNIGAMI, "книга": KNIGA})
        entry = self.resolver(source).resolve("книгами", "ru").entry

        self.assertEqual(entry.actual_word, "книгами")
        self.assertEqual(entry.lemma, "книга")
        self.assertEqual(entry.chain, ("книгами", "книга"))
        self.assertIn("book", entry.primary_definition_html)
        self.assertIn("instrumental plural", entry.secondary_definition_html)
        self.assertEqual(entry.part_of_speech, "Noun")
        self.assertTrue(entry.lemma_differs)
        self.assertIn("rl-highlight-form", entry.grammar_tables_html)

    def test_depth_one_never_hops(self):
        source = FakeSource({"книгами": KNIGAMI, "книга": KNIGA})
        entry = self.resolver(source, max_depth=1).resolve("книгами", "ru").entry

        self.assertEqual(entry.lemma, "книгами")
        self.assertNotIn("книга", source.fetched)

    def test_cycle_terminates(self):
        source = FakeSource({"альфа": form_of("Russian", "бета"), "бета": form_of("Russian", "альфа")})
        entry = self.resolver(source, max_depth=5).resolve("альфа", "ru").entry

        self.assertEqual(entry.chain, ("альфа", "бета"))
        self.assertEqual(source.fetched.count("альфа"), 1)
        self.assertEqual(source.fetched.count("бета"), 1)

    def test_chain_bounded_by_depth(self):
        source = FakeSource({
            "альфа": form_of("Russian", "бета"),
            "бета": form_of("Russian", "гамма"),
            "гамма": form_of("Russian", "дельта"),
            "дельта": KNIGA,
        })
        entry = self.resolver(source, max_depth=3).resolve("альфа", "ru").entry

        self.assertEqual(entry.chain, ("альфа", "бета", "гамма"))
        self.assertNotIn("дельта", source.fetched)

    def test_auto_detected_language_kept_across_hop(self):
        huizen = (
            '<h2 id="Dutch">Dutch</h2><h3 id="Noun">Noun</h3>'
            '<ol><li>plural of <a href="/wiki/huis#Dutch">huis</a></li></ol>'
        )
        huis = (
            '<h2 id="English">English</h2><ol><li>A house (rare).</li></ol>'
            '<h2 id="Afrikaans">Afrikaans</h2><ol><li>home (Afrikaans sense)</li></ol>'
            '<h2 id="Dutch">Dutch</h2><h3 id="Noun">Noun</h3><ol><li>house</li></ol>'
        )
        source = FakeSource({"huizen": huizen, "huis": huis})
        entry = self.resolver(source).resolve("huizen", "auto").entry

        self.assertEqual(entry.chain, ("huizen", "huis"))
        self.assertEqual(entry.section, "Dutch")
        self.assertIn("house", entry.primary_definition_html)
        self.assertNotIn("Afrikaans", entry.primary_definition_html)
        self.assertEqual(source.fetched.count("huis"), 1)

    def test_unusable_lemma_keeps_matched_page(self):
        source = FakeSource({"книгами": KNIGAMI, "книга": '<h2 id="Bulgarian">Bulgarian</h2><ol><li>book</li></ol>'})
        entry = self.resolver(source).resolve("книгами", "ru").entry

        self.assertEqual(entry.lemma, "книгами")
        self.assertEqual(entry.chain, ("книгами",))
        self.assertIn("instrumental plural", entry.primary_definition_html)

    def test_failed_hop_keeps_matched_page(self):
        source = FakeSource({"книгами": KNIGAMI}, failing={"книга", "Книга"})
        outcome = self.resolver(source).resolve("книгами", "ru")

        self.assertIsInstance(outcome, EntryFound)
        self.assertEqual(outcome.entry.lemma, "книгами")


class TestFailuresAndSuppression(ResolverTestBase):

    def test_unreachable_source(self):
        source = FakeSource(fail_everything=True)
        outcome = self.resolver(source).resolve("casa", "es")

        self.assertEqual(outcome, LookupFailed("casa", "Request timed out"))

    def test_partial_failure_is_not_found(self):
        source = FakeSource(failing={"casa"})
        outcome = self.resolver(source).resolve("casa", "es")
        self.assertIsInstance(outcome, NotFound)

    def test_metalanguage_only_is_suppressed(self):
        source = FakeSource({"the": ENGLISH_ONLY})
        outcome = self.resolver(source).resolve("the", "auto")
        self.assertEqual(outcome, Suppressed("the"))

    def test_metalanguage_only_with_explicit_language_is_not_found(self):
        source = FakeSource({"the": ENGLISH_ONLY})
        self.assertIsInstance(self.resolver(source).resolve("the", "es"), NotFound)


class TestSessionCache(ResolverTestBase):

    def test_cached_entry_never_refetched(self):
        source = FakeSource({"книга": KNIGA})
        resolver = self.resolver(source)
        context = SessionContext(language="ru")

        first = resolver.resolve_in(context, "книга")
        calls = len(source.fetched)
        second = resolver.resolve_in(context, "Книга")

        self.assertIs(first.entry, second.entry)
        self.assertEqual(len(source.fetched), calls)

    def test_suppression_cached(self):
        source = FakeSource({"the": ENGLISH_ONLY})
        resolver = self.resolver(source)
        context = SessionContext()

        resolver.resolve_in(context, "the")
        calls = len(source.fetched)

        self.assertIsInstance(resolver.resolve_in(context, "the"), Suppressed)
        self.assertEqual(len(source.fetched), calls)
        self.assertIsNone(context.cache.lookup("the"))

    def test_misses_and_failures_not_cached(self):
        resolver = self.resolver(FakeSource(fail_everything=True))
        context = SessionContext(language="es")

        self.assertIsInstance(resolver.resolve_in(context, "casa"), LookupFailed)
        self.assertNotIn("casa", context.cache)

        resolver.source = FakeSource()
        self.assertIsInstance(resolver.resolve_in(context, "casa"), NotFound)
        self.assertNotIn("casa", context.cache)


if __name__ == '__main__':
    unittest.main()
