"""Tests for overlay panel rendering."""

import unittest

from wordlens.rendering import (
    HtmlOverlayView,
    Rect,
    render_entry,
    render_error,
    render_loading,
    search_link,
    source_link,
)
from wordlens.session import ResolvedEntry, SessionContext


def sample_entry(**overrides):
    values = dict(
        surface_word="книгами",
        actual_word="книгами",
        lemma="книга",
        part_of_speech="Noun",
        primary_definition_html="<li>book</li>",
        secondary_definition_html="<li>instrumental plural of книга</li>",
        grammar_tables_html="<table><tr><td>книга</td></tr></table>",
        section="Russian",
        resolved_by="exact",
        chain=("книгами", "книга"),
    )
    values.update(overrides)
    return ResolvedEntry(**values)


class TestLinks(unittest.TestCase):

    def test_source_link_anchored_at_section(self):
        self.assertEqual(
            source_link("casa", "Spanish"),
            "https://en.wiktionary.org/wiki/casa#Spanish"
        )

    def test_source_link_spaces(self):
        self.assertEqual(source_link("ad hoc"), "https://en.wiktionary.org/wiki/ad_hoc")

    def test_source_link_custom_base(self):
        self.assertEqual(source_link("casa", None, "http://localhost/wiki/"), "http://localhost/wiki/casa")

    def test_search_link(self):
        self.assertEqual(search_link("ad hoc"), "https://www.google.com/search?q=define+ad+hoc")


class TestPanels(unittest.TestCase):

    def test_loading_escapes(self):
        html = render_loading("<b>")
        self.assertIn("&lt;b&gt;", html)
        self.assertNotIn("<b><b>", html)

    def test_error(self):
        html = render_error("casa", "Definition not found")
        self.assertIn('class="rl-error"', html)
        self.assertIn("Definition not found", html)

    def test_full_entry(self):
        html = render_entry(sample_entry())

        self.assertIn('<div class="rl-word">книгами', html)
        self.assertIn("base: книга", html)
        self.assertIn('<span class="rl-pos">Noun</span>', html)
        self.assertIn("<li>book</li>", html)
        self.assertIn("rl-secondary", html)
        self.assertIn("rl-grammar-container", html)
        self.assertIn("#Russian", html)
        self.assertNotIn("rl-notice", html)

    def test_primary_definition_precedes_secondary(self):
        html = render_entry(sample_entry())
        self.assertLess(html.index("<li>book</li>"), html.index("instrumental plural"))

    def test_corrected_notice(self):
        html = render_entry(sample_entry(surface_word="кнгами"))
        self.assertIn("Showing result for <b>книгами</b>", html)

    def test_same_lemma_has_no_base_label(self):
        html = render_entry(sample_entry(actual_word="книга", surface_word="книга", secondary_definition_html=""))
        self.assertNotIn("rl-base", html)
        self.assertNotIn("rl-secondary", html)

    def test_grammar_hidden(self):
        html = render_entry(sample_entry(), show_grammar=False)
        self.assertNotIn("rl-grammar-container", html)
        self.assertNotIn("<table>", html)

    def test_no_tables_message(self):
        html = render_entry(sample_entry(grammar_tables_html=""))
        self.assertIn("No grammar tables found.", html)


class TestHtmlOverlayView(unittest.TestCase):

    def setUp(self):
        self.session = SessionContext(language="ru")
        self.view = HtmlOverlayView(self.session)

    def test_placed_below_anchor(self):
        self.view.show_loading("книга", Rect(10, 20, 30, 15))
        self.assertTrue(self.view.visible)
        self.assertEqual(self.view.rect, Rect(10, 43, 400, 500))

    def test_contains_with_padding(self):
        self.view.show_loading("книга", Rect(10, 20, 30, 15))
        self.assertFalse(self.view.contains(0, 43))
        self.assertTrue(self.view.contains(0, 43, padding=20))
        self.assertTrue(self.view.contains(200, 300))

    def test_hidden_view_contains_nothing(self):
        self.view.show_loading("книга", Rect(10, 20, 30, 15))
        self.view.hide()
        self.assertFalse(self.view.contains(200, 300))
        self.assertEqual(self.view.html, "")

    def test_follows_session_grammar_setting(self):
        self.session.show_grammar = False
        self.view.show_entry("книгами", sample_entry(), None)
        self.assertNotIn("rl-grammar-container", self.view.html)
        self.assertIsNone(self.view.rect)


if __name__ == '__main__':
    unittest.main()
