"""Tests for the settings and saved-words store."""

import os
import shutil
import tempfile
import unittest

from common.storage import (
    LIST_SAVED_WORDS,
    SETTING_LANGUAGE,
    SETTING_SHOW_GRAMMAR,
    JsonStore,
    SaveOutcome,
)


def same_word(a, b):
    return a["word"] == b["word"]


class TestJsonStore(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "store.json")
        self.store = JsonStore(self.path)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_empty_store_defaults(self):
        self.assertEqual(self.store.load_settings(), {})
        self.assertEqual(self.store.load_setting(SETTING_LANGUAGE, "ru"), "ru")
        self.assertEqual(self.store.load_list(LIST_SAVED_WORDS), [])
        self.assertFalse(os.path.exists(self.path))

    def test_settings_persist(self):
        self.store.save_setting(SETTING_LANGUAGE, "es")
        self.store.save_setting(SETTING_SHOW_GRAMMAR, False)

        reopened = JsonStore(self.path)
        self.assertEqual(reopened.load_settings(), {SETTING_LANGUAGE: "es", SETTING_SHOW_GRAMMAR: False})

    def test_append_if_absent(self):
        first = self.store.append_if_absent(LIST_SAVED_WORDS, {"word": "книгами"}, same_word)
        second = self.store.append_if_absent(LIST_SAVED_WORDS, {"word": "книгами"}, same_word)
        third = self.store.append_if_absent(LIST_SAVED_WORDS, {"word": "книга"}, same_word)

        self.assertIs(first, SaveOutcome.ACCEPTED)
        self.assertIs(second, SaveOutcome.DUPLICATE)
        self.assertIs(third, SaveOutcome.ACCEPTED)
        self.assertEqual([item["word"] for item in self.store.load_list(LIST_SAVED_WORDS)], ["книгами", "книга"])

    def test_load_list_returns_copy(self):
        self.store.append_if_absent(LIST_SAVED_WORDS, {"word": "a"}, same_word)
        items = self.store.load_list(LIST_SAVED_WORDS)
        items.append({"word": "b"})
        self.assertEqual(len(self.store.load_list(LIST_SAVED_WORDS)), 1)

    def test_corrupt_store_recovers_from_backup(self):
        self.store.save_setting(SETTING_LANGUAGE, "de")
        self.store.save_setting(SETTING_LANGUAGE, "fr")
        with open(self.path, "w") as f:
            f.write("{broken")

        self.assertEqual(self.store.load_setting(SETTING_LANGUAGE), "de")

    def test_corrupt_store_without_backup_reads_empty(self):
        with open(self.path, "w") as f:
            f.write("{broken")

        self.assertEqual(self.store.load_settings(), {})


if __name__ == '__main__':
    unittest.main()
