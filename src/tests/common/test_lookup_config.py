"""Tests for lookup configuration loading."""

import os
import shutil
import tempfile
import unittest

import tomli_w

from common.config.lookup_config import (
    LookupConfig,
    OverlaySettings,
    PipelineSettings,
    SourceSettings,
    load_lookup_config,
    DEFAULT_CONFIG_PATH,
)


class TestLookupConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "lookup.toml")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write(self, config):
        with open(self.config_path, "wb") as f:
            tomli_w.dump(config, f)

    def test_defaults(self):
        config = LookupConfig()
        self.assertEqual(config.source.timeout_seconds, 6.0)
        self.assertEqual(config.source.suggestion_limit, 5)
        self.assertEqual(config.source.max_suggestions_tried, 3)
        self.assertEqual(config.pipeline.max_depth, 2)
        self.assertEqual(config.overlay.hover_delay, 0.3)
        self.assertEqual(config.overlay.switch_delay, 0.2)
        self.assertEqual(config.overlay.hide_delay, 0.6)
        self.assertEqual(config.overlay.overlay_padding, 20)
        self.assertEqual(config.overlay.min_selection, 2)
        self.assertEqual(config.overlay.max_selection, 50)

    def test_missing_file_gives_defaults(self):
        config = load_lookup_config(os.path.join(self.temp_dir, "absent.toml"))
        self.assertEqual(config, LookupConfig())

    def test_partial_file_keeps_other_defaults(self):
        self.write({"pipeline": {"max_depth": 4}, "overlay": {"hide_delay": 1.0}})

        config = load_lookup_config(self.config_path)

        self.assertEqual(config.pipeline.max_depth, 4)
        self.assertEqual(config.overlay.hide_delay, 1.0)
        self.assertEqual(config.overlay.hover_delay, 0.3)
        self.assertEqual(config.source, SourceSettings())

    def test_unknown_keys_ignored(self):
        self.write({"source": {"timeout_seconds": 3.0, "retries": 7}})

        config = load_lookup_config(self.config_path)

        self.assertEqual(config.source.timeout_seconds, 3.0)
        self.assertFalse(hasattr(config.source, "retries"))

    def test_invalid_depth_rejected(self):
        self.write({"pipeline": {"max_depth": 0}})
        with self.assertRaises(ValueError):
            load_lookup_config(self.config_path)

    def test_invalid_shared_cache_size_rejected(self):
        self.write({"pipeline": {"shared_cache_entries": 0}})
        with self.assertRaises(ValueError):
            load_lookup_config(self.config_path)

    def test_invalid_timeout_rejected(self):
        self.write({"source": {"timeout_seconds": 0}})
        with self.assertRaises(ValueError):
            load_lookup_config(self.config_path)

    def test_shipped_config_matches_defaults(self):
        config = load_lookup_config(DEFAULT_CONFIG_PATH)
        self.assertEqual(config.pipeline, PipelineSettings())
        self.assertEqual(config.overlay, OverlaySettings())


if __name__ == '__main__':
    unittest.main()
