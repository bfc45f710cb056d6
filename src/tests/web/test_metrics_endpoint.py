"""Tests for the Prometheus metrics endpoint."""

import os
import shutil
import tempfile
import unittest

from tests.pages import KNIGA, FakeSource
from web.server import create_app


class TestMetricsEndpoint(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.app = create_app(
            testing=True,
            source=FakeSource({"книга": KNIGA}),
            store_path=os.path.join(self.temp_dir, "store.json"),
        )
        self.client = self.app.test_client()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def lookup(self, **params):
        return self.client.get('/api/lookup', query_string=params)

    def test_exposes_prometheus_text(self):
        response = self.client.get('/metrics')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.content_type.startswith('text/plain'))

        body = response.get_data(as_text=True)
        self.assertIn('wordlens_uptime_seconds', body)
        self.assertIn('wordlens_memory_usage_percent', body)

    def test_lookups_are_counted(self):
        self.lookup(word='книга', lang='ru')
        self.lookup(word='zzzz', lang='es')

        body = self.client.get('/metrics').get_data(as_text=True)
        self.assertIn('wordlens_lookups_total{outcome="found"}', body)
        self.assertIn('wordlens_lookups_total{outcome="not_found"}', body)
        self.assertIn('wordlens_cascade_hits_total{step="exact"}', body)
        self.assertIn('endpoint="lookup.lookup_word"', body)
        self.assertIn('wordlens_cache_entries 1.0', body)


if __name__ == '__main__':
    unittest.main()
