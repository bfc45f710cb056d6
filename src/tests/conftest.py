"""Pytest configuration for all tests."""

import tempfile

import constants

# Stores written during tests must never land in the real data directory
constants.init_testing(test_data_dir=tempfile.mkdtemp(prefix="wordlens_test_"))
