"""Pytest configuration: repository-relative imports, headless plotting, no network."""

import logging
import os
import sys

import matplotlib
import pytest
import requests

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

matplotlib.use("Agg")


@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail any PubChem request a test did not stub out itself."""

    def refuse(url, *args, **kwargs):
        raise requests.ConnectionError(f"network disabled in tests: {url}")

    monkeypatch.setattr(requests, "get", refuse)


@pytest.fixture(autouse=True)
def _release_warnings_capture():
    """The CLI routes warnings into logging; undo that after each test."""
    yield
    logging.captureWarnings(False)
