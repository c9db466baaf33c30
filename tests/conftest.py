# tests/conftest.py
from __future__ import annotations

import os
import random

import pytest

from tests.utils import (
    StateRecorder,
    make_backend,
    make_row,
    make_row_set,
    png_bytes as _make_png,
)


# -------- Global deterministic seed --------
@pytest.fixture(autouse=True, scope="session")
def _seed_session():
    random.seed(1337)
    os.environ.setdefault("PYTHONHASHSEED", "0")
    yield


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    """Keep developer MEDIAPROBE_* variables from leaking into tests."""
    for var in list(os.environ):
        if var.startswith("MEDIAPROBE_"):
            monkeypatch.delenv(var, raising=False)


# -------- Domain fixtures --------
@pytest.fixture
def png_bytes():
    """
    Fixture that returns a callable to generate PNG bytes with low compression.
    Usage:
        data = png_bytes(64, 64)
    """
    return _make_png


@pytest.fixture
def sample_catalog():
    """Five-row catalog of content:// items with mixed hints."""
    return make_row_set(
        [
            make_row(1, mime_type="image/png"),
            make_row(2, mime_type="video/mp4"),
            make_row(3, url="https://cdn.example.com/clips/ocean.MP4"),
            make_row(4, url="https://cdn.example.com/stills/peak.jpg", data="/sdcard/peak.jpg"),
            make_row(5, mime_type="image/jpeg"),
        ]
    )


@pytest.fixture
def backend_factory():
    """Callable factory for MockDirectoryBackend with a registered provider."""

    def _factory(catalog=None, **kwargs):
        return make_backend(catalog, **kwargs)

    return _factory


@pytest.fixture
def recorder():
    return StateRecorder()


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
