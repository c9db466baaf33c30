# tests/utils.py
"""
Single source of truth for test data, factories, and fakes.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

import io
import random
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from PIL import Image

from mediaprobe.core.directory.base import CATALOG_URI, DIRECTORY_AUTHORITY
from mediaprobe.core.directory.client import DirectoryClient
from mediaprobe.core.directory.mock_backend import MockDirectoryBackend
from mediaprobe.core.media.resolver import MetadataResolver
from mediaprobe.core.media.sampler import Sampler
from mediaprobe.core.validation.base import DecodedImage
from mediaprobe.core.validation.image import ImageValidator
from mediaprobe.core.validation.video import VideoValidator
from mediaprobe.orchestrators.probe_orchestrator import ProbeOrchestrator
from mediaprobe.schemas.models import DirectoryInfo, ProbeState, RowSet

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_COLUMNS: tuple[str, ...] = ("_id", "url", "_data", "mime_type")
ITEM_PREFIX = f"content://{DIRECTORY_AUTHORITY}/item"

__all__ = [
    "CATALOG_URI",
    "DEFAULT_COLUMNS",
    "ITEM_PREFIX",
    "png_bytes",
    "make_row",
    "make_row_set",
    "make_backend",
    "FakeDecoder",
    "FakeSession",
    "FakeOpener",
    "make_orchestrator",
    "StateRecorder",
]


# -----------------------------
# Media bytes
# -----------------------------


def png_bytes(w: int = 64, h: int = 64) -> bytes:
    """Return PNG bytes of a small gradient image."""
    im = Image.new("RGB", (w, h))
    px = im.load()
    for y in range(h):
        for x in range(w):
            px[x, y] = (x * 255 // max(1, w - 1), y * 255 // max(1, h - 1), 128)
    buf = io.BytesIO()
    im.save(buf, format="PNG", compress_level=0)
    return buf.getvalue()


# -----------------------------
# Rows / catalogs
# -----------------------------


def make_row(
    n: int,
    *,
    url: str | None = None,
    data: str | None = None,
    mime_type: str | None = None,
) -> dict[str, str | None]:
    return {
        "_id": str(n),
        "url": url if url is not None else f"{ITEM_PREFIX}/{n}",
        "_data": data,
        "mime_type": mime_type,
    }


def make_row_set(rows: Iterable[Mapping[str, Any]] = (), columns: Iterable[str] | None = None) -> RowSet:
    rows = [dict(r) for r in rows]
    if columns is None:
        cols: list[str] = []
        for r in rows:
            for k in r:
                if k not in cols:
                    cols.append(k)
        columns = cols or DEFAULT_COLUMNS
    return RowSet(columns=tuple(columns), rows=tuple(rows))


def make_backend(catalog: RowSet | None = None, **kwargs: Any) -> MockDirectoryBackend:
    kwargs.setdefault("info", DirectoryInfo(authority=DIRECTORY_AUTHORITY, package_name="test.pkg", exported=True))
    return MockDirectoryBackend(catalog, **kwargs)


# -----------------------------
# Validator fakes
# -----------------------------


class FakeDecoder:
    """ImageDecoder that records calls and either returns an image or raises."""

    def __init__(self, *, error: Exception | None = None, result: DecodedImage | None = None, delay_s: float = 0.0):
        self.error = error
        self.result = result or DecodedImage(width=8, height=8, mode="RGB", format="PNG")
        self.delay_s = delay_s
        self.calls: list[str] = []

    def decode(self, locator: str) -> DecodedImage:
        self.calls.append(locator)
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return self.result


class FakeSession:
    """
    StreamSession driven by a script.

    `script(on_ready, on_error)` runs synchronously inside `prepare`; leave it
    as None to never call back (timeout path).
    """

    def __init__(self, script: Callable[[Callable[[], None], Callable[[str], None]], None] | None = None):
        self.script = script
        self.prepared: list[str] = []
        self.release_count = 0

    def prepare(self, locator: str, *, on_ready: Callable[[], None], on_error: Callable[[str], None]) -> None:
        self.prepared.append(locator)
        if self.script is not None:
            self.script(on_ready, on_error)

    def release(self) -> None:
        self.release_count += 1


class FakeOpener:
    def __init__(self, session: FakeSession | None = None, *, error: Exception | None = None):
        self.session = session or FakeSession(lambda ready, _err: ready())
        self.error = error
        self.opened = 0

    def open(self) -> FakeSession:
        self.opened += 1
        if self.error is not None:
            raise self.error
        return self.session


# -----------------------------
# Orchestrator wiring
# -----------------------------


class StateRecorder:
    """on_change listener that keeps every published ProbeState."""

    def __init__(self) -> None:
        self.states: list[ProbeState] = []

    def __call__(self, state: ProbeState) -> None:
        self.states.append(state)

    def image_states(self) -> list[str]:
        return _dedupe(s.image_status.state.value for s in self.states)

    def video_states(self) -> list[str]:
        return _dedupe(s.video_status.state.value for s in self.states)


def _dedupe(values: Iterable[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        if not out or out[-1] != v:
            out.append(v)
    return out


def make_orchestrator(
    backend: MockDirectoryBackend,
    *,
    decoder: FakeDecoder | None = None,
    opener: FakeOpener | None = None,
    seed: int = 7,
    recorder: StateRecorder | None = None,
    timeout_s: float = 2.0,
) -> ProbeOrchestrator:
    return ProbeOrchestrator(
        DirectoryClient(backend),
        MetadataResolver(backend),
        ImageValidator(decoder or FakeDecoder(), timeout_s=timeout_s),
        VideoValidator(opener or FakeOpener(), timeout_s=timeout_s),
        sampler=Sampler(random.Random(seed)),
        on_change=recorder,
    )
