# mediaprobe/core/directory/mock_backend.py
"""
Mock Directory Backend

Purpose
-------
Provide a deterministic, zero-network backend so the whole probe pipeline can
run in tests and local demos:
  - catalog queries return a fixed RowSet (or None, or raise a chosen fault),
  - indirect locators resolve from in-memory metadata/type tables,
  - media bytes are served from an in-memory blob table; stream URLs point at
    a temp-file copy of the blob so real decoders can open them (`close()`
    removes the copies).

Usage
-----
from mediaprobe.core.directory.mock_backend import MockDirectoryBackend
backend = MockDirectoryBackend(
    catalog=RowSet(columns=("url",), rows=({"url": "content://x/1"},)),
    metadata={"content://x/1": {"_display_name": "clip.mp4"}},
)
"""

from __future__ import annotations

import mimetypes
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path

from mediaprobe.schemas.models import DirectoryInfo, RowSet

from .base import CATALOG_URI


class MockDirectoryBackend:
    """In-memory DirectoryBackend + MediaAccess."""

    def __init__(
        self,
        catalog: RowSet | None = None,
        *,
        metadata: Mapping[str, Mapping[str, str | None]] | None = None,
        types: Mapping[str, str] | None = None,
        blobs: Mapping[str, bytes] | None = None,
        info: DirectoryInfo | None = None,
        query_error: Exception | None = None,
        resolve_error: Exception | None = None,
        type_error: Exception | None = None,
    ):
        self.catalog = catalog
        self.metadata = dict(metadata or {})
        self.types = dict(types or {})
        self.blobs = dict(blobs or {})
        self.info = info
        self.query_error = query_error
        self.resolve_error = resolve_error
        self.type_error = type_error
        self.calls: list[tuple[str, str]] = []
        self._spill_dir: Path | None = None
        self._spilled: dict[str, Path] = {}

    def describe(self, authority: str) -> DirectoryInfo | None:
        self.calls.append(("describe", authority))
        return self.info

    def query(self, uri: str) -> RowSet | None:
        self.calls.append(("query", uri))
        if self.query_error is not None:
            raise self.query_error
        if uri != CATALOG_URI:
            return None
        return self.catalog

    def resolve(self, uri: str) -> dict[str, str | None] | None:
        self.calls.append(("resolve", uri))
        if self.resolve_error is not None:
            raise self.resolve_error
        row = self.metadata.get(uri)
        return dict(row) if row is not None else None

    def get_type(self, uri: str) -> str | None:
        self.calls.append(("get_type", uri))
        if self.type_error is not None:
            raise self.type_error
        return self.types.get(uri)

    def open_bytes(self, uri: str) -> bytes:
        self.calls.append(("open_bytes", uri))
        try:
            return self.blobs[uri]
        except KeyError:
            raise FileNotFoundError(f"No media registered for {uri}") from None

    def stream_url(self, uri: str) -> str:
        self.calls.append(("stream_url", uri))
        if uri not in self.blobs:
            raise FileNotFoundError(f"No media registered for {uri}")
        path = self._spilled.get(uri)
        if path is None:
            if self._spill_dir is None:
                self._spill_dir = Path(tempfile.mkdtemp(prefix="mediaprobe-mock-"))
            content_type = self.types.get(uri)
            suffix = (mimetypes.guess_extension(content_type) if content_type else None) or ""
            path = self._spill_dir / f"blob{len(self._spilled)}{suffix}"
            path.write_bytes(self.blobs[uri])
            self._spilled[uri] = path
        return str(path)

    def close(self) -> None:
        if self._spill_dir is not None:
            shutil.rmtree(self._spill_dir, ignore_errors=True)
        self._spill_dir = None
        self._spilled.clear()


__all__ = ["MockDirectoryBackend"]
