# mediaprobe/core/directory/base.py
"""
Cross-layer contracts for the media directory service.

This module defines:
- The fixed identity of the directory service (`DIRECTORY_AUTHORITY`,
  `CATALOG_URI`) and the well-known column names the pipeline relies on.
- `DirectoryBackend` Protocol: how any concrete transport (HTTP JSON endpoint,
  gRPC service, in-memory mock) exposes catalog queries and single-item
  metadata lookups.
- `MediaAccess` Protocol: how a backend hands out the bytes or a streamable URL
  behind an indirect `content://` locator.
- `describe_backend`: optional, duck-typed capability probe.

Concrete implementations live in `http_backend.py` and `mock_backend.py` and
can be swapped without touching callers.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from urllib.parse import urlparse

from mediaprobe.schemas.models import DirectoryInfo, RowSet

DIRECTORY_AUTHORITY = "com.neilturner.aerialviews.media"
CONTENT_SCHEME = "content://"
CATALOG_URI = f"{CONTENT_SCHEME}{DIRECTORY_AUTHORITY}/local"

# Column names understood by the extractor / resolver
URL_COLUMN = "url"
DATA_COLUMN = "_data"
MIME_TYPE_COLUMN = "mime_type"
DISPLAY_NAME_COLUMN = "_display_name"


@runtime_checkable
class DirectoryBackend(Protocol):
    """
    Protocol for directory transports.

    Implementations may raise freely; `DirectoryClient` and `MetadataResolver`
    own the fault boundaries and turn failures into data.
    """

    def query(self, uri: str) -> RowSet | None:
        """
        Enumerate rows behind `uri`.

        Returns:
            A RowSet (possibly with zero rows), or None when the service answered
            without any result container.
        """
        ...

    def resolve(self, uri: str) -> dict[str, str | None] | None:
        """Return the single metadata row for an indirect locator, or None if there is none."""
        ...

    def get_type(self, uri: str) -> str | None:
        """Return the content type the service reports for `uri`, if any."""
        ...

    # NOTE: Backends may optionally implement a capability probe:
    # def describe(self, authority: str) -> DirectoryInfo | None:
    #     ...


@runtime_checkable
class MediaAccess(Protocol):
    def open_bytes(self, uri: str) -> bytes: ...

    def stream_url(self, uri: str) -> str: ...


def is_indirect(locator: str | None) -> bool:
    """True for opaque references that must be dereferenced through the directory service."""
    return bool(locator) and str(locator).startswith(CONTENT_SCHEME)


def content_path(uri: str) -> str:
    """Path component of a content:// URI, without the leading slash."""
    return urlparse(uri).path.lstrip("/")


def has_probe(backend: object) -> bool:
    return callable(getattr(backend, "describe", None))


def describe_backend(backend: DirectoryBackend, authority: str = DIRECTORY_AUTHORITY) -> DirectoryInfo | None:
    """
    Run the backend's capability probe if it exposes one.

    Returns None both when the backend has no probe and when the probe reports
    that nothing is registered under `authority`.
    """
    describe = getattr(backend, "describe", None)
    if not callable(describe):
        return None
    info = describe(authority)
    if info is not None and not isinstance(info, DirectoryInfo):
        raise TypeError(f"describe() returned {type(info).__name__}, expected DirectoryInfo")
    return info


__all__ = [
    "DIRECTORY_AUTHORITY",
    "CONTENT_SCHEME",
    "CATALOG_URI",
    "URL_COLUMN",
    "DATA_COLUMN",
    "MIME_TYPE_COLUMN",
    "DISPLAY_NAME_COLUMN",
    "DirectoryBackend",
    "MediaAccess",
    "is_indirect",
    "content_path",
    "has_probe",
    "describe_backend",
]
