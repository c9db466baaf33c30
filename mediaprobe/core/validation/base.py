# mediaprobe/core/validation/base.py
"""
Validator capability interfaces.

Purpose
-------
Keep the validators independent of the concrete decode/playback libraries:
  - `ImageDecoder` fully decodes one image (default: Pillow).
  - `StreamOpener` hands out a `StreamSession` that reports readiness through
    callbacks (default: OpenCV's FFmpeg-backed VideoCapture).

Invariants & Guardrails
-----------------------
- A session calls exactly one of `on_ready` / `on_error` per `prepare`; callers
  must still tolerate a second callback and ignore it.
- `release()` is idempotent and safe to call from any thread.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class ValidationFailedError(RuntimeError):
    """Decode/open fault for a single validation track."""


@dataclass(frozen=True)
class DecodedImage:
    width: int
    height: int
    mode: str
    format: str | None = None


@runtime_checkable
class ImageDecoder(Protocol):
    def decode(self, locator: str) -> DecodedImage: ...


@runtime_checkable
class StreamSession(Protocol):
    def prepare(self, locator: str, *, on_ready: Callable[[], None], on_error: Callable[[str], None]) -> None: ...

    def release(self) -> None: ...


@runtime_checkable
class StreamOpener(Protocol):
    def open(self) -> StreamSession: ...


__all__ = [
    "ValidationFailedError",
    "DecodedImage",
    "ImageDecoder",
    "StreamSession",
    "StreamOpener",
]
