# mediaprobe/core/media/classifier.py
from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urlparse

from mediaprobe.schemas.models import MediaKind

IMAGE_EXTS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})
VIDEO_EXTS = frozenset({"mp4", "mkv", "avi", "mov", "flv", "wmv", "webm"})


def _kind_from_content_type(content_type: str | None) -> MediaKind | None:
    if not content_type:
        return None
    ct = content_type.split(";", 1)[0].strip().lower()
    if ct.startswith("image/"):
        return MediaKind.image
    if ct.startswith("video/"):
        return MediaKind.video
    return None


def _extension(locator: str) -> str:
    path = urlparse(locator).path if "://" in locator else locator.split("?", 1)[0].split("#", 1)[0]
    return PurePosixPath(path).suffix.lower().lstrip(".")


def classify(locator: str | None, content_type_hint: str | None = None) -> MediaKind:
    """
    Coarse media kind for a locator.

    A recognizable image/* or video/* hint wins; otherwise the locator's file
    extension decides; anything else is `unknown`. Pure and total.
    """
    kind = _kind_from_content_type(content_type_hint)
    if kind is not None:
        return kind
    try:
        ext = _extension(locator or "")
    except ValueError:
        return MediaKind.unknown
    if ext in IMAGE_EXTS:
        return MediaKind.image
    if ext in VIDEO_EXTS:
        return MediaKind.video
    return MediaKind.unknown


__all__ = ["IMAGE_EXTS", "VIDEO_EXTS", "classify"]
