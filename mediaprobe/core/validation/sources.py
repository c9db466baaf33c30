# mediaprobe/core/validation/sources.py
from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

import requests

from mediaprobe.core.directory.base import MediaAccess, is_indirect
from mediaprobe.schemas.models import ProbePolicy

from .base import ValidationFailedError

_STREAM_CHUNK = 1024 * 1024  # 1 MiB


def _is_http(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


def _local_path(locator: str) -> Path:
    if locator.startswith("file://"):
        return Path(unquote(urlparse(locator).path))
    return Path(locator)


class LocatorSource:
    """
    Turns a locator into something a decoder can consume.

      - http(s)://  → fetched with requests / passed through as a stream URL
      - content://  → dereferenced through the directory backend (MediaAccess)
      - file://, bare paths → local filesystem
    """

    def __init__(self, media: MediaAccess | None = None, policy: ProbePolicy | None = None):
        self.media = media
        self.policy = policy or ProbePolicy()

    def _require_media(self, locator: str) -> MediaAccess:
        if self.media is None:
            raise ValidationFailedError(f"No directory backend available to open {locator}")
        return self.media

    def read_bytes(self, locator: str) -> bytes:
        if not locator:
            raise ValidationFailedError("Empty locator")
        limit = self.policy.max_image_bytes

        if is_indirect(locator):
            data = self._require_media(locator).open_bytes(locator)
        elif _is_http(locator):
            data = self._http_get(locator, limit)
        else:
            path = _local_path(locator)
            if path.stat().st_size > limit:
                raise ValidationFailedError(f"{path} exceeds {limit} bytes")
            data = path.read_bytes()

        if len(data) > limit:
            raise ValidationFailedError(f"Payload for {locator} exceeds {limit} bytes")
        return data

    def stream_url(self, locator: str) -> str:
        if not locator:
            raise ValidationFailedError("Empty locator")
        if is_indirect(locator):
            return self._require_media(locator).stream_url(locator)
        if _is_http(locator):
            return locator
        return str(_local_path(locator))

    def _http_get(self, url: str, limit: int) -> bytes:
        headers = {"User-Agent": self.policy.user_agent, "Accept": "*/*"}
        resp = requests.get(url, headers=headers, timeout=self.policy.timeout_s, stream=True)
        try:
            resp.raise_for_status()
            buf = bytearray()
            for chunk in resp.iter_content(chunk_size=_STREAM_CHUNK):
                if chunk:
                    buf.extend(chunk)
                if len(buf) > limit:
                    raise ValidationFailedError(f"Payload for {url} exceeds {limit} bytes")
            return bytes(buf)
        finally:
            resp.close()


__all__ = ["LocatorSource"]
