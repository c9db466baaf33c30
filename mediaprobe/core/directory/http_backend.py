# mediaprobe/core/directory/http_backend.py
"""
HTTP JSON transport for the media directory service.

URI mapping
-----------
A `content://<authority>/<path>` URI maps onto `<base_url>/<path>`:

    GET  <base_url>/local            → {"columns": [...], "rows": [...]}   (catalog)
    GET  <base_url>/<item>           → {"_display_name": ..., ...}          (single-row metadata)
    HEAD <base_url>/<item>/stream    → Content-Type of the media
    GET  <base_url>/<item>/stream    → media bytes
    GET  <base_url>/                 → capability probe ({"package": ..., "exported": ...})

Status handling
---------------
- 401/403 → PermissionDeniedError
- 404     → UnreachableError (path not exported)
- other ≥ 400 → DirectoryError
- 204 or a JSON `null` body → no result container (None)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import requests

from mediaprobe.schemas.models import DirectoryInfo, ProbePolicy, RowSet

from .base import content_path
from .errors import DirectoryError, PermissionDeniedError, UnreachableError

logger = logging.getLogger(__name__)

# -------------------------
# Internal HTTP helpers
# -------------------------


def _raise_for_directory_status(resp: requests.Response, url: str) -> None:
    code = resp.status_code
    if code in (401, 403):
        raise PermissionDeniedError(f"HTTP {code} for {url}")
    if code == 404:
        raise UnreachableError(f"HTTP 404 for {url} (not exported?)")
    if code >= 400:
        raise DirectoryError(f"HTTP {code} for {url}")


def _json_or_none(resp: requests.Response, url: str) -> Any:
    if resp.status_code == 204 or not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as e:
        raise DirectoryError(f"Invalid JSON from {url}: {e}") from e


class HttpDirectoryBackend:
    """DirectoryBackend + MediaAccess over a plain HTTP JSON endpoint."""

    def __init__(self, policy: ProbePolicy | None = None, *, session: requests.Session | None = None):
        self.policy = policy or ProbePolicy()
        self._session = session

    # ---- helpers ----

    def url_for(self, uri: str) -> str:
        path = content_path(uri)
        return f"{self.policy.base_url}/{path}" if path else f"{self.policy.base_url}/"

    def _headers(self, accept: str = "application/json") -> dict[str, str]:
        return {"User-Agent": self.policy.user_agent, "Accept": accept}

    def _request(self, method: str, url: str, *, accept: str = "application/json") -> requests.Response:
        send = self._session.request if self._session is not None else requests.request
        return send(method, url, headers=self._headers(accept), timeout=self.policy.timeout_s)

    # ---- DirectoryBackend ----

    def describe(self, authority: str) -> DirectoryInfo | None:
        url = f"{self.policy.base_url}/"
        try:
            resp = self._request("GET", url)
        except requests.ConnectionError:
            return None
        if resp.status_code == 404:
            return None
        payload = _json_or_none(resp, url) if resp.status_code < 400 else None
        package = None
        exported = resp.status_code < 400
        if isinstance(payload, Mapping):
            package = payload.get("package")
            exported = bool(payload.get("exported", exported))
        return DirectoryInfo(authority=authority, package_name=package, exported=exported)

    def query(self, uri: str) -> RowSet | None:
        url = self.url_for(uri)
        logger.debug("GET %s", url)
        resp = self._request("GET", url)
        _raise_for_directory_status(resp, url)
        payload = _json_or_none(resp, url)
        if payload is None:
            return None
        try:
            return RowSet.from_payload(payload)
        except ValueError as e:
            raise DirectoryError(f"Malformed row set from {url}: {e}") from e

    def resolve(self, uri: str) -> dict[str, str | None] | None:
        url = self.url_for(uri)
        resp = self._request("GET", url)
        _raise_for_directory_status(resp, url)
        payload = _json_or_none(resp, url)
        if payload is None:
            return None
        if isinstance(payload, Mapping) and "rows" not in payload:
            payload = [payload]
        if isinstance(payload, Sequence) and not payload:
            return None
        rows = RowSet.from_payload(payload)
        return dict(rows.rows[0]) if rows.rows else None

    def get_type(self, uri: str) -> str | None:
        url = self.stream_url(uri)
        resp = self._request("HEAD", url, accept="*/*")
        _raise_for_directory_status(resp, url)
        content_type = resp.headers.get("Content-Type")
        if not content_type:
            return None
        return content_type.split(";", 1)[0].strip() or None

    # ---- MediaAccess ----

    def stream_url(self, uri: str) -> str:
        return f"{self.url_for(uri).rstrip('/')}/stream"

    def open_bytes(self, uri: str) -> bytes:
        url = self.stream_url(uri)
        resp = self._request("GET", url, accept="*/*")
        _raise_for_directory_status(resp, url)
        return resp.content


__all__ = ["HttpDirectoryBackend"]
