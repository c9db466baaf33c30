# mediaprobe/inputs/settings.py
"""
Settings loader for the probe.

Goals
-----
- File-first settings validated by Pydantic (`ProbePolicy`).
- Minimal environment-variable overrides for CI/CLI convenience.
- The directory identity (authority + /local) is NOT a setting.

Supported JSON shape
--------------------
    {
      "base_url": "http://127.0.0.1:8765",
      "timeout_s": 15,
      "user_agent": "MediaProbe/0.1",
      "decode_timeout_s": 20,
      "ready_timeout_s": 20,
      "max_image_bytes": 67108864
    }

Environment overrides (optional)
--------------------------------
- MEDIAPROBE_BASE_URL       -> ProbePolicy.base_url
- MEDIAPROBE_TIMEOUT        -> ProbePolicy.timeout_s (float)
- MEDIAPROBE_DECODE_TIMEOUT -> ProbePolicy.decode_timeout_s (float)
- MEDIAPROBE_READY_TIMEOUT  -> ProbePolicy.ready_timeout_s (float)
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mediaprobe.schemas.models import ProbePolicy

_ENV_OVERRIDES: dict[str, str] = {
    "MEDIAPROBE_BASE_URL": "base_url",
    "MEDIAPROBE_TIMEOUT": "timeout_s",
    "MEDIAPROBE_DECODE_TIMEOUT": "decode_timeout_s",
    "MEDIAPROBE_READY_TIMEOUT": "ready_timeout_s",
}


class SettingsError(ValueError):
    """Settings file or override could not be turned into a valid ProbePolicy."""


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for var, field in _ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is not None and raw.strip():
            out[field] = raw.strip()
    return out


def load_policy(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ProbePolicy:
    """
    Build a ProbePolicy from (in increasing precedence): defaults, JSON file,
    environment, explicit keyword overrides (None values are ignored).
    """
    data: dict[str, Any] = {}

    if path is not None:
        p = Path(path)
        try:
            loaded = json.loads(p.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise SettingsError(f"Settings file not found: {p}") from e
        except json.JSONDecodeError as e:
            raise SettingsError(f"Settings file {p} is not valid JSON: {e}") from e
        if not isinstance(loaded, dict):
            raise SettingsError(f"Settings file {p} must contain a JSON object")
        data.update(loaded)

    data.update(_env_overrides(os.environ if environ is None else environ))
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ProbePolicy(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid probe settings: {e}") from e


__all__ = ["SettingsError", "load_policy"]
