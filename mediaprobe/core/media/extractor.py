# mediaprobe/core/media/extractor.py
"""
Column heuristics for directory rows with unpredictable schemas.

Order (deterministic):
  a) `url`        → locator (an empty string counts as found)
  b) `_data`      → local path hint
  c) `mime_type`  → content type hint
  d) no locator from (a) → first cell, in declared column order, whose value
     starts with "http" or "content"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from mediaprobe.core.directory.base import DATA_COLUMN, MIME_TYPE_COLUMN, URL_COLUMN
from mediaprobe.schemas.models import SampledEntry

logger = logging.getLogger(__name__)

_LOCATOR_PREFIXES = ("http", "content")

MALFORMED_ROW_WARNING = "malformed_row: no locator-like column"


def _cell(row: Mapping[str, str | None], column: str) -> str | None:
    # a present but empty cell still counts as found
    return row.get(column)


def scan_for_locator(row: Mapping[str, str | None], columns: Sequence[str]) -> str | None:
    for column in columns:
        value = row.get(column)
        if value is not None and value.startswith(_LOCATOR_PREFIXES):
            return value
    return None


def extract_entry(row: Mapping[str, str | None], columns: Sequence[str] | None = None) -> SampledEntry:
    """Apply the fallback heuristics to one row. `columns` defaults to the row's own key order."""
    cols = list(columns) if columns is not None else list(row.keys())

    locator = _cell(row, URL_COLUMN)
    local_path = _cell(row, DATA_COLUMN)
    mime_type = _cell(row, MIME_TYPE_COLUMN)

    if locator is None:
        locator = scan_for_locator(row, cols)

    if locator is None:
        logger.warning("No locator-like column in sampled row (columns: %s)", ", ".join(cols))

    return SampledEntry(locator=locator or "", local_path_hint=local_path, content_type_hint=mime_type)


__all__ = ["MALFORMED_ROW_WARNING", "extract_entry", "scan_for_locator"]
