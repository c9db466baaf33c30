# mediaprobe/core/media/resolver.py
from __future__ import annotations

import logging

from mediaprobe.core.directory.base import DISPLAY_NAME_COLUMN, DirectoryBackend, is_indirect
from mediaprobe.schemas.models import ResolvedMetadata

logger = logging.getLogger(__name__)


class MetadataResolver:
    """
    Secondary lookup for indirect (content://) locators.

    Two independent steps, each with its own fault boundary:
      1) content type from the service, only when the row had no mime_type
         cell at all (an empty hint still skips the lookup)
      2) display name from the single-row metadata query
    A failing step leaves its field absent; `resolve` itself never raises.
    """

    def __init__(self, backend: DirectoryBackend):
        self.backend = backend

    def resolve(self, locator: str, content_type_hint: str | None = None) -> ResolvedMetadata:
        if not is_indirect(locator):
            return ResolvedMetadata()

        content_type: str | None = None
        if content_type_hint is None:
            try:
                content_type = self.backend.get_type(locator) or None
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed to resolve type for %s: %s", locator, e)

        display_name: str | None = None
        try:
            row = self.backend.resolve(locator)
            if row:
                display_name = row.get(DISPLAY_NAME_COLUMN) or None
        except Exception as e:  # noqa: BLE001
            logger.warning("Failed to resolve filename for %s: %s", locator, e)

        return ResolvedMetadata(display_name=display_name, content_type=content_type)


__all__ = ["MetadataResolver"]
