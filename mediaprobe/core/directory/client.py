# mediaprobe/core/directory/client.py
from __future__ import annotations

import logging

from mediaprobe.schemas.models import QueryError, RowSet

from .base import CATALOG_URI, DIRECTORY_AUTHORITY, DirectoryBackend, describe_backend, has_probe
from .errors import EMPTY_RESPONSE_MESSAGE, EmptyResponseError, directory_error_guard, to_query_error

logger = logging.getLogger(__name__)


class DirectoryClient:
    """
    Issues the catalog query against a DirectoryBackend.

    `query()` never raises: every fault comes back as a QueryError so the
    orchestrator always reaches a terminal state.
    """

    def __init__(self, backend: DirectoryBackend, *, uri: str = CATALOG_URI, authority: str = DIRECTORY_AUTHORITY):
        self.backend = backend
        self.uri = uri
        self.authority = authority

    def probe(self) -> None:
        """Diagnostic-only capability probe. Its outcome never affects the query."""
        if not has_probe(self.backend):
            logger.debug("Backend %s has no capability probe", type(self.backend).__name__)
            return
        try:
            info = describe_backend(self.backend, self.authority)
        except Exception as e:  # noqa: BLE001
            logger.warning("Could not check provider info: %s", e)
            return
        if info is not None:
            logger.debug("Provider found: %s, exported: %s", info.package_name, info.exported)
        else:
            logger.warning("Provider NOT found - directory service may not be installed")

    def query(self) -> RowSet | QueryError:
        logger.debug("query: starting")
        self.probe()

        logger.debug("query: querying URI %s", self.uri)
        try:
            with directory_error_guard():
                rows = self.backend.query(self.uri)
                if rows is None:
                    raise EmptyResponseError(EMPTY_RESPONSE_MESSAGE)
        except Exception as e:  # noqa: BLE001
            outcome = to_query_error(e)
            if outcome.reason == "empty_response":
                logger.error("query: null result container from %s", self.uri)
            else:
                logger.error("query: %s", outcome.message, exc_info=e)
            return outcome

        logger.debug("query: %d rows, columns=%s", rows.count, ", ".join(rows.columns))
        return rows


__all__ = ["DirectoryClient"]
