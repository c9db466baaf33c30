# mediaprobe/core/directory/errors.py
"""
Typed errors + utilities for talking to the media directory service.

Exports
-------
- DirectoryError, UnreachableError, PermissionDeniedError, EmptyResponseError
- DIRECTORY_ERRORS
- classify_directory_error(exc)
- directory_error_guard()
- to_query_error(exc)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import requests

from mediaprobe.schemas.models import QueryError

# =========================
# Exception types
# =========================


class DirectoryError(RuntimeError):
    """Base class for directory-service failures."""


class UnreachableError(DirectoryError):
    """The directory service is absent, not exported, or the transport failed."""


class PermissionDeniedError(DirectoryError):
    """The directory service refused access to the requested URI."""


class EmptyResponseError(DirectoryError):
    """The service answered without any result container (distinct from zero rows)."""


# Selector tuple for grouped exception handling
DIRECTORY_ERRORS = (
    UnreachableError,
    PermissionDeniedError,
    EmptyResponseError,
)

EMPTY_RESPONSE_MESSAGE = "Directory service returned no result container. Check that it is exported and handles the /local path."

# =========================
# Classification helpers
# =========================


def classify_directory_error(exc: BaseException) -> DirectoryError:
    """
    Map arbitrary exceptions raised by a backend to a typed DirectoryError.

    Heuristics:
      - Any DirectoryError subclass → passed through
      - PermissionError / HTTP 401, 403 → PermissionDeniedError
      - HTTP 404 → UnreachableError (path not exported); other HTTP errors → DirectoryError
      - requests connection/timeout errors, OSError → UnreachableError
      - Fallback → DirectoryError
    """
    if isinstance(exc, DirectoryError):
        return exc

    if isinstance(exc, PermissionError):
        return PermissionDeniedError(str(exc) or type(exc).__name__)

    # HTTPError subclasses OSError via RequestException; settle it first
    if isinstance(exc, requests.HTTPError):
        status = exc.response.status_code if exc.response is not None else None
        if status in (401, 403):
            return PermissionDeniedError(str(exc))
        if status == 404:
            return UnreachableError(str(exc))
        return DirectoryError(str(exc))

    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return UnreachableError(str(exc))

    if isinstance(exc, OSError):
        return UnreachableError(f"{type(exc).__name__}: {exc}")

    return DirectoryError(str(exc) or type(exc).__name__)


@contextmanager
def directory_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from backend internals."""
    try:
        yield
    except DirectoryError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_directory_error(exc) from exc


def to_query_error(exc: BaseException) -> QueryError:
    """Render a (classified) failure as the data-only QueryError the orchestrator consumes."""
    err = classify_directory_error(exc)
    if isinstance(err, PermissionDeniedError):
        return QueryError(reason="permission_denied", message=f"Permission denied: {err}")
    if isinstance(err, UnreachableError):
        return QueryError(reason="unreachable", message=f"Directory service unreachable: {err}")
    if isinstance(err, EmptyResponseError):
        return QueryError(reason="empty_response", message=str(err) or EMPTY_RESPONSE_MESSAGE)
    return QueryError(reason="error", message=f"Error: {err}")


__all__ = [
    "DirectoryError",
    "UnreachableError",
    "PermissionDeniedError",
    "EmptyResponseError",
    "DIRECTORY_ERRORS",
    "EMPTY_RESPONSE_MESSAGE",
    "classify_directory_error",
    "directory_error_guard",
    "to_query_error",
]
