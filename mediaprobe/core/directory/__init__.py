# mediaprobe/core/directory/__init__.py
from .base import (
    CATALOG_URI,
    DIRECTORY_AUTHORITY,
    DISPLAY_NAME_COLUMN,
    DirectoryBackend,
    MediaAccess,
    is_indirect,
)
from .client import DirectoryClient
from .errors import (
    DIRECTORY_ERRORS,
    DirectoryError,
    EmptyResponseError,
    PermissionDeniedError,
    UnreachableError,
    classify_directory_error,
    directory_error_guard,
)
from .http_backend import HttpDirectoryBackend
from .mock_backend import MockDirectoryBackend

__all__ = [
    "CATALOG_URI",
    "DIRECTORY_AUTHORITY",
    "DISPLAY_NAME_COLUMN",
    "DirectoryBackend",
    "MediaAccess",
    "is_indirect",
    "DirectoryClient",
    "DirectoryError",
    "UnreachableError",
    "PermissionDeniedError",
    "EmptyResponseError",
    "DIRECTORY_ERRORS",
    "classify_directory_error",
    "directory_error_guard",
    "HttpDirectoryBackend",
    "MockDirectoryBackend",
]
