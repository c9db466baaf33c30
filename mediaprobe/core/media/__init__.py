# mediaprobe/core/media/__init__.py
from .classifier import IMAGE_EXTS, VIDEO_EXTS, classify
from .extractor import MALFORMED_ROW_WARNING, extract_entry, scan_for_locator
from .resolver import MetadataResolver
from .sampler import Sampler

__all__ = [
    "IMAGE_EXTS",
    "VIDEO_EXTS",
    "classify",
    "MALFORMED_ROW_WARNING",
    "extract_entry",
    "scan_for_locator",
    "MetadataResolver",
    "Sampler",
]
