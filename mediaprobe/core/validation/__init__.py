# mediaprobe/core/validation/__init__.py
from .base import DecodedImage, ImageDecoder, StreamOpener, StreamSession, ValidationFailedError
from .image import ImageValidator, PillowImageDecoder
from .sources import LocatorSource
from .video import OpenCvStreamOpener, OpenCvStreamSession, VideoValidator

__all__ = [
    "ValidationFailedError",
    "DecodedImage",
    "ImageDecoder",
    "StreamOpener",
    "StreamSession",
    "LocatorSource",
    "PillowImageDecoder",
    "ImageValidator",
    "OpenCvStreamOpener",
    "OpenCvStreamSession",
    "VideoValidator",
]
