# mediaprobe/core/validation/image.py
from __future__ import annotations

import asyncio
import io
import logging

from PIL import Image, UnidentifiedImageError

from mediaprobe.schemas.models import ValidationStatus

from .base import DecodedImage, ImageDecoder, ValidationFailedError
from .sources import LocatorSource

logger = logging.getLogger(__name__)


class PillowImageDecoder:
    """Full decode through Pillow: identify the container, then load every pixel."""

    def __init__(self, source: LocatorSource | None = None):
        self.source = source or LocatorSource()

    def decode(self, locator: str) -> DecodedImage:
        data = self.source.read_bytes(locator)
        try:
            with Image.open(io.BytesIO(data)) as im:
                im.load()
                return DecodedImage(width=int(im.width), height=int(im.height), mode=str(im.mode), format=im.format)
        except UnidentifiedImageError as e:
            raise ValidationFailedError(f"Unrecognized image data ({len(data)} bytes)") from e
        except (OSError, SyntaxError) as e:
            # Pillow reports truncated/corrupt streams as OSError or SyntaxError
            raise ValidationFailedError(f"Corrupt image data: {e}") from e


class ImageValidator:
    """Decode one image off the event loop and report a terminal ValidationStatus."""

    def __init__(self, decoder: ImageDecoder, *, timeout_s: float = 20.0):
        self.decoder = decoder
        self.timeout_s = timeout_s

    async def validate(self, locator: str) -> ValidationStatus:
        logger.debug("Image validation started for %s", locator)
        try:
            decoded = await asyncio.wait_for(asyncio.to_thread(self.decoder.decode, locator), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            msg = f"Image decode timed out after {self.timeout_s:g}s"
            logger.error("%s (%s)", msg, locator)
            return ValidationStatus.error(msg)
        except Exception as e:  # noqa: BLE001
            logger.error("Image load failed for %s: %s", locator, e)
            return ValidationStatus.error(f"Image load failed: {e}")

        if decoded is None:
            logger.error("Image decoder returned nothing for %s", locator)
            return ValidationStatus.error("Image load failed: decoder returned no image")

        logger.info("Image loaded: %s (%dx%d %s)", locator, decoded.width, decoded.height, decoded.mode)
        return ValidationStatus.success(locator)


__all__ = ["PillowImageDecoder", "ImageValidator"]
