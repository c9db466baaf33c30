# mediaprobe/core/validation/video.py
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable

from mediaprobe.schemas.models import ValidationStatus

from .base import StreamOpener, StreamSession, ValidationFailedError
from .sources import LocatorSource

logger = logging.getLogger(__name__)


class OpenCvStreamSession:
    """
    One playback session backed by cv2.VideoCapture.

    `prepare` returns immediately; a worker thread opens the stream and reads
    the first frame. "Ready" means a frame was decoded.

    The capture is owned by the worker thread: it is opened, read and released
    there, never from the caller. `release()` only marks the session so the
    worker drops its result; a capture blocked in `read()` is freed once the
    read returns.
    """

    def __init__(self, source: LocatorSource):
        self.source = source
        self._released = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def released(self) -> bool:
        return self._released.is_set()

    def prepare(self, locator: str, *, on_ready: Callable[[], None], on_error: Callable[[str], None]) -> None:
        self._thread = threading.Thread(
            target=self._run,
            args=(locator, on_ready, on_error),
            name="mediaprobe-video-session",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker to finish; True once it has (or never started)."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self, locator: str, on_ready: Callable[[], None], on_error: Callable[[str], None]) -> None:
        try:
            error = self._open_first_frame(locator)
        except Exception as e:  # noqa: BLE001
            error = f"{type(e).__name__}: {e}"
        if self._released.is_set():
            logger.debug("Video session for %s finished after release: %s", locator, error or "ready")
            return
        if error is None:
            on_ready()
        else:
            on_error(error)

    def _open_first_frame(self, locator: str) -> str | None:
        import cv2  # noqa: PLC0415  (heavy import, only needed once a video is probed)

        url = self.source.stream_url(locator)
        capture = cv2.VideoCapture(url)
        try:
            if self._released.is_set():
                return "Session released before the stream opened"
            if not capture.isOpened():
                return f"Could not open stream {url}"
            ok, _frame = capture.read()
            if not ok:
                return f"No frames decoded from {url}"
            return None
        finally:
            capture.release()

    def release(self) -> None:
        self._released.set()


class OpenCvStreamOpener:
    def __init__(self, source: LocatorSource | None = None):
        self.source = source or LocatorSource()

    def open(self) -> StreamSession:
        return OpenCvStreamSession(self.source)


class VideoValidator:
    """
    Open a streaming session and await the first of: ready, player error, timeout.

    Exactly one terminal status is returned; later callbacks are ignored and the
    session is released on every path.
    """

    def __init__(self, opener: StreamOpener, *, timeout_s: float = 20.0):
        self.opener = opener
        self.timeout_s = timeout_s

    async def validate(self, locator: str) -> ValidationStatus:
        logger.debug("Video validation started for %s", locator)
        loop = asyncio.get_running_loop()
        settled: asyncio.Future[None] = loop.create_future()

        def _settle(error: str | None) -> None:
            if settled.done():
                return
            if error is None:
                settled.set_result(None)
            else:
                settled.set_exception(ValidationFailedError(error))

        def _post(error: str | None) -> None:
            try:
                loop.call_soon_threadsafe(_settle, error)
            except RuntimeError:
                # loop already closed: the validation settled long ago
                logger.debug("Dropping late player callback for %s", locator)

        def on_ready() -> None:
            _post(None)

        def on_error(message: str) -> None:
            _post(message or "unknown player error")

        session: StreamSession | None = None
        try:
            session = self.opener.open()
            session.prepare(locator, on_ready=on_ready, on_error=on_error)
            await asyncio.wait_for(settled, timeout=self.timeout_s)
        except asyncio.TimeoutError:
            msg = f"Player did not become ready within {self.timeout_s:g}s"
            logger.error("%s (%s)", msg, locator)
            return ValidationStatus.error(msg)
        except ValidationFailedError as e:
            logger.error("Player error for %s: %s", locator, e)
            return ValidationStatus.error(f"Player error: {e}")
        except Exception as e:  # noqa: BLE001
            logger.error("Video open failed for %s: %s", locator, e)
            return ValidationStatus.error(f"Video open failed: {e}")
        finally:
            if session is not None:
                try:
                    session.release()
                except Exception as e:  # noqa: BLE001
                    logger.warning("Failed to release video session for %s: %s", locator, e)

        logger.info("Video ready: %s", locator)
        return ValidationStatus.success(locator)


__all__ = ["OpenCvStreamSession", "OpenCvStreamOpener", "VideoValidator"]
