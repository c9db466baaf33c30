# mediaprobe/orchestrators/probe_orchestrator.py
"""
Probe Orchestrator

Purpose
-------
Sequence one probe run end-to-end and hand every state change to the
presentation collaborator:

    start() → query → sample → resolve → classify → (image | video) validator
    dismiss() → back to Idle

Design
------
- State lives in an immutable `ProbeState`; each transition publishes a new one
  through `on_change`.
- Blocking work (directory query, metadata lookup) runs in worker threads; the
  validator runs as an asyncio Task so the dialog can be shown before it settles.
- A run generation counter guards against stale results: a validator that
  settles after `dismiss()` (or after a newer run started) is discarded.
- At most one directory query runs at a time. `dismiss()` hides a pending
  query but does not free the slot; `start()` is ignored until it returns.
- `start()` always ends in a terminal query outcome; unexpected faults become
  `QueryError(reason="error")`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from mediaprobe.core.directory.base import DirectoryBackend, MediaAccess
from mediaprobe.core.directory.client import DirectoryClient
from mediaprobe.core.directory.http_backend import HttpDirectoryBackend
from mediaprobe.core.media.classifier import classify
from mediaprobe.core.media.extractor import MALFORMED_ROW_WARNING
from mediaprobe.core.media.resolver import MetadataResolver
from mediaprobe.core.media.sampler import Sampler
from mediaprobe.core.validation.image import ImageValidator, PillowImageDecoder
from mediaprobe.core.validation.sources import LocatorSource
from mediaprobe.core.validation.video import OpenCvStreamOpener, VideoValidator
from mediaprobe.schemas.models import (
    MediaKind,
    ProbePolicy,
    ProbeState,
    QueryError,
    QuerySuccess,
    ResolvedMetadata,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[ProbeState], None]


class ProbeOrchestrator:
    def __init__(
        self,
        client: DirectoryClient,
        resolver: MetadataResolver,
        image_validator: ImageValidator,
        video_validator: VideoValidator,
        *,
        sampler: Sampler | None = None,
        on_change: StateListener | None = None,
    ):
        self.client = client
        self.resolver = resolver
        self.image_validator = image_validator
        self.video_validator = video_validator
        self.sampler = sampler or Sampler()
        self.on_change = on_change

        self._state = ProbeState()
        self._generation = 0
        self._query_in_flight = False
        self._pending: asyncio.Task[None] | None = None

    @property
    def state(self) -> ProbeState:
        return self._state

    # ---------------------------
    # Triggers
    # ---------------------------

    async def start(self) -> ProbeState:
        if self._query_in_flight or self._state.is_loading:
            logger.debug("start ignored: a request is already in flight")
            return self._state

        self._generation += 1
        generation = self._generation
        logger.debug("Start triggered - initiating query (run %d)", generation)
        self._publish(ProbeState(is_loading=True))

        self._query_in_flight = True
        try:
            outcome = await self._run_query_stage()
        except Exception as e:  # noqa: BLE001
            logger.exception("Query stage failed unexpectedly")
            outcome = QueryError(reason="error", message=f"Error: {e}")
        finally:
            self._query_in_flight = False

        if generation != self._generation:
            logger.info("Discarding query result of dismissed run %d", generation)
            return self._state

        if isinstance(outcome, QueryError):
            logger.error("Query error received: %s", outcome.message)
            self._publish(ProbeState(outcome=outcome, show_result=True))
            return self._state

        logger.info("Query result received: %d items", outcome.count)
        kind = outcome.media_kind
        locator = outcome.sample_url

        if locator is None or kind in (None, MediaKind.unknown):
            if outcome.entry is not None:
                logger.warning("Unknown media type for: %r", outcome.entry.locator)
            self._publish(ProbeState(outcome=outcome, show_result=True))
            return self._state

        image_status = ValidationStatus.idle()
        video_status = ValidationStatus.idle()
        if kind is MediaKind.image:
            image_status = image_status.transition(ValidationStatus.loading())
        else:
            video_status = video_status.transition(ValidationStatus.loading())

        self._publish(
            ProbeState(
                outcome=outcome,
                image_status=image_status,
                video_status=video_status,
                show_result=True,
            )
        )
        self._pending = asyncio.create_task(self._run_validator(generation, kind, locator))
        return self._state

    def dismiss(self) -> ProbeState:
        """Return to Idle. In-flight validators keep running but their results are dropped."""
        self._generation += 1
        self._publish(ProbeState())
        return self._state

    async def wait_for_validation(self) -> ProbeState:
        """Await the pending validator task, if any, and return the resulting state."""
        pending = self._pending
        if pending is not None:
            await pending
        return self._state

    # ---------------------------
    # Pipeline stages
    # ---------------------------

    async def _run_query_stage(self) -> QuerySuccess | QueryError:
        result = await asyncio.to_thread(self.client.query)
        if isinstance(result, QueryError):
            return result

        entry = self.sampler.sample(result)
        warnings: list[str] = []
        metadata = ResolvedMetadata()
        kind: MediaKind | None = None

        if entry is not None:
            if not entry.locator:
                warnings.append(MALFORMED_ROW_WARNING)
                kind = MediaKind.unknown
            else:
                metadata = await asyncio.to_thread(self.resolver.resolve, entry.locator, entry.content_type_hint)
                kind = classify(entry.locator, entry.content_type_hint or metadata.content_type)

        outcome = QuerySuccess(
            count=result.count,
            columns=result.columns,
            uri=self.client.uri,
            entry=entry,
            metadata=metadata,
            media_kind=kind,
            warnings=warnings,
        )
        logger.debug(
            "Query SUCCESS: count=%d, url=%s, path=%s, mime=%s, filename=%s",
            outcome.count,
            outcome.sample_url,
            outcome.sample_path,
            outcome.mime_type,
            outcome.resolved_filename,
        )
        return outcome

    async def _run_validator(self, generation: int, kind: MediaKind, locator: str) -> None:
        validator = self.image_validator if kind is MediaKind.image else self.video_validator
        try:
            status = await validator.validate(locator)
        except Exception as e:  # noqa: BLE001
            logger.exception("%s validator raised", kind.value)
            status = ValidationStatus.error(f"Validation failed: {e}")
        if not isinstance(status, ValidationStatus) or not status.is_terminal:
            status = ValidationStatus.error(f"Validation failed: unexpected validator state {status!r}")

        if generation != self._generation:
            logger.info("Discarding late %s status for dismissed run %d: %s", kind.value, generation, status.describe())
            return

        if kind is MediaKind.image:
            update = {"image_status": self._state.image_status.transition(status)}
        else:
            update = {"video_status": self._state.video_status.transition(status)}
        self._publish(self._state.model_copy(update=update))

    # ---------------------------
    # Presentation hand-off
    # ---------------------------

    def _publish(self, state: ProbeState) -> None:
        self._state = state
        if self.on_change is None:
            return
        try:
            self.on_change(state)
        except Exception:  # noqa: BLE001
            logger.exception("Presentation listener failed")


def build_orchestrator(
    policy: ProbePolicy | None = None,
    *,
    backend: DirectoryBackend | None = None,
    on_change: StateListener | None = None,
    sampler: Sampler | None = None,
) -> ProbeOrchestrator:
    """
    Wire the default stack: HTTP backend (unless one is given), Pillow decoder,
    OpenCV stream opener, all sharing one policy.
    """
    pol = policy or ProbePolicy()
    be = backend if backend is not None else HttpDirectoryBackend(pol)
    media = be if isinstance(be, MediaAccess) else None
    source = LocatorSource(media, pol)
    return ProbeOrchestrator(
        DirectoryClient(be),
        MetadataResolver(be),
        ImageValidator(PillowImageDecoder(source), timeout_s=pol.decode_timeout_s),
        VideoValidator(OpenCvStreamOpener(source), timeout_s=pol.ready_timeout_s),
        sampler=sampler,
        on_change=on_change,
    )


__all__ = ["ProbeOrchestrator", "StateListener", "build_orchestrator"]
