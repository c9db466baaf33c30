# tests/orchestrators/test_probe_orchestrator.py
from __future__ import annotations

import asyncio
import threading
import time

from mediaprobe.core.directory.base import CATALOG_URI
from mediaprobe.core.directory.mock_backend import MockDirectoryBackend
from mediaprobe.core.media.extractor import MALFORMED_ROW_WARNING
from mediaprobe.core.media.sampler import Sampler
from mediaprobe.orchestrators.probe_orchestrator import build_orchestrator
from mediaprobe.schemas.models import (
    MediaKind,
    ProbeState,
    QueryError,
    QuerySuccess,
    ValidationState,
)
from tests.utils import (
    FakeDecoder,
    FakeOpener,
    FakeSession,
    StateRecorder,
    make_backend,
    make_orchestrator,
    make_row,
    make_row_set,
)

ITEM = "content://provider/42"


async def _run(orch) -> ProbeState:
    await orch.start()
    return await orch.wait_for_validation()


def test_image_entry_runs_image_track(recorder: StateRecorder) -> None:
    catalog = make_row_set([make_row(i, url=ITEM, mime_type="image/png") for i in range(5)])
    backend = make_backend(catalog)
    decoder = FakeDecoder()
    orch = make_orchestrator(backend, decoder=decoder, recorder=recorder)

    state = asyncio.run(_run(orch))

    outcome = state.outcome
    assert isinstance(outcome, QuerySuccess)
    assert outcome.count == 5
    assert outcome.uri == CATALOG_URI
    assert outcome.sample_url == ITEM
    assert outcome.media_kind is MediaKind.image
    assert state.is_loading is False
    assert state.show_result is True
    assert state.image_status.state is ValidationState.success
    assert state.image_status.locator == ITEM
    assert state.video_status.state is ValidationState.idle
    assert decoder.calls == [ITEM]

    assert recorder.states[0].is_loading is True
    assert recorder.image_states() == ["idle", "loading", "success"]
    assert recorder.video_states() == ["idle"]


def test_video_entry_runs_video_track(recorder: StateRecorder) -> None:
    catalog = make_row_set([make_row(1, url="https://cdn.example.com/clips/ocean.MP4")])
    session = FakeSession(lambda ready, _err: ready())
    decoder = FakeDecoder()
    orch = make_orchestrator(make_backend(catalog), decoder=decoder, opener=FakeOpener(session), recorder=recorder)

    state = asyncio.run(_run(orch))

    assert state.outcome.media_kind is MediaKind.video
    assert state.video_status.state is ValidationState.success
    assert state.image_status.state is ValidationState.idle
    assert session.prepared == ["https://cdn.example.com/clips/ocean.MP4"]
    assert decoder.calls == []
    assert recorder.video_states() == ["idle", "loading", "success"]


def test_resolved_type_drives_classification() -> None:
    catalog = make_row_set([make_row(1, url=ITEM)])
    backend = make_backend(catalog, types={ITEM: "video/mp4"}, metadata={ITEM: {"_display_name": "ocean.mp4"}})
    state = asyncio.run(_run(make_orchestrator(backend)))

    assert state.outcome.media_kind is MediaKind.video
    assert state.outcome.resolved_filename == "ocean.mp4"
    assert state.outcome.mime_type == "video/mp4"
    assert state.video_status.state is ValidationState.success


def test_track_error_is_terminal(recorder: StateRecorder) -> None:
    catalog = make_row_set([make_row(1, url="https://cdn/a.png")])
    decoder = FakeDecoder(error=RuntimeError("bad bitstream"))
    state = asyncio.run(_run(make_orchestrator(make_backend(catalog), decoder=decoder, recorder=recorder)))

    assert state.image_status.state is ValidationState.error
    assert "bad bitstream" in state.image_status.message
    assert recorder.image_states() == ["idle", "loading", "error"]


def test_permission_error_shows_error_and_no_tracks(recorder: StateRecorder) -> None:
    backend = make_backend(query_error=PermissionError("caller lacks grant"))
    decoder = FakeDecoder()
    opener = FakeOpener()
    orch = make_orchestrator(backend, decoder=decoder, opener=opener, recorder=recorder)

    state = asyncio.run(_run(orch))

    assert isinstance(state.outcome, QueryError)
    assert state.outcome.message.startswith("Permission denied:")
    assert state.is_loading is False
    assert state.show_result is True
    assert state.image_status.state is ValidationState.idle
    assert state.video_status.state is ValidationState.idle
    assert decoder.calls == [] and opener.opened == 0


def test_no_locator_is_unknown_without_validation() -> None:
    catalog = make_row_set([{"_id": "1", "title": "sunset"}, {"_id": "2", "title": "dawn"}])
    decoder = FakeDecoder()
    opener = FakeOpener()
    state = asyncio.run(_run(make_orchestrator(make_backend(catalog), decoder=decoder, opener=opener)))

    outcome = state.outcome
    assert isinstance(outcome, QuerySuccess)
    assert outcome.count == 2
    assert outcome.columns == ("_id", "title")
    assert outcome.sample_url is None
    assert outcome.media_kind is MediaKind.unknown
    assert MALFORMED_ROW_WARNING in outcome.warnings
    assert decoder.calls == [] and opener.opened == 0
    assert state.image_status.state is ValidationState.idle


def test_unknown_extension_is_not_validated() -> None:
    catalog = make_row_set([make_row(1, url="https://cdn/readme.xyz")])
    opener = FakeOpener()
    state = asyncio.run(_run(make_orchestrator(make_backend(catalog), opener=opener)))
    assert state.outcome.media_kind is MediaKind.unknown
    assert state.outcome.sample_url == "https://cdn/readme.xyz"
    assert opener.opened == 0


def test_empty_catalog_is_success_with_no_entry() -> None:
    decoder = FakeDecoder()
    state = asyncio.run(_run(make_orchestrator(make_backend(make_row_set([], columns=("url",))), decoder=decoder)))
    assert isinstance(state.outcome, QuerySuccess)
    assert state.outcome.count == 0
    assert state.outcome.entry is None
    assert state.outcome.media_kind is None
    assert decoder.calls == []


def test_dismiss_discards_late_validation(recorder: StateRecorder) -> None:
    catalog = make_row_set([make_row(1, url="https://cdn/a.png")])
    decoder = FakeDecoder(delay_s=0.2)
    orch = make_orchestrator(make_backend(catalog), decoder=decoder, recorder=recorder)

    async def scenario() -> ProbeState:
        await orch.start()
        assert orch.state.image_status.state is ValidationState.loading
        orch.dismiss()
        return await orch.wait_for_validation()

    state = asyncio.run(scenario())

    assert state == ProbeState()
    assert decoder.calls == ["https://cdn/a.png"]
    assert "success" not in recorder.image_states()


def test_start_while_loading_is_ignored() -> None:
    backend = make_backend(make_row_set([make_row(1, url="https://cdn/a.png")]))
    orch = make_orchestrator(backend)

    async def scenario() -> ProbeState:
        await asyncio.gather(orch.start(), orch.start())
        return await orch.wait_for_validation()

    state = asyncio.run(scenario())
    assert [c for c in backend.calls if c[0] == "query"] == [("query", CATALOG_URI)]
    assert state.image_status.state is ValidationState.success


def test_restart_after_dismiss_runs_again() -> None:
    backend = make_backend(make_row_set([make_row(1, url="https://cdn/a.png")]))
    orch = make_orchestrator(backend)

    async def scenario() -> ProbeState:
        await _run(orch)
        orch.dismiss()
        assert orch.state == ProbeState()
        return await _run(orch)

    state = asyncio.run(scenario())
    assert state.image_status.state is ValidationState.success
    assert len([c for c in backend.calls if c[0] == "query"]) == 2


def test_unexpected_fault_becomes_query_error() -> None:
    class _BrokenSampler(Sampler):
        def sample(self, rows):
            raise RuntimeError("rng exploded")

    orch = make_orchestrator(make_backend(make_row_set([make_row(1)])))
    orch.sampler = _BrokenSampler()
    state = asyncio.run(_run(orch))

    assert isinstance(state.outcome, QueryError)
    assert state.outcome.reason == "error"
    assert state.outcome.message == "Error: rng exploded"
    assert state.is_loading is False


def test_validator_exception_becomes_track_error() -> None:
    class _Exploding:
        async def validate(self, locator):
            raise RuntimeError("decoder crashed")

    orch = make_orchestrator(make_backend(make_row_set([make_row(1, url="https://cdn/a.png")])))
    orch.image_validator = _Exploding()
    state = asyncio.run(_run(orch))
    assert state.image_status.state is ValidationState.error
    assert "decoder crashed" in state.image_status.message


def test_listener_failure_does_not_break_run() -> None:
    def bad_listener(state):
        raise RuntimeError("view gone")

    orch = make_orchestrator(make_backend(make_row_set([make_row(1, url="https://cdn/a.png")])))
    orch.on_change = bad_listener
    state = asyncio.run(_run(orch))
    assert state.image_status.state is ValidationState.success


def test_build_orchestrator_with_real_decoder(png_bytes) -> None:
    item = "content://com.neilturner.aerialviews.media/item/1"
    catalog = make_row_set([make_row(1, url=item, mime_type="image/png")])
    backend = make_backend(catalog, blobs={item: png_bytes(16, 16)}, metadata={item: {"_display_name": "sky.png"}})
    recorder = StateRecorder()
    orch = build_orchestrator(backend=backend, on_change=recorder)

    state = asyncio.run(_run(orch))

    assert state.outcome.resolved_filename == "sky.png"
    assert state.image_status.state is ValidationState.success
    assert ("open_bytes", item) in backend.calls


class _SlowBackend(MockDirectoryBackend):
    """Backend whose catalog query blocks, tracking how many run at once."""

    def __init__(self, *args, delay_s: float = 0.3, **kwargs):
        super().__init__(*args, **kwargs)
        self.delay_s = delay_s
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def query(self, uri):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay_s)
            return super().query(uri)
        finally:
            with self._lock:
                self.active -= 1


def test_dismiss_during_query_keeps_single_request(recorder: StateRecorder) -> None:
    backend = _SlowBackend(make_row_set([make_row(1, url="https://cdn/a.png")]))
    decoder = FakeDecoder()
    orch = make_orchestrator(backend, decoder=decoder, recorder=recorder)

    async def scenario() -> ProbeState:
        first = asyncio.create_task(orch.start())
        await asyncio.sleep(0.05)
        orch.dismiss()
        await orch.start()
        await first
        return await orch.wait_for_validation()

    state = asyncio.run(scenario())

    assert backend.max_active == 1
    assert len([c for c in backend.calls if c[0] == "query"]) == 1
    # the dismissed run's result is dropped and nothing was validated
    assert state == ProbeState()
    assert decoder.calls == []


def test_start_after_dismissed_query_settles_runs_again() -> None:
    backend = _SlowBackend(make_row_set([make_row(1, url="https://cdn/a.png")]), delay_s=0.1)
    orch = make_orchestrator(backend)

    async def scenario() -> ProbeState:
        first = asyncio.create_task(orch.start())
        await asyncio.sleep(0.02)
        orch.dismiss()
        await first
        return await _run(orch)

    state = asyncio.run(scenario())
    assert backend.max_active == 1
    assert len([c for c in backend.calls if c[0] == "query"]) == 2
    assert state.image_status.state is ValidationState.success
