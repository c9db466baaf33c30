# mediaprobe/presenters/console.py
"""
Plain-text rendering of the probe result dialog.

`render_lines(state)` is pure; `ConsolePresenter` is an `on_change` listener
that prints the dialog when a result is first shown and again whenever a
validation track settles.
"""

from __future__ import annotations

import sys
from typing import TextIO

from mediaprobe.schemas.models import ProbeState, QueryError, ValidationState, ValidationStatus


def _track_line(label: str, status: ValidationStatus) -> str | None:
    if status.state is ValidationState.idle:
        return None
    if status.state is ValidationState.loading:
        return f"{label} load: Loading..."
    if status.state is ValidationState.success:
        return f"{label} load: Success"
    return f"{label} load: Failed - {status.message}"


def render_lines(state: ProbeState) -> list[str]:
    outcome = state.outcome
    if outcome is None:
        return ["Loading..."] if state.is_loading else []

    if isinstance(outcome, QueryError):
        return ["Error", "Error occurred:", outcome.message]

    lines = ["Query Result", f"Media count: {outcome.count}"]
    if outcome.columns:
        lines.append(f"Columns: {', '.join(outcome.columns)}")
    if outcome.sample_url is not None:
        lines.append(f"Sample URL: {outcome.sample_url}")
    elif outcome.count > 0:
        lines.append("No URL found in random row")
    if outcome.sample_path is not None:
        lines.append(f"Sample Path: {outcome.sample_path}")
    if outcome.resolved_filename is not None:
        lines.append(f"Filename: {outcome.resolved_filename}")
    if outcome.mime_type is not None:
        lines.append(f"MIME type: {outcome.mime_type}")
    if outcome.media_kind is not None:
        lines.append(f"Media kind: {outcome.media_kind.value}")

    for label, status in (("Image", state.image_status), ("Video", state.video_status)):
        line = _track_line(label, status)
        if line:
            lines.append(line)
    return lines


class ConsolePresenter:
    """Prints the dialog on the transitions a user would notice."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout
        self._last: list[str] | None = None

    def __call__(self, state: ProbeState) -> None:
        if not state.show_result:
            self._last = None
            return
        lines = render_lines(state)
        if lines == self._last:
            return
        self._last = lines
        print("\n".join(lines), file=self.stream)
        print("", file=self.stream, flush=True)


__all__ = ["render_lines", "ConsolePresenter"]
