# main.py
"""
Entry Point — Media Directory Probe

Purpose
-------
Run one probe end-to-end and print the result dialog:
  1) Load the probe policy (defaults, --config JSON, MEDIAPROBE_* env, CLI flags).
  2) Query the directory catalog, sample one entry, resolve & classify it.
  3) Validate the entry (image decode or video stream-open) and print the
     final status of both tracks.

Design
------
- Dev aid, not part of the library contract; the presentation layer proper is
  any `on_change` listener handed to `ProbeOrchestrator`.
- `--demo` swaps in the in-memory mock backend with a generated PNG so the
  pipeline can be exercised without a running directory service.

Usage
-----
    python main.py --base-url http://127.0.0.1:8765
    python main.py --config probe.json --debug
    python main.py --demo
"""

from __future__ import annotations

import argparse
import asyncio
import io
import sys

from PIL import Image

from mediaprobe.core.directory.mock_backend import MockDirectoryBackend
from mediaprobe.core.logs import configure_logging
from mediaprobe.inputs.settings import SettingsError, load_policy
from mediaprobe.orchestrators.probe_orchestrator import build_orchestrator
from mediaprobe.presenters.console import ConsolePresenter
from mediaprobe.schemas.models import DirectoryInfo, QueryError, RowSet, ValidationState

_DEMO_ITEM = "content://com.neilturner.aerialviews.media/item/1"


def build_demo_backend() -> MockDirectoryBackend:
    """Return an in-memory backend with a small catalog and one decodable image."""
    buf = io.BytesIO()
    Image.new("RGB", (64, 36), color=(40, 90, 160)).save(buf, format="PNG")
    catalog = RowSet(
        columns=("_id", "url", "_data", "mime_type"),
        rows=(
            {"_id": "1", "url": _DEMO_ITEM, "_data": "/storage/emulated/0/Pictures/sky.png", "mime_type": "image/png"},
        ),
    )
    return MockDirectoryBackend(
        catalog,
        metadata={_DEMO_ITEM: {"_display_name": "sky.png"}},
        blobs={_DEMO_ITEM: buf.getvalue()},
        info=DirectoryInfo(authority="com.neilturner.aerialviews.media", package_name="demo", exported=True),
    )


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments for configurable runs."""
    p = argparse.ArgumentParser(description="Media directory probe")
    p.add_argument("--config", type=str, default=None, help="Path to JSON settings (ProbePolicy fields).")
    p.add_argument("--base-url", type=str, default=None, help="HTTP directory backend endpoint (overrides config).")
    p.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds (overrides config).")
    p.add_argument("--demo", action="store_true", help="Run against the in-memory demo backend.")
    p.add_argument("--debug", action="store_true", help="Verbose logging + rotating file log under logs/.")
    return p.parse_args()


async def run_probe(args: argparse.Namespace) -> int:
    policy = load_policy(args.config, base_url=args.base_url, timeout_s=args.timeout)
    backend = build_demo_backend() if args.demo else None
    orchestrator = build_orchestrator(policy, backend=backend, on_change=ConsolePresenter())

    await orchestrator.start()
    state = await orchestrator.wait_for_validation()

    if isinstance(state.outcome, QueryError):
        return 2
    if any(s.state is ValidationState.error for s in (state.image_status, state.video_status)):
        return 1
    return 0


def main() -> int:
    args = parse_args()
    configure_logging(True if args.debug else None)
    try:
        return asyncio.run(run_probe(args))
    except SettingsError as e:
        print(f"Settings error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
