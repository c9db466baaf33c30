# mediaprobe/core/logs.py
"""
Logging setup for the probe.

Modules log through `logging.getLogger(__name__)` under the `mediaprobe`
namespace; nothing is configured at import time. Entry points call
`configure_logging()` once:
  - always: a stderr handler at INFO (DEBUG when debug is on)
  - debug on (`MEDIAPROBE_DEBUG` in 1/true/yes/on, or `debug=True`): also a
    rotating file log at logs/mediaprobe_debug.log
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

ROOT_LOGGER = "mediaprobe"
DEBUG_LOG_PATH = os.path.join("logs", "mediaprobe_debug.log")

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "(%Y-%m-%d %H:%M:%S)"


def debug_enabled() -> bool:
    return os.getenv("MEDIAPROBE_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(debug: bool | None = None, *, log_path: str = DEBUG_LOG_PATH) -> logging.Logger:
    """Attach handlers to the `mediaprobe` logger. Safe to call more than once."""
    if debug is None:
        debug = debug_enabled()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    # Avoid duplicate handlers if reloaded in REPL/tests
    if not any(getattr(h, "_mediaprobe_stderr", False) for h in logger.handlers):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(formatter)
        stream._mediaprobe_stderr = True  # type: ignore[attr-defined]
        logger.addHandler(stream)

    if debug and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        try:
            os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
            handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        except OSError as e:
            # stderr logging keeps working without the file
            logger.warning("Could not open debug log %s: %s", log_path, e)

    return logger


__all__ = ["ROOT_LOGGER", "DEBUG_LOG_PATH", "debug_enabled", "configure_logging"]
