"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    """Install a single stream handler on the root logger at the given level."""
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    if not any(getattr(handler, "_videotube", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._videotube = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(resolved)
