"""Logging setup for LevelUp entry points."""

from __future__ import annotations

import logging
import os
import sys


def configure_logging(level: str | None = None, handler: logging.Handler | None = None) -> logging.Logger:
    """Configure root logging once, honouring LEVELUP_LOG_LEVEL.

    Logs go to stderr unless *handler* is given (the TUI passes Textual's
    handler so records don't land on the screen).
    """
    level_name = (level or os.environ.get("LEVELUP_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[handler or logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("levelup")
