"""Logging for the room booker: one stdout handler shared by every module.

Lines read ``time | LEVEL | module | Event | key=value | ...`` so a day-fill run
can be followed slot by slot and booking by booking.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from roombooker.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach the room-booker handler; ``LOG_LEVEL`` applies unless ``level`` is given.

    Later calls are no-ops, so modules may call this freely at import time.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    # httpx logs every request at INFO; one line per half-hour slot is noise.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Module logger for ``name``, configuring the handler on first use."""
    configure_logging()
    return logging.getLogger(name)
