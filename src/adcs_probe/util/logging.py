"""Logging setup for the probe.

Call ``setup_logging()`` once at startup (the CLI callback or the HTTP
service lifespan).  The CLI writes the sensor payload to stdout, so log
records always go to stderr.
"""

from __future__ import annotations

import logging
import sys


def setup_logging(
    level: int | str = logging.WARNING,
    fmt: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt: str = "%Y-%m-%d %H:%M:%S",
) -> None:
    """Configure the root logger with the given level and format.

    Parameters
    ----------
    level:
        Logging level (default ``WARNING``).  Accepts both integer constants
        (``logging.DEBUG``) and string names (``"DEBUG"``).  Unknown names
        fall back to ``WARNING``.
    fmt:
        Format string for log messages.
    datefmt:
        Date/time format string.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt=datefmt,
        stream=sys.stderr,
        force=True,
    )

    # Quieten noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

