"""
Logging setup for the API process.

Loggers are plain `logging.getLogger(__name__)`; this module only decides the
format and level once at startup. Never log credentials or raw bodies.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    # We log requests ourselves (see main.py).
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
