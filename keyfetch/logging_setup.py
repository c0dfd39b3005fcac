"""Logging configuration shared by library consumers and tests."""
from __future__ import annotations

import logging

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Set the root log level and attach a stream handler if none exists.

    Unknown level names fall back to INFO. aiohttp is capped at WARNING so
    RPC traffic does not flood DEBUG output.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
