"""Logging helpers shared by every couchmodel module."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the couchmodel hierarchy."""
    return logging.getLogger(name)


def configure_logging(level: int | str = logging.INFO, fmt: Optional[str] = None) -> logging.Logger:
    """
    Attach a single stream handler to the package root logger.

    Calling this more than once replaces the level but never stacks handlers.
    """
    root = logging.getLogger("couchmodel")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)
    if not any(getattr(h, "_couchmodel", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt or LOG_FORMAT))
        handler._couchmodel = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
