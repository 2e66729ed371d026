"""Logging for the canvas backend.

Every logger lives under ``canvas``: engine modules log through
``logging.getLogger(__name__)`` (``canvas.engine.store`` and so on) and the
service writes to named channels (``canvas.sse``, ``canvas.api``). The console
handler sits on the ``canvas`` logger once, so configuring it covers the whole
tree. Channels additionally write to their own file under LOG_DIR.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import config

ROOT_LOGGER = "canvas"

LOG_DIR = Path(config.LOG_DIR) if config.LOG_DIR else Path(__file__).parent.parent / "logs"

FILE_FORMAT = "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
CONSOLE_FORMAT = "%(asctime)s [%(name)s] %(message)s"

_console_handler: Optional[logging.Handler] = None
_file_channels: set[str] = set()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the console handler to the ``canvas`` logger and set its level.

    Safe to call repeatedly; only the level changes after the first call.
    """
    global _console_handler
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level or config.LOG_LEVEL)

    if _console_handler is None:
        _console_handler = logging.StreamHandler()
        _console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(_console_handler)
    return root


def get_channel_logger(channel: str) -> logging.Logger:
    """Logger ``canvas.<channel>`` that also writes to ``<channel>.log``."""
    configure_logging()
    logger = logging.getLogger(f"{ROOT_LOGGER}.{channel}")
    if channel in _file_channels:
        return logger

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(LOG_DIR / f"{channel}.log", encoding="utf-8")
    fh.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(fh)
    _file_channels.add(channel)
    return logger


def get_sse_logger() -> logging.Logger:
    """Project event stream channel."""
    return get_channel_logger("sse")


def get_api_logger() -> logging.Logger:
    """HTTP route channel."""
    return get_channel_logger("api")
