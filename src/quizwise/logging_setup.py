from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from quizwise.config import LOG_DIR

TELEMETRY_LOGGER = "quizwise.telemetry"
LOG_LEVEL_ENV = "QUIZWISE_LOG_LEVEL"


def setup_console_logging(level: Optional[int] = None) -> None:
    """
    Route quizwise logs to stderr.

    The level comes from QUIZWISE_LOG_LEVEL (a level name such as DEBUG) when
    not given, and defaults to INFO. Calling it again only adjusts the level.
    """
    if level is None:
        name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
        level = logging.getLevelName(name) if name else logging.INFO
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "_quizwise_console", False) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler._quizwise_console = True
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    root.addHandler(handler)


def setup_telemetry_log(log_dir: str = LOG_DIR) -> None:
    """Write generation START/SUCCESS/ERROR lines to a rotating file."""
    tel = logging.getLogger(TELEMETRY_LOGGER)
    if any(isinstance(h, RotatingFileHandler) for h in tel.handlers):
        return
    try:
        os.makedirs(log_dir, exist_ok=True)
        h = RotatingFileHandler(
            os.path.join(log_dir, "gemini-service.log"),
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
    except OSError as e:
        logging.getLogger(__name__).warning("Telemetry log disabled: %s", e)
        return
    h.setFormatter(logging.Formatter("[%(asctime)s] %(message)s"))
    tel.addHandler(h)
    tel.setLevel(logging.INFO)


def log_telemetry(event: str, model: str, duration_ms: float, details: str = "") -> None:
    line = f"[{event}] [Model: {model}] [Duration: {duration_ms:.2f}ms]"
    if details:
        line += f" | Details: {details}"
    logging.getLogger(TELEMETRY_LOGGER).info(line)
