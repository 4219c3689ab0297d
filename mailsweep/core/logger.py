"""Logging setup for mailsweep.

All modules log through the shared loguru ``logger``. Sinks are installed once
when this module is imported: a coloured console sink at ``config.log_level``
and, unless ``LOG_TO_FILE`` is disabled, a rotating debug log plus a separate
error log under ``config.logs_dir``. Records carry a ``component`` extra so
browser, mailbox and vision output can be told apart.
"""

from __future__ import annotations

import os
import sys
from typing import Any

from loguru import logger

from .config import config

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> "
    "<level>{level:<7}</level> "
    "<magenta>{extra[component]}</magenta> "
    "<cyan>{name}:{line}</cyan> - <level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level:<7} {extra[component]} {name}:{function}:{line} - {message}"

# (file name pattern, minimum level, retention)
FILE_SINKS = (
    ("mailsweep_{time:YYYY-MM-DD}.log", "DEBUG", "30 days"),
    ("errors_{time:YYYY-MM-DD}.log", "ERROR", "90 days"),
)


def configure_sinks(level: str | None = None, to_file: bool | None = None) -> None:
    """Replace loguru's default handler with the mailsweep sinks.

    Args:
        level: Console level; defaults to ``config.log_level``.
        to_file: Whether to add the rotating file sinks; defaults to ``config.log_to_file``.
    """
    logger.remove()
    logger.configure(extra={"component": "mailsweep"})
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level or config.log_level, colorize=True)

    if not (config.log_to_file if to_file is None else to_file):
        return

    os.makedirs(config.logs_dir, exist_ok=True)
    for pattern, sink_level, retention in FILE_SINKS:
        logger.add(
            os.path.join(config.logs_dir, pattern),
            format=FILE_FORMAT,
            level=sink_level,
            rotation="1 day",
            retention=retention,
            compression="zip",
        )


class Logger:
    """Component-scoped facade over the loguru logger.

    Adds a few structured helpers for the events mailsweep reports often:
    automation steps, pixel comparisons and timings.
    """

    def __init__(self, component: str = "mailsweep") -> None:
        self.component = component
        self._logger = logger.bind(component=component)

    def _emit(self, level: str, message: str) -> None:
        # depth=2 attributes the record to the caller of info()/debug()/...
        self._logger.opt(depth=2).log(level, message)

    def info(self, message: str) -> None:
        self._emit("INFO", message)

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message)

    def warning(self, message: str) -> None:
        self._emit("WARNING", message)

    def error(self, message: str) -> None:
        self._emit("ERROR", message)

    def log_automation_step(self, step: str, details: dict[str, Any] | None = None) -> None:
        """Record a browser/mailbox action, e.g. ``search {'query': 'from:shop'}``."""
        suffix = f" {details}" if details else ""
        self._emit("INFO", f"step: {step}{suffix}")

    def log_match_attempt(
        self,
        reference: str,
        match_rate: float,
        width: int,
        height: int,
        mismatched: int,
    ) -> None:
        """Record one candidate/reference pixel comparison."""
        self._emit(
            "DEBUG",
            f"compare {os.path.basename(reference)}: {match_rate:.2%} "
            f"({mismatched:,} of {width * height:,} px differ at {width}x{height})",
        )

    def log_performance(self, operation: str, duration_ms: float) -> None:
        self._emit("DEBUG", f"timing: {operation} {duration_ms:.1f}ms")


configure_sinks()

log = Logger()
