"""Logging and debug-output integration for streamlet.

This module provides:

- Output streams for the ``print`` operator:
    # Prefix each line with the time elapsed since the previous one
    publisher.print("publisher", stream=TimeLogger())

    # Forward lines to a Python logger
    publisher.print("fetch", stream=LoggerStream(logging.getLogger("myapp")))

- Console rendering of Python log records with colored severity:
    with logging_context(logging.DEBUG):
        ...  # streamlet's own debug records are printed

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from time import perf_counter

from rich.console import Console
from rich.text import Text

# Color mapping for log levels
LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red bold",
}


class TimeLogger:
    """Text stream that stamps each line with the time since the previous one.

    Blank writes are ignored, so it can be handed to anything that writes
    lines followed by separate newlines.

    Example:
        >>> SequencePublisher([1, 2, 3]).print("publisher", stream=TimeLogger()).sink()
        +0.00002s: publisher: receive subscription: ([1, 2, 3])
        +0.00001s: publisher: request unlimited
        ...
    """

    def __init__(self, console: Console | None = None, digits: int = 5) -> None:
        self._console = console or Console(highlight=False)
        self._digits = digits
        self._previous = perf_counter()

    def write(self, string: str) -> int:
        trimmed = string.strip()
        if not trimmed:
            return len(string)
        now = perf_counter()
        text = Text()
        text.append(f"+{now - self._previous:.{self._digits}f}s:", style="dim")
        text.append(f" {trimmed}")
        self._console.print(text)
        self._previous = now
        return len(string)

    def flush(self) -> None:
        pass


class LoggerStream:
    """Text stream that forwards each non-blank line to a logger."""

    def __init__(self, logger: logging.Logger | str, level: int = logging.DEBUG) -> None:
        self.logger = logging.getLogger(logger) if isinstance(logger, str) else logger
        self.level = level

    def write(self, string: str) -> int:
        for line in string.splitlines():
            if line.strip():
                self.logger.log(self.level, line)
        return len(string)

    def flush(self) -> None:
        pass


class ConsoleLogHandler(logging.Handler):
    """Logging handler that prints records to a rich console.

    Each line shows the record time, the level name in its level color, the
    logger name and the message. Exception text is printed in red below.
    """

    def __init__(self, level: int = logging.NOTSET, console: Console | None = None) -> None:
        super().__init__(level)
        self.console = console or Console(stderr=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = LEVEL_STYLES.get(record.levelno, "white")
            time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")

            text = Text()
            text.append(time_str, style="dim")
            text.append(" ")
            text.append(f"[{record.levelname:8}]", style=style)
            text.append(f" {record.name}: {record.getMessage()}")
            self.console.print(text)

            if record.exc_info:
                import traceback

                exc_text = "".join(traceback.format_exception(*record.exc_info))
                self.console.print(Text(exc_text, style="red"))
        except Exception:
            self.handleError(record)


@contextmanager
def logging_context(
    level: int = logging.INFO,
    logger: logging.Logger | str | None = None,
    console: Console | None = None,
) -> Iterator[ConsoleLogHandler]:
    """Print log records at ``level`` and above for the duration of the block.

    Installs a :class:`ConsoleLogHandler` on ``logger`` (the root logger by
    default), lowers the logger's level if needed, and restores both on exit.

    Example:
        >>> with logging_context(logging.DEBUG):
        ...     asyncio.run(run_chapter(chapter, config))
    """
    if isinstance(logger, str) or logger is None:
        logger = logging.getLogger(logger)
    handler = ConsoleLogHandler(level, console)
    previous_level = logger.level
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)
        handler.close()
