"""Streamlet command-line interface.

Usage:
    streamlet list
    streamlet run publishers-and-subscribers
    streamlet run networking --example decode --url https://dummyjson.com/products/2
    streamlet run timers --duration 5 --interval 0.5 --log-level DEBUG
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Annotated

import cyclopts
from rich.console import Console
from rich.table import Table

from .config import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TIMER_DURATION,
    DEFAULT_TIMER_INTERVAL,
    DEFAULT_TIMER_SPEED,
    DEFAULT_URL,
    PlaygroundConfig,
)
from .logging import logging_context
from .playground import CHAPTER_MODULES, get_chapter, run_chapter

app = cyclopts.App(
    name="streamlet",
    help="Run the streamlet playground: publishers, subjects, networking, debugging and timers.",
)


@app.command(name="list")
def list_chapters() -> None:
    """List the playground chapters and their examples.

    Examples
    --------
    $ streamlet list
    """
    table = Table("Chapter", "Examples")
    for name in CHAPTER_MODULES:
        chapter = get_chapter(name)
        table.add_row(name, ", ".join(example.name for example in chapter.examples))
    Console().print(table)


@app.command
def run(
    chapter: str,
    *,
    example: Annotated[str | None, cyclopts.Parameter(name=["--example", "-e"])] = None,
    url: str = DEFAULT_URL,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    duration: float = DEFAULT_TIMER_DURATION,
    interval: float = DEFAULT_TIMER_INTERVAL,
    speed: float = DEFAULT_TIMER_SPEED,
    debugger: bool = False,
    log_level: str = "WARNING",
) -> None:
    """Run a playground chapter.

    Parameters
    ----------
    chapter
        Chapter name, see `streamlet list`.
    example
        Run only the example with this name.
    url
        Address fetched by the networking and debugging chapters.
    timeout
        Request timeout in seconds.
    duration
        How long each timer example runs, in seconds.
    interval
        Tick interval of the timer examples, in seconds.
    speed
        Time multiplier for the timer examples. `inf` runs them instantly
        on a virtual clock.
    debugger
        Let the breakpoint example stop in the debugger.
    log_level
        Minimum level of log records to print.
        One of: DEBUG, INFO, WARNING, ERROR, CRITICAL. Default: WARNING.

    Examples
    --------
    $ streamlet run publishers-and-subscribers
    $ streamlet run networking -e multicast
    $ streamlet run timers --duration 5 --log-level DEBUG
    $ streamlet run timers --speed inf
    """
    try:
        selected = get_chapter(chapter)
        if example is not None:
            selected.get(example)
        config = PlaygroundConfig(
            url=url,
            request_timeout=timeout,
            timer_duration=duration,
            timer_interval=interval,
            timer_speed=speed,
            debugger=debugger,
        )
    except (KeyError, ValueError) as e:
        print(f"Error: {e.args[0] if e.args else e}", file=sys.stderr)
        sys.exit(1)

    level = getattr(logging, log_level.upper(), logging.WARNING)
    with logging_context(level):
        asyncio.run(run_chapter(selected, config, only=example))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
