"""Runnable walkthroughs of the streamlet API.

Each chapter is a module holding a :class:`Chapter` with a sequence of
independent examples. Running an example prints a header and then whatever
the example prints:

    ——— Example of: PassthroughSubject ———
    Received value Hello
    ...

Examples are plain or async functions taking a :class:`PlaygroundContext`.
Cancellables stored in ``ctx.subscriptions`` are cancelled when the chapter
ends.

Usage:
    $ streamlet list
    $ streamlet run publishers-and-subscribers
    $ streamlet run networking --example multicast
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from ..config import PlaygroundConfig
from ..pubsub import AnyCancellable, cancel_all
from ..timer import TimerBase, create_timer

logger = logging.getLogger(__name__)

# Chapter name -> module defining `chapter`
CHAPTER_MODULES = {
    "publishers-and-subscribers": "streamlet.playground.publishers_and_subscribers",
    "networking": "streamlet.playground.networking",
    "debugging": "streamlet.playground.debugging",
    "timers": "streamlet.playground.timers",
}


@dataclass
class PlaygroundContext:
    """What every example receives.

    Attributes:
        config: Playground settings.
        client: Shared HTTP client for the networking examples.
        timer: Time source for the timer examples.
        subscriptions: Cancellables to keep alive until the chapter ends.
    """

    config: PlaygroundConfig
    client: httpx.AsyncClient
    timer: TimerBase
    subscriptions: set[AnyCancellable] = field(default_factory=set)

    async def settle(self, *events: asyncio.Event) -> bool:
        """Wait for ``events`` to be set, up to the configured request timeout.

        Returns False (and logs a warning) if the timeout expired first.
        """
        try:
            async with asyncio.timeout(self.config.request_timeout):
                for event in events:
                    await event.wait()
        except TimeoutError:
            logger.warning("Gave up waiting after %ss", self.config.request_timeout)
            return False
        return True


type ExampleFn = Callable[[PlaygroundContext], Awaitable[None] | None]


@dataclass
class Example:
    name: str
    fn: ExampleFn


class Chapter:
    """An ordered collection of named examples.

    Example:
        >>> chapter = Chapter("subjects", "Working with subjects")
        >>> @chapter.example("PassthroughSubject")
        ... def passthrough(ctx: PlaygroundContext) -> None:
        ...     ...
    """

    def __init__(self, name: str, title: str) -> None:
        self.name = name
        self.title = title
        self.examples: list[Example] = []

    def example(self, name: str) -> Callable[[ExampleFn], ExampleFn]:
        """Register the decorated function as the example ``name``."""

        def register(fn: ExampleFn) -> ExampleFn:
            if any(e.name == name for e in self.examples):
                raise ValueError(f"Chapter '{self.name}' already has an example named '{name}'")
            self.examples.append(Example(name, fn))
            return fn

        return register

    def get(self, name: str) -> Example:
        for example in self.examples:
            if example.name.lower() == name.lower():
                return example
        available = ", ".join(e.name for e in self.examples)
        raise KeyError(f"Chapter '{self.name}' has no example '{name}'. Available: {available}")


def get_chapter(name: str) -> Chapter:
    """Load the chapter registered under ``name``."""
    try:
        module_path = CHAPTER_MODULES[name]
    except KeyError:
        raise KeyError(f"Unknown chapter '{name}'. Available: {', '.join(CHAPTER_MODULES)}") from None
    module = importlib.import_module(module_path)
    return module.chapter


def print_header(name: str) -> None:
    print(f"\n——— Example of: {name} ———")


async def run_chapter(
    chapter: Chapter,
    config: PlaygroundConfig | None = None,
    *,
    only: str | None = None,
    client: httpx.AsyncClient | None = None,
    timer: TimerBase | None = None,
) -> None:
    """Run every example of ``chapter`` in order (or just ``only``).

    Args:
        chapter: Chapter to run.
        config: Playground settings. Defaults to :class:`PlaygroundConfig`.
        only: Name of a single example to run.
        client: HTTP client to use. When omitted one is created and closed.
        timer: Time source for timer examples. Defaults to one running at
            ``config.timer_speed``.
    """
    config = config or PlaygroundConfig()
    examples = [chapter.get(only)] if only is not None else chapter.examples
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.request_timeout, follow_redirects=True)

    ctx = PlaygroundContext(config=config, client=client, timer=timer or create_timer(config.timer_speed))
    try:
        for example in examples:
            print_header(example.name)
            logger.debug("Running %s / %s", chapter.name, example.name)
            result = example.fn(ctx)
            if inspect.isawaitable(result):
                await result
    finally:
        cancel_all(ctx.subscriptions)
        ctx.subscriptions.clear()
        if owns_client:
            await client.aclose()
