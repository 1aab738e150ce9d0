"""Watching a stream: timed print output, event hooks and breakpoints."""

from __future__ import annotations

import asyncio

from ..completion import Completion
from ..logging import TimeLogger
from ..networking import DataResponse, DataTaskPublisher
from ..publishers import SequencePublisher
from . import Chapter, PlaygroundContext

chapter = Chapter("debugging", "Debugging")


@chapter.example("TimeLogger")
def time_logger(ctx: PlaygroundContext) -> None:
    SequencePublisher(range(1, 4)).print("publisher", stream=TimeLogger()).sink()


@chapter.example("handleEvents")
async def handle_events(ctx: PlaygroundContext) -> None:
    done = asyncio.Event()

    def receive_completion(completion: Completion) -> None:
        print(f"Sink received completion: {completion}")
        done.set()

    def receive_value(item: DataResponse) -> None:
        print(f"Sink received data: {len(item.data)} bytes")

    (
        DataTaskPublisher(ctx.config.url, client=ctx.client)
        .handle_events(
            receive_subscription=lambda _: print("Network request will start"),
            receive_output=lambda _: print("Network request data received"),
            receive_cancel=lambda: print("Network request cancelled"),
        )
        .sink(receive_value, receive_completion)
        .store(ctx.subscriptions)
    )

    await ctx.settle(done)


@chapter.example("breakpoint")
def breakpoint_example(ctx: PlaygroundContext) -> None:
    last: list[int] = []

    def above_five(value: int) -> bool:
        last[:] = [value]
        return value > 5

    def report() -> None:
        print(f"Would stop in the debugger at value {last[0]}")

    (
        SequencePublisher(range(1, 11))
        .breakpoint(receive_output=above_five, trap=None if ctx.config.debugger else report)
        .sink()
    )
