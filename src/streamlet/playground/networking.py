"""Fetching and decoding JSON over HTTP, and sharing one request."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from ..completion import Completion
from ..networking import DataResponse, DataTaskPublisher
from ..subjects import PassthroughSubject
from . import Chapter, PlaygroundContext

chapter = Chapter("networking", "Networking")


@dataclass
class Sample:
    id: int
    title: str
    price: int


def _report_failure(label: str, done: asyncio.Event):
    def receive_completion(completion: Completion) -> None:
        if completion.error is not None:
            print(f"{label}Retrieving data failed with error", completion.error)
        done.set()

    return receive_completion


@chapter.example("dataTaskPublisher")
async def data_task_publisher(ctx: PlaygroundContext) -> None:
    done = asyncio.Event()

    def receive_value(item: DataResponse) -> None:
        print(f"Retrieved data of size {len(item.data)}, response = {item.response!r}")

    DataTaskPublisher(ctx.config.url, client=ctx.client).sink(
        receive_value, _report_failure("", done)
    ).store(ctx.subscriptions)

    await ctx.settle(done)


@chapter.example("decode")
async def decode(ctx: PlaygroundContext) -> None:
    done = asyncio.Event()

    (
        DataTaskPublisher(ctx.config.url, client=ctx.client)
        .map(DataResponse.body)
        .decode(Sample)
        .sink(lambda obj: print("Retrieved data", obj), _report_failure("", done))
        .store(ctx.subscriptions)
    )

    await ctx.settle(done)


@chapter.example("multicast")
async def multicast(ctx: PlaygroundContext) -> None:
    first, second = asyncio.Event(), asyncio.Event()

    publisher = (
        DataTaskPublisher(ctx.config.url, client=ctx.client)
        .map(DataResponse.body)
        .decode(Sample)
        .multicast(PassthroughSubject)
    )

    publisher.sink(
        lambda obj: print("Sink1 Retrieved data", obj), _report_failure("Sink1 ", first)
    ).store(ctx.subscriptions)
    publisher.sink(
        lambda obj: print("Sink2 Retrieved data", obj), _report_failure("Sink2 ", second)
    ).store(ctx.subscriptions)

    publisher.connect().store(ctx.subscriptions)

    await ctx.settle(first, second)
