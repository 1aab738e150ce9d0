"""Repeating work: scheduled callbacks, tick publishers and subjects."""

from __future__ import annotations

from ..subjects import PassthroughSubject
from ..timer import TimerPublisher, schedule_once, schedule_repeating
from . import Chapter, PlaygroundContext

chapter = Chapter("timers", "Timers")


@chapter.example("Using schedule_repeating")
async def using_schedule(ctx: PlaygroundContext) -> None:
    cancellable = schedule_repeating(
        ctx.config.timer_interval,
        lambda: print("Timer fired"),
        tolerance=0.1,
        timer=ctx.timer,
    )
    cancellable.store(ctx.subscriptions)

    schedule_once(ctx.config.timer_duration, cancellable.cancel, timer=ctx.timer).store(ctx.subscriptions)

    await ctx.timer.sleep(ctx.config.timer_duration)
    cancellable.cancel()


@chapter.example("Using the TimerPublisher class")
async def using_timer_publisher(ctx: PlaygroundContext) -> None:
    subscription = (
        TimerPublisher(ctx.config.timer_interval, timer=ctx.timer)
        .autoconnect()
        .scan(0, lambda counter, _: counter + 1)
        .sink(lambda counter: print(f"Counter is {counter}"))
    )
    subscription.store(ctx.subscriptions)

    await ctx.timer.sleep(ctx.config.timer_duration)
    subscription.cancel()


@chapter.example("Using a subject")
async def using_subject(ctx: PlaygroundContext) -> None:
    source = PassthroughSubject[int]()
    counter = 0

    def emit() -> None:
        nonlocal counter
        source.send(counter)
        counter += 1

    ticker = schedule_repeating(ctx.config.timer_interval, emit, timer=ctx.timer)
    ticker.store(ctx.subscriptions)
    source.sink(lambda value: print("Timer emitted", value)).store(ctx.subscriptions)

    await ctx.timer.sleep(ctx.config.timer_duration)
    ticker.cancel()
    source.send_completion()
