"""Publishers, subscribers, subjects and type erasure."""

from __future__ import annotations

import asyncio

from ..completion import Completion
from ..demand import Demand
from ..notifications import NotificationCenter
from ..publishers import Just, SequencePublisher
from ..pubsub import Subscriber, Subscription
from ..subjects import CurrentValueSubject, PassthroughSubject, Published
from . import Chapter, PlaygroundContext

chapter = Chapter("publishers-and-subscribers", "Publishers & Subscribers")


@chapter.example("Publisher")
def publisher(ctx: PlaygroundContext) -> None:
    my_notification = "MyNotification"
    center = NotificationCenter.default()

    # The publisher is created but nothing subscribes to it here
    center.publisher(my_notification)

    observer = center.add_observer(my_notification, lambda _: print("Notification received!"))
    center.post(my_notification)
    center.remove_observer(observer)


@chapter.example("Subscriber")
def subscriber(ctx: PlaygroundContext) -> None:
    my_notification = "MyNotification"
    center = NotificationCenter.default()

    subscription = center.publisher(my_notification).sink(
        lambda _: print("Notification received from a publisher!")
    )
    center.post(my_notification)
    subscription.cancel()


@chapter.example("Just")
def just(ctx: PlaygroundContext) -> None:
    just = Just("Hello world!")

    just.sink(
        receive_completion=lambda c: print("Received completion", c),
        receive_value=lambda v: print("Received value", v),
    )
    just.sink(
        receive_completion=lambda c: print("Received completion (another)", c),
        receive_value=lambda v: print("Received value (another)", v),
    )


@chapter.example("assign(to:on:)")
def assign_to_on(ctx: PlaygroundContext) -> None:
    class SomeObject:
        def __init__(self) -> None:
            self._value = ""

        @property
        def value(self) -> str:
            return self._value

        @value.setter
        def value(self, value: str) -> None:
            self._value = value
            print(value)

    obj = SomeObject()
    SequencePublisher(["Hello", "world!"]).assign(obj, "value")


@chapter.example("assign(to:)")
def assign_to(ctx: PlaygroundContext) -> None:
    class SomeObject:
        value = Published(0)

    obj = SomeObject()
    Published.publisher(obj, "value").sink(print).store(ctx.subscriptions)
    SequencePublisher(range(10)).assign(obj, "value")


@chapter.example("Custom Subscriber")
def custom_subscriber(ctx: PlaygroundContext) -> None:
    class IntSubscriber(Subscriber[int]):
        def on_subscribe(self, subscription: Subscription) -> None:
            print("Received subscription", subscription)
            subscription.request(Demand.max(3))
            print("Finish the request")

        def on_value(self, value: int) -> Demand:
            print("Received value", value)
            return Demand.max(1)

        def on_completion(self, completion: Completion) -> None:
            print("Received completion", completion)

    SequencePublisher(range(1, 7)).subscribe(IntSubscriber())


@chapter.example("PassthroughSubject")
def passthrough_subject(ctx: PlaygroundContext) -> None:
    class MyError(Exception):
        pass

    class StringSubscriber(Subscriber[str]):
        def on_subscribe(self, subscription: Subscription) -> None:
            subscription.request(Demand.max(2))

        def on_value(self, value: str) -> Demand:
            print("Received value", value)
            return Demand.max(1) if value == "World" else Demand.NONE

        def on_completion(self, completion: Completion) -> None:
            print("Received completion", completion)

    subject = PassthroughSubject[str]()
    subject.subscribe(StringSubscriber())

    subscription = subject.sink(
        receive_completion=lambda c: print("Received completion (sink)", c),
        receive_value=lambda v: print("Received value (sink)", v),
    )

    subject.send("Hello")
    subject.send("World")

    subscription.cancel()

    subject.send("Still there?")
    subject.send_completion(Completion.failure(MyError("test")))
    subject.send_completion(Completion.FINISHED)
    subject.send("How about another one?")


@chapter.example("CurrentValueSubject")
def current_value_subject(ctx: PlaygroundContext) -> None:
    subject = CurrentValueSubject(0)

    subject.print().sink(print).store(ctx.subscriptions)

    subject.send(1)
    subject.send(2)
    print(subject.value)

    subject.value = 3
    print(subject.value)

    subject.print().sink(lambda v: print("Second subscription:", v)).store(ctx.subscriptions)

    subject.send_completion(Completion.FINISHED)


@chapter.example("Dynamically")
def dynamically(ctx: PlaygroundContext) -> None:
    class IntSubscriber(Subscriber[int]):
        def on_subscribe(self, subscription: Subscription) -> None:
            subscription.request(Demand.max(2))

        def on_value(self, value: int) -> Demand:
            print("Received value", value)
            match value:
                case 1:
                    return Demand.max(2)
                case 3:
                    return Demand.max(1)
                case _:
                    return Demand.NONE

        def on_completion(self, completion: Completion) -> None:
            print("Received completion", completion)

    subject = PassthroughSubject[int]()
    subject.subscribe(IntSubscriber())
    for value in range(1, 7):
        subject.send(value)


@chapter.example("Type erasure")
def type_erasure(ctx: PlaygroundContext) -> None:
    subject = PassthroughSubject[int]()
    publisher = subject.erase_to_any_publisher()

    publisher.sink(print).store(ctx.subscriptions)
    subject.send(0)


@chapter.example("async/await")
async def async_await(ctx: PlaygroundContext) -> None:
    subject = CurrentValueSubject(0)
    values = subject.values()

    async def consume() -> None:
        async for element in values:
            print(f"Element: {element}")
        print("Completed")

    task = asyncio.create_task(consume())

    subject.send(1)
    subject.send(2)
    subject.send(3)
    subject.send_completion(Completion.FINISHED)

    await task
