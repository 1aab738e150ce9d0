"""Publisher, subscriber and subscription contracts.

Every producer in streamlet implements :class:`Publisher` and every consumer
implements :class:`Subscriber`. The two are bound by a :class:`Subscription`
through which the consumer declares demand:

1. ``publisher.subscribe(subscriber)`` creates a subscription and calls
   ``subscriber.on_subscribe(subscription)`` before returning.
2. The subscriber calls ``subscription.request(demand)``.
3. The publisher calls ``subscriber.on_value(value)`` at most as many times
   as demand allows. Each call returns *additional* demand.
4. The publisher calls ``subscriber.on_completion(completion)`` once, last.

Delivery is synchronous: values reach the subscriber on the caller's turn,
with no hidden queue in between.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, MutableSequence, MutableSet
from typing import TYPE_CHECKING, Any, TextIO

from .completion import Completion
from .demand import Demand

if TYPE_CHECKING:
    from .codecs import Codec
    from .multicast import Multicast
    from .publishers import AnyPublisher
    from .subjects import PassthroughSubject


class Cancellable(ABC):
    """Something that can be cancelled, such as a running subscription."""

    @abstractmethod
    def cancel(self) -> None:
        ...


class Subscription(Cancellable):
    """The live binding between one publisher and one subscriber."""

    @abstractmethod
    def request(self, demand: Demand) -> None:
        """Add ``demand`` to the outstanding demand.

        May deliver pending values synchronously before returning.
        """
        ...


class Subscriber[T](ABC):
    """A consumer that declares demand and receives values and completion."""

    @abstractmethod
    def on_subscribe(self, subscription: Subscription) -> None:
        """Called exactly once, before any value."""
        ...

    @abstractmethod
    def on_value(self, value: T) -> Demand:
        """Receive one value and return the additional demand (may be NONE)."""
        ...

    @abstractmethod
    def on_completion(self, completion: Completion) -> None:
        """Called at most once, after which no other callback follows."""
        ...


class AnyCancellable(Cancellable):
    """Type-erased cancellable wrapping a cancel action.

    Calling ``cancel()`` more than once runs the action only the first time.

    Example:
        >>> subscriptions: set[AnyCancellable] = set()
        >>> subject.sink(print).store(subscriptions)
    """

    def __init__(self, cancel: Callable[[], None] | Cancellable | None = None) -> None:
        if isinstance(cancel, Cancellable):
            cancel = cancel.cancel
        self._cancel = cancel

    @property
    def is_cancelled(self) -> bool:
        return self._cancel is None

    def cancel(self) -> None:
        action, self._cancel = self._cancel, None
        if action is not None:
            action()

    def store(
        self, collection: MutableSet[AnyCancellable] | MutableSequence[AnyCancellable]
    ) -> AnyCancellable:
        """Keep this cancellable in ``collection`` (a set or a list)."""
        if isinstance(collection, MutableSet):
            collection.add(self)
        else:
            collection.append(self)
        return self

    def __enter__(self) -> AnyCancellable:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


def cancel_all(cancellables: Iterable[Cancellable]) -> None:
    """Cancel every item in ``cancellables``."""
    for cancellable in list(cancellables):
        cancellable.cancel()


class Publisher[T](ABC):
    """A producer of values under demand control.

    Besides ``subscribe``, publishers expose the operator methods used to
    compose chains, e.g. ``publisher.map(f).scan(0, g).sink(print)``.
    """

    @abstractmethod
    def subscribe(self, subscriber: Subscriber[T]) -> None:
        ...

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def map[U](self, transform: Callable[[T], U]) -> Publisher[U]:
        from .operators import Map

        return Map(self, transform)

    def try_map[U](self, transform: Callable[[T], U]) -> Publisher[U]:
        """Like ``map``, but an exception from ``transform`` fails the stream."""
        from .operators import TryMap

        return TryMap(self, transform)

    def decode[U](self, type_: type[U], decoder: Codec[U] | None = None) -> Publisher[U]:
        """Decode each ``bytes`` value into ``type_`` (JSON by default)."""
        from .operators import decode

        return decode(self, type_, decoder)

    def scan[A](self, initial: A, accumulate: Callable[[A, T], A]) -> Publisher[A]:
        from .operators import Scan

        return Scan(self, initial, accumulate)

    def handle_events(
        self,
        receive_subscription: Callable[[Subscription], None] | None = None,
        receive_output: Callable[[T], None] | None = None,
        receive_completion: Callable[[Completion], None] | None = None,
        receive_cancel: Callable[[], None] | None = None,
        receive_request: Callable[[Demand], None] | None = None,
    ) -> Publisher[T]:
        from .operators import HandleEvents

        return HandleEvents(
            self,
            receive_subscription=receive_subscription,
            receive_output=receive_output,
            receive_completion=receive_completion,
            receive_cancel=receive_cancel,
            receive_request=receive_request,
        )

    def print(self, prefix: str = "", stream: TextIO | Any | None = None) -> Publisher[T]:
        """Write every lifecycle event to ``stream`` (stdout by default)."""
        from .operators import Print

        return Print(self, prefix, stream)

    def breakpoint(
        self,
        receive_subscription: Callable[[Subscription], bool] | None = None,
        receive_output: Callable[[T], bool] | None = None,
        receive_completion: Callable[[Completion], bool] | None = None,
        trap: Callable[[], None] | None = None,
    ) -> Publisher[T]:
        from .operators import Breakpoint

        return Breakpoint(
            self,
            receive_subscription=receive_subscription,
            receive_output=receive_output,
            receive_completion=receive_completion,
            trap=trap,
        )

    def multicast(
        self, subject_factory: Callable[[], PassthroughSubject[T]] | None = None
    ) -> Multicast[T]:
        """Share one upstream subscription between many subscribers.

        The upstream is subscribed only when ``connect()`` is called.
        """
        from .multicast import Multicast

        return Multicast(self, subject_factory)

    def erase_to_any_publisher(self) -> AnyPublisher[T]:
        from .publishers import AnyPublisher

        return AnyPublisher(self)

    # -------------------------------------------------------------------------
    # Terminal subscribers
    # -------------------------------------------------------------------------

    def sink(
        self,
        receive_value: Callable[[T], None] | None = None,
        receive_completion: Callable[[Completion], None] | None = None,
    ) -> AnyCancellable:
        """Subscribe with unlimited demand and return a cancellable."""
        from .sinks import Sink

        sink: Sink[T] = Sink(receive_value, receive_completion)
        self.subscribe(sink)
        return AnyCancellable(sink)

    def assign(self, obj: object, attribute: str) -> AnyCancellable:
        """Set ``obj.attribute`` to every value received."""
        from .sinks import Assign

        assign: Assign[T] = Assign(obj, attribute)
        self.subscribe(assign)
        return AnyCancellable(assign)

    def values(self, buffer_size: int | None = None) -> AsyncValues[T]:
        """Consume this publisher with ``async for``."""
        values: AsyncValues[T] = AsyncValues(buffer_size)
        self.subscribe(values)
        return values


class _Closed:
    """Sentinel value to signal end of stream."""

    def __init__(self, completion: Completion) -> None:
        self.completion = completion


class AsyncValues[T](Subscriber[T]):
    """Async iterator over a publisher's values.

    With ``buffer_size=None`` the subscription asks for unlimited demand and
    every value is queued. With a buffer size, that many values are requested
    up front and one more each time the consumer takes a value, so a subject
    drops what does not fit.

    Example:
        >>> async for value in subject.values():
        ...     print(value)
    """

    def __init__(self, buffer_size: int | None = None) -> None:
        if buffer_size is not None and buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self._buffer_size = buffer_size
        self._queue: asyncio.Queue[T | _Closed] = asyncio.Queue()
        self._subscription: Subscription | None = None
        self._closed = False

    def on_subscribe(self, subscription: Subscription) -> None:
        self._subscription = subscription
        if self._buffer_size is None:
            subscription.request(Demand.UNLIMITED)
        else:
            subscription.request(Demand.max(self._buffer_size))

    def on_value(self, value: T) -> Demand:
        self._queue.put_nowait(value)
        return Demand.NONE

    def on_completion(self, completion: Completion) -> None:
        self._subscription = None
        self._queue.put_nowait(_Closed(completion))

    def cancel(self) -> None:
        """Stop the upstream subscription and end iteration."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()
            self._queue.put_nowait(_Closed(Completion.FINISHED))

    def __aiter__(self) -> AsyncValues[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if isinstance(item, _Closed):
            self._closed = True
            if item.completion.error is not None:
                raise item.completion.error
            raise StopAsyncIteration
        if self._buffer_size is not None and self._subscription is not None:
            self._subscription.request(Demand.max(1))
        return item
