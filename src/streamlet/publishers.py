"""Publishers backed by fixed data, and the type-erased wrapper."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .completion import Completion
from .pubsub import Publisher, Subscriber
from .subscription import DemandSubscription


class _SequenceSubscription[T](DemandSubscription[T]):
    """Emits items from an iterator while demand lasts.

    One item is read ahead so that ``finished`` can follow the last item
    immediately, without waiting for more demand.
    """

    def __init__(self, subscriber: Subscriber[T], items: tuple[T, ...]) -> None:
        super().__init__(subscriber)
        self._items = items
        self._iterator: Iterator[T] = iter(items)
        self._exhausted = False
        self._next = self._advance()

    def _advance(self) -> T | None:
        try:
            return next(self._iterator)
        except StopIteration:
            self._exhausted = True
            return None

    def finish_if_empty(self) -> None:
        if self._exhausted and not self.is_terminated:
            self.complete(Completion.FINISHED)

    def _drain(self) -> None:
        while self._demand and not self.is_terminated and not self._exhausted:
            value = self._next
            self._next = self._advance()
            self.deliver(value)  # type: ignore[arg-type]
            if self._exhausted:
                self.complete(Completion.FINISHED)

    def _on_cancel(self) -> None:
        self._iterator = iter(())
        self._exhausted = True

    def __str__(self) -> str:
        return repr(list(self._items))


class SequencePublisher[T](Publisher[T]):
    """Publishes the items of a finite iterable, then finishes.

    Every subscriber gets its own pass over the items, delivered only as far
    as its demand allows.

    Example:
        >>> SequencePublisher(range(1, 4)).sink(print)
        1
        2
        3
    """

    def __init__(self, items: Iterable[T]) -> None:
        self.items: tuple[T, ...] = tuple(items)

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        subscription = _SequenceSubscription(subscriber, self.items)
        subscription.start()
        subscription.finish_if_empty()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.items)!r})"


class Just[T](SequencePublisher[T]):
    """Publishes a single value, then finishes."""

    def __init__(self, value: T) -> None:
        super().__init__((value,))
        self.value = value

    def __repr__(self) -> str:
        return f"Just({self.value!r})"


class Empty[T](SequencePublisher[T]):
    """Finishes immediately without publishing anything."""

    def __init__(self) -> None:
        super().__init__(())


class Fail[T](Publisher[T]):
    """Fails immediately with ``error``."""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        subscription: DemandSubscription[T] = DemandSubscription(subscriber)
        subscription.start()
        subscription.complete(Completion.failure(self.error))


class AnyPublisher[T](Publisher[T]):
    """Hides a concrete publisher type behind the publisher interface.

    Subscribing forwards to the wrapped publisher unchanged.
    """

    def __init__(self, publisher: Publisher[T]) -> None:
        if isinstance(publisher, AnyPublisher):
            publisher = publisher._publisher
        self._publisher = publisher

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        self._publisher.subscribe(subscriber)

    def erase_to_any_publisher(self) -> AnyPublisher[T]:
        return self

    def __repr__(self) -> str:
        return f"AnyPublisher({self._publisher!r})"
