"""Terminal subscribers that request unlimited demand."""

from __future__ import annotations

from collections.abc import Callable

from .completion import Completion
from .demand import Demand
from .pubsub import Cancellable, Subscriber, Subscription


class _Terminal[T](Subscriber[T], Cancellable):
    """Requests unlimited demand on subscribe and can be cancelled later."""

    def __init__(self) -> None:
        self._subscription: Subscription | None = None
        self._done = False

    def on_subscribe(self, subscription: Subscription) -> None:
        if self._done or self._subscription is not None:
            subscription.cancel()
            return
        self._subscription = subscription
        subscription.request(Demand.UNLIMITED)

    def on_completion(self, completion: Completion) -> None:
        self._subscription = None
        self._done = True

    def cancel(self) -> None:
        self._done = True
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()


class Sink[T](_Terminal[T]):
    """Calls ``receive_value`` for each value and ``receive_completion`` at the end."""

    def __init__(
        self,
        receive_value: Callable[[T], None] | None = None,
        receive_completion: Callable[[Completion], None] | None = None,
    ) -> None:
        super().__init__()
        self._receive_value = receive_value
        self._receive_completion = receive_completion

    def on_value(self, value: T) -> Demand:
        if self._receive_value is not None:
            self._receive_value(value)
        return Demand.NONE

    def on_completion(self, completion: Completion) -> None:
        super().on_completion(completion)
        if self._receive_completion is not None:
            self._receive_completion(completion)


class Assign[T](_Terminal[T]):
    """Sets ``obj.attribute`` to each value.

    Assigning to a :class:`~streamlet.subjects.Published` attribute
    republishes the value through that attribute's subject.
    """

    def __init__(self, obj: object, attribute: str) -> None:
        super().__init__()
        self._obj: object | None = obj
        self._attribute = attribute

    def on_value(self, value: T) -> Demand:
        if self._obj is not None:
            setattr(self._obj, self._attribute, value)
        return Demand.NONE

    def on_completion(self, completion: Completion) -> None:
        super().on_completion(completion)
        self._obj = None

    def cancel(self) -> None:
        super().cancel()
        self._obj = None
