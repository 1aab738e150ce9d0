"""Subjects: publishers that are triggered from outside.

Two variants are provided:

- :class:`PassthroughSubject` forwards each sent value to the subscribers
  that currently have demand. Subscribers without demand miss the value;
  nothing is buffered.
- :class:`CurrentValueSubject` also remembers the latest value and hands it
  to every new subscriber before any later send.

:class:`Published` turns an instance attribute into a current-value subject,
so that assigning the attribute publishes the new value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, overload

from .completion import Completion
from .publishers import AnyPublisher
from .pubsub import Publisher, Subscriber
from .subscription import DemandSubscription

logger = logging.getLogger(__name__)


class _SubjectSubscription[T](DemandSubscription[T]):
    """Subscription attached to a subject's fan-out list."""

    def __init__(self, subject: Subject[T], subscriber: Subscriber[T]) -> None:
        super().__init__(subscriber)
        self._subject: Subject[T] | None = subject
        self._replay: Callable[[], T] | None = None

    def deliver(self, value: T) -> bool:
        delivered = super().deliver(value)
        if delivered:
            self._replay = None
        return delivered

    def _drain(self) -> None:
        if self._replay is not None and self._subject is not None:
            self.deliver(self._replay())

    def _on_cancel(self) -> None:
        subject, self._subject = self._subject, None
        if subject is not None:
            subject._detach(self)

    def __str__(self) -> str:
        return type(self._subject).__name__ if self._subject is not None else "Subject"


class Subject[T](Publisher[T]):
    """Base class for externally triggered publishers.

    Subscribers are served in the order they attached. Once a completion has
    been sent, the subject is terminated: further sends are ignored and late
    subscribers receive the completion right away.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_SubjectSubscription[T]] = []
        self._completion: Completion | None = None

    @property
    def completion(self) -> Completion | None:
        """The completion sent to this subject, if any."""
        return self._completion

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        subscription = _SubjectSubscription(self, subscriber)
        if self._completion is not None:
            subscription._subject = None
            subscription.start()
            subscription.complete(self._completion)
            return
        self._subscriptions.append(subscription)
        self._prepare(subscription)
        subscription.start()

    def send(self, value: T) -> None:
        """Deliver ``value`` to every subscriber that has demand for it."""
        if self._completion is not None:
            logger.debug("Ignoring value sent to %s after %s", type(self).__name__, self._completion)
            return
        for subscription in list(self._subscriptions):
            subscription.deliver(value)

    def send_completion(self, completion: Completion = Completion.FINISHED) -> None:
        """Complete every attached subscription and detach them all."""
        if self._completion is not None:
            logger.debug("Ignoring %s sent to %s after %s", completion, type(self).__name__, self._completion)
            return
        self._completion = completion
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription._subject = None
            subscription.complete(completion)

    def _detach(self, subscription: _SubjectSubscription[T]) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def _prepare(self, subscription: _SubjectSubscription[T]) -> None:
        """Hook run before a new subscription is handed to its subscriber."""
        pass


class PassthroughSubject[T](Subject[T]):
    """Stateless fan-out subject.

    Example:
        >>> subject = PassthroughSubject[str]()
        >>> subscription = subject.sink(print)
        >>> subject.send("Hello")
        Hello
    """

    pass


class CurrentValueSubject[T](Subject[T]):
    """Subject that holds the latest value and replays it to new subscribers.

    Writing :attr:`value` is the same as calling :meth:`send`.

    Example:
        >>> subject = CurrentValueSubject(0)
        >>> subscription = subject.sink(print)
        0
        >>> subject.value = 3
        3
    """

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self.send(value)

    def send(self, value: T) -> None:
        if self._completion is not None:
            logger.debug("Ignoring value sent to CurrentValueSubject after %s", self._completion)
            return
        self._value = value
        super().send(value)

    def _prepare(self, subscription: _SubjectSubscription[T]) -> None:
        subscription._replay = lambda: self._value


class Published[T]:
    """Descriptor that publishes every assignment to an attribute.

    Each instance gets its own :class:`CurrentValueSubject`, created on first
    access with the descriptor's default.

    Example:
        >>> class Thermostat:
        ...     temperature = Published(20)
        >>> t = Thermostat()
        >>> Published.publisher(t, "temperature").sink(print)
        20
        >>> t.temperature = 21
        21
    """

    def __init__(self, default: T) -> None:
        self.default = default
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def subject(self, obj: object) -> CurrentValueSubject[T]:
        """The subject backing this attribute on ``obj``."""
        key = f"_published_{self.name}"
        subject: CurrentValueSubject[T] | None = obj.__dict__.get(key)
        if subject is None:
            subject = CurrentValueSubject(self.default)
            obj.__dict__[key] = subject
        return subject

    @overload
    def __get__(self, obj: None, objtype: type | None = None) -> Published[T]: ...

    @overload
    def __get__(self, obj: object, objtype: type | None = None) -> T: ...

    def __get__(self, obj: object | None, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return self.subject(obj).value

    def __set__(self, obj: object, value: T) -> None:
        self.subject(obj).send(value)

    @staticmethod
    def publisher(obj: object, name: str) -> AnyPublisher[Any]:
        """The publisher for the published attribute ``name`` of ``obj``."""
        descriptor = getattr(type(obj), name, None)
        if not isinstance(descriptor, Published):
            raise AttributeError(f"{type(obj).__name__}.{name} is not a Published attribute")
        return descriptor.subject(obj).erase_to_any_publisher()
