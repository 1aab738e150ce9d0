"""Connectable publishers: attach consumers first, start producing later."""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Callable

from .completion import Completion
from .demand import Demand
from .operators import _OperatorSubscription
from .pubsub import AnyCancellable, Publisher, Subscriber, Subscription
from .subjects import PassthroughSubject

logger = logging.getLogger(__name__)


class ConnectablePublisher[T](Publisher[T]):
    """A publisher whose upstream work starts on :meth:`connect`."""

    @abstractmethod
    def connect(self) -> AnyCancellable:
        """Start producing. Cancelling the result stops production."""
        ...

    def autoconnect(self) -> Autoconnect[T]:
        """Wrap this publisher so the first subscriber triggers ``connect()``."""
        return Autoconnect(self)


class _SubjectForwarder[T](Subscriber[T]):
    """Feeds upstream values into a subject with unlimited demand."""

    def __init__(self, subject: PassthroughSubject[T]) -> None:
        self._subject = subject
        self.subscription: Subscription | None = None

    def on_subscribe(self, subscription: Subscription) -> None:
        self.subscription = subscription
        subscription.request(Demand.UNLIMITED)

    def on_value(self, value: T) -> Demand:
        self._subject.send(value)
        return Demand.NONE

    def on_completion(self, completion: Completion) -> None:
        self.subscription = None
        self._subject.send_completion(completion)

    def cancel(self) -> None:
        subscription, self.subscription = self.subscription, None
        if subscription is not None:
            subscription.cancel()


class Multicast[T](ConnectablePublisher[T]):
    """Shares one upstream subscription among all downstream subscribers.

    Subscribers attach to an internal subject, created once from
    ``subject_factory``. The upstream is subscribed only when
    :meth:`connect` is called, so several consumers can attach before any
    value is produced.

    Example:
        >>> shared = fetch.multicast(PassthroughSubject)
        >>> shared.sink(print).store(subscriptions)
        >>> shared.sink(log).store(subscriptions)
        >>> shared.connect().store(subscriptions)
    """

    def __init__(
        self,
        upstream: Publisher[T],
        subject_factory: Callable[[], PassthroughSubject[T]] | None = None,
    ) -> None:
        self.upstream = upstream
        self._subject_factory = subject_factory or PassthroughSubject
        self._subject: PassthroughSubject[T] | None = None
        self._connection: AnyCancellable | None = None

    @property
    def subject(self) -> PassthroughSubject[T]:
        if self._subject is None:
            self._subject = self._subject_factory()
        return self._subject

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.is_cancelled

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        self.subject.subscribe(subscriber)

    def connect(self) -> AnyCancellable:
        if self._connection is not None and not self._connection.is_cancelled:
            return self._connection
        logger.debug("Connecting multicast to %r", self.upstream)
        forwarder = _SubjectForwarder(self.subject)
        self._connection = AnyCancellable(forwarder.cancel)
        self.upstream.subscribe(forwarder)
        return self._connection


class _AutoconnectSubscription[T](_OperatorSubscription[T, T]):
    def __init__(self, downstream: Subscriber[T], owner: Autoconnect[T]) -> None:
        super().__init__(downstream)
        self._owner: Autoconnect[T] | None = owner

    def _release(self) -> None:
        owner, self._owner = self._owner, None
        if owner is not None:
            owner._release()

    def on_completion(self, completion: Completion) -> None:
        super().on_completion(completion)
        self._release()

    def cancel(self) -> None:
        super().cancel()
        self._release()


class Autoconnect[T](Publisher[T]):
    """Connects on the first subscription and disconnects after the last one.

    A subscriber that cancels or receives completion no longer counts. When
    none remain, the connection is cancelled; the next subscriber connects
    again.
    """

    def __init__(self, connectable: ConnectablePublisher[T]) -> None:
        self.connectable = connectable
        self._connection: AnyCancellable | None = None
        self._active = 0

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        self._active += 1
        self.connectable.subscribe(_AutoconnectSubscription(subscriber, self))
        if self._connection is None and self._active > 0:
            connection = self.connectable.connect()
            # Upstream may have completed every subscriber synchronously
            if self._active > 0:
                self._connection = connection
            else:
                connection.cancel()

    def _release(self) -> None:
        self._active -= 1
        if self._active == 0:
            connection, self._connection = self._connection, None
            if connection is not None:
                logger.debug("Last subscriber of %r left, disconnecting", self.connectable)
                connection.cancel()
