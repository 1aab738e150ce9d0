"""Named notifications with observer callbacks and a publisher bridge.

Usage:
    center = NotificationCenter.default()

    # Option 1: callback observer
    token = center.add_observer("MyNotification", lambda n: print(n.name))
    center.post("MyNotification")
    center.remove_observer(token)

    # Option 2: publisher
    subscription = center.publisher("MyNotification").sink(print)
    center.post("MyNotification")
    subscription.cancel()
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .pubsub import Publisher, Subscriber
from .subscription import DemandSubscription


@dataclass(frozen=True)
class Notification:
    """A posted notification.

    Attributes:
        name: Notification name observers register for.
        object: Optional sender; observers registered with an object only
            see notifications posted with that same object.
        user_info: Optional payload.
    """

    name: str
    object: Any = None
    user_info: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ObserverToken:
    """Handle returned by :meth:`NotificationCenter.add_observer`."""

    name: str
    id: int


@dataclass
class _Observer:
    token: ObserverToken
    callback: Callable[[Notification], None]
    sender: Any = None


class NotificationCenter:
    """Dispatches posted notifications to the observers registered for them.

    Observers run synchronously inside :meth:`post`, in registration order.
    """

    _default: ClassVar[NotificationCenter | None] = None

    def __init__(self) -> None:
        self._observers: dict[str, list[_Observer]] = {}
        self._ids = itertools.count(1)

    @classmethod
    def default(cls) -> NotificationCenter:
        """The process-wide notification center."""
        if cls._default is None:
            cls._default = cls()
        return cls._default

    def add_observer(
        self,
        name: str,
        callback: Callable[[Notification], None],
        obj: Any = None,
    ) -> ObserverToken:
        """Call ``callback`` for every notification named ``name``.

        If ``obj`` is given, only notifications posted with that object
        (compared by identity) are delivered.
        """
        token = ObserverToken(name, next(self._ids))
        self._observers.setdefault(name, []).append(_Observer(token, callback, obj))
        return token

    def remove_observer(self, token: ObserverToken) -> None:
        """Unregister an observer. Removing an unknown token does nothing."""
        observers = self._observers.get(token.name)
        if not observers:
            return
        remaining = [o for o in observers if o.token != token]
        if remaining:
            self._observers[token.name] = remaining
        else:
            del self._observers[token.name]

    def observer_count(self, name: str) -> int:
        return len(self._observers.get(name, ()))

    def post(self, name: str, obj: Any = None, user_info: Mapping[str, Any] | None = None) -> None:
        notification = Notification(name, obj, dict(user_info or {}))
        for observer in list(self._observers.get(name, ())):
            if observer.sender is not None and observer.sender is not obj:
                continue
            observer.callback(notification)

    def publisher(self, name: str, obj: Any = None) -> NotificationPublisher:
        """A publisher of the notifications named ``name``."""
        return NotificationPublisher(self, name, obj)


class _NotificationSubscription(DemandSubscription[Notification]):
    """Observes the center for as long as the subscription is live."""

    def __init__(self, subscriber: Subscriber[Notification], publisher: NotificationPublisher) -> None:
        super().__init__(subscriber)
        self._center: NotificationCenter | None = publisher.center
        self._name = publisher.name
        self._token = publisher.center.add_observer(publisher.name, self.deliver, publisher.obj)

    def _on_cancel(self) -> None:
        center, self._center = self._center, None
        if center is not None:
            center.remove_observer(self._token)

    def __str__(self) -> str:
        return f"NotificationCenter.publisher({self._name!r})"


class NotificationPublisher(Publisher[Notification]):
    """Publishes the notifications posted to ``center`` under ``name``.

    A notification posted while the subscriber has no outstanding demand is
    dropped for that subscriber. The publisher never completes on its own.
    """

    def __init__(self, center: NotificationCenter, name: str, obj: Any = None) -> None:
        self.center = center
        self.name = name
        self.obj = obj

    def subscribe(self, subscriber: Subscriber[Notification]) -> None:
        _NotificationSubscription(subscriber, self).start()
