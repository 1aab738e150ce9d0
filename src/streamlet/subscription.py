"""Demand bookkeeping shared by every streamlet producer.

A producer creates one :class:`DemandSubscription` per attached subscriber
and pushes values through :meth:`DemandSubscription.deliver`. The
subscription enforces the back-pressure contract:

- a value is delivered only while outstanding demand is positive,
- the demand returned by ``on_value`` is added back,
- completion is delivered at most once,
- after cancel or completion the subscriber reference is released and every
  further call is a no-op.

Producers that can emit eagerly (sequences, replaying subjects) override
:meth:`_drain`, which runs whenever demand is added. Requests issued from
inside ``on_value`` while a drain is running only add demand; the running
drain loop picks it up, so delivery never recurses.
"""

from __future__ import annotations

import logging
from typing import Any

from .completion import Completion
from .demand import Demand
from .pubsub import Subscriber, Subscription

logger = logging.getLogger(__name__)


class DemandSubscription[T](Subscription):
    """Subscription that tracks outstanding demand for one subscriber."""

    def __init__(self, subscriber: Subscriber[T]) -> None:
        self._subscriber: Subscriber[T] | None = subscriber
        self._demand = Demand.NONE
        self._cancelled = False
        self._completed = False
        self._draining = False

    @property
    def demand(self) -> Demand:
        """Outstanding demand (values the subscriber will still accept)."""
        return self._demand

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_terminated(self) -> bool:
        return self._subscriber is None

    # -------------------------------------------------------------------------
    # Subscription interface
    # -------------------------------------------------------------------------

    def request(self, demand: Demand) -> None:
        if self._subscriber is None:
            return
        self._demand = self._demand + demand
        if self._draining:
            return
        self._draining = True
        try:
            self._drain()
        finally:
            self._draining = False

    def cancel(self) -> None:
        if self._subscriber is None:
            return
        self._cancelled = True
        self._subscriber = None
        self._demand = Demand.NONE
        self._on_cancel()

    # -------------------------------------------------------------------------
    # Producer side
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Hand the subscription to the subscriber.

        Producers call this from ``subscribe`` once they are ready to serve
        requests. Any pending values are drained if the subscriber asked for
        demand inside ``on_subscribe``.
        """
        subscriber = self._subscriber
        if subscriber is not None:
            subscriber.on_subscribe(self)

    def deliver(self, value: T) -> bool:
        """Deliver one value if demand allows. Returns whether it was delivered."""
        subscriber = self._subscriber
        if subscriber is None or not self._demand:
            return False
        self._demand = self._demand - 1
        additional = Demand.of(subscriber.on_value(value))
        if self._subscriber is not None:
            self._demand = self._demand + additional
        return True

    def complete(self, completion: Completion) -> None:
        """Deliver ``completion`` unless the subscription already ended."""
        subscriber = self._subscriber
        if subscriber is None:
            if not self._cancelled:
                logger.debug("Ignoring %s on completed %r", completion, self)
            return
        self._completed = True
        self._subscriber = None
        self._demand = Demand.NONE
        subscriber.on_completion(completion)

    def _drain(self) -> None:
        """Deliver pending values after demand was added."""
        pass

    def _on_cancel(self) -> None:
        """Release producer-side resources after cancel."""
        pass

    def __str__(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        state: Any = "cancelled" if self._cancelled else "completed" if self._completed else self._demand
        return f"<{type(self).__name__} {state}>"
