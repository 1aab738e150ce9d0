"""Tests for multicast and autoconnect."""

from streamlet import (
    Completion,
    Demand,
    Multicast,
    PassthroughSubject,
    Publisher,
    SequencePublisher,
    Subscriber,
)

from .test_utils import RecordingSubscriber


class CountingPublisher[T](Publisher[T]):
    """Wraps a publisher and counts subscriptions to it."""

    def __init__(self, upstream: Publisher[T]) -> None:
        self.upstream = upstream
        self.subscriptions = 0

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        self.subscriptions += 1
        self.upstream.subscribe(subscriber)


class TestMulticast:
    def test_single_upstream_subscription(self) -> None:
        """Two subscribers and one connect: upstream subscribed once, same values."""
        upstream = CountingPublisher(SequencePublisher(["a", "b", "c"]))
        shared = upstream.multicast(PassthroughSubject)
        first, second = RecordingSubscriber[str](), RecordingSubscriber[str]()
        shared.subscribe(first)
        shared.subscribe(second)
        assert upstream.subscriptions == 0

        shared.connect()

        assert upstream.subscriptions == 1
        assert first.values == second.values == ["a", "b", "c"]
        assert first.completions == second.completions == [Completion.FINISHED]

    def test_connect_twice_returns_same_connection(self) -> None:
        upstream = CountingPublisher(PassthroughSubject[int]())
        shared = Multicast(upstream)

        connection = shared.connect()

        assert shared.connect() is connection
        assert shared.is_connected
        assert upstream.subscriptions == 1

    def test_cancel_connection_stops_upstream(self) -> None:
        source = PassthroughSubject[int]()
        shared = source.multicast()
        subscriber = RecordingSubscriber[int]()
        shared.subscribe(subscriber)
        connection = shared.connect()

        source.send(1)
        connection.cancel()
        source.send(2)

        assert subscriber.values == [1]
        assert source.subscriber_count == 0
        assert not shared.is_connected

    def test_subscriber_demand_respected(self) -> None:
        source = PassthroughSubject[int]()
        shared = source.multicast()
        limited = RecordingSubscriber[int](Demand.max(1))
        shared.subscribe(limited)
        shared.connect()

        source.send(1)
        source.send(2)

        assert limited.values == [1]


class TestAutoconnect:
    def test_connects_on_first_subscriber(self) -> None:
        source = PassthroughSubject[int]()
        upstream = CountingPublisher(source)
        auto = upstream.multicast().autoconnect()
        assert upstream.subscriptions == 0

        first = RecordingSubscriber[int]()
        auto.subscribe(first)
        auto.subscribe(RecordingSubscriber[int]())
        source.send(1)

        assert upstream.subscriptions == 1
        assert first.values == [1]
        assert auto.is_connected

    def test_disconnects_after_last_cancel(self) -> None:
        source = PassthroughSubject[int]()
        auto = source.multicast().autoconnect()
        first = auto.sink()
        second = auto.sink()

        first.cancel()
        assert source.subscriber_count == 1
        second.cancel()

        assert source.subscriber_count == 0
        assert not auto.is_connected

    def test_synchronous_upstream_completes(self) -> None:
        """An upstream that finishes during connect leaves nothing connected."""
        auto = SequencePublisher([1, 2]).multicast().autoconnect()
        subscriber = RecordingSubscriber[int]()
        auto.subscribe(subscriber)

        assert subscriber.values == [1, 2]
        assert subscriber.completions == [Completion.FINISHED]
        assert not auto.is_connected
