"""Tests for the notification center and its publisher."""

from streamlet import Demand, Notification, NotificationCenter

from .test_utils import RecordingSubscriber


class TestNotificationCenter:
    def test_observer_receives_post(self) -> None:
        center = NotificationCenter()
        received: list[Notification] = []
        center.add_observer("MyNotification", received.append)

        center.post("MyNotification", user_info={"answer": 42})
        center.post("Other")

        assert [n.name for n in received] == ["MyNotification"]
        assert received[0].user_info == {"answer": 42}

    def test_remove_observer(self) -> None:
        center = NotificationCenter()
        received: list[Notification] = []
        token = center.add_observer("MyNotification", received.append)
        center.remove_observer(token)
        center.remove_observer(token)

        center.post("MyNotification")

        assert received == []
        assert center.observer_count("MyNotification") == 0

    def test_sender_filter(self) -> None:
        center = NotificationCenter()
        sender, other = object(), object()
        received: list[Notification] = []
        center.add_observer("Changed", received.append, obj=sender)

        center.post("Changed", other)
        center.post("Changed", sender)

        assert [n.object for n in received] == [sender]

    def test_default_is_shared(self) -> None:
        assert NotificationCenter.default() is NotificationCenter.default()


class TestNotificationPublisher:
    def test_publisher_delivers_and_stops_on_cancel(self) -> None:
        center = NotificationCenter()
        names: list[str] = []
        subscription = center.publisher("MyNotification").sink(lambda n: names.append(n.name))
        assert center.observer_count("MyNotification") == 1

        center.post("MyNotification")
        subscription.cancel()
        center.post("MyNotification")

        assert names == ["MyNotification"]
        assert center.observer_count("MyNotification") == 0

    def test_respects_demand(self) -> None:
        center = NotificationCenter()
        subscriber = RecordingSubscriber[Notification](Demand.max(1))
        center.publisher("Tick").subscribe(subscriber)

        center.post("Tick")
        center.post("Tick")

        assert len(subscriber.values) == 1
        assert subscriber.completion is None
