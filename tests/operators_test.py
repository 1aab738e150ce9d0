"""Tests for transforming and debugging operators."""

from dataclasses import dataclass

import pytest

from streamlet import (
    Codec,
    Completion,
    DecodeError,
    Demand,
    JSONCodec,
    PassthroughSubject,
    SequencePublisher,
    StringCodec,
)
from streamlet.operators import _Operator

from .test_utils import ListStream, RecordingSubscriber


@dataclass
class Sample:
    id: int
    title: str


# =============================================================================
# Transforming operators
# =============================================================================


class TestMap:
    def test_map(self) -> None:
        subscriber = RecordingSubscriber[str]()
        SequencePublisher([1, 2, 3]).map(lambda v: f"#{v}").subscribe(subscriber)

        assert subscriber.values == ["#1", "#2", "#3"]
        assert subscriber.completions == [Completion.FINISHED]

    def test_demand_passes_through(self) -> None:
        subscriber = RecordingSubscriber[int](Demand.max(2))
        SequencePublisher(range(10)).map(lambda v: v * 10).subscribe(subscriber)

        assert subscriber.values == [0, 10]
        assert subscriber.completion is None

    def test_cancel_reaches_upstream(self) -> None:
        subject = PassthroughSubject[int]()
        subscriber = RecordingSubscriber[int]()
        subject.map(lambda v: v + 1).subscribe(subscriber)
        assert subject.subscriber_count == 1

        assert subscriber.subscription is not None
        subscriber.subscription.cancel()

        assert subject.subscriber_count == 0


class TestTryMap:
    def test_exception_fails_stream(self) -> None:
        subject = PassthroughSubject[int]()
        subscriber = RecordingSubscriber[float]()
        subject.try_map(lambda v: 1 / v).subscribe(subscriber)

        subject.send(2)
        subject.send(0)
        subject.send(4)

        assert subscriber.values == [0.5]
        assert subscriber.completion is not None
        assert isinstance(subscriber.completion.error, ZeroDivisionError)
        assert subject.subscriber_count == 0


class TestDecode:
    def test_decode_json(self) -> None:
        subscriber = RecordingSubscriber[Sample]()
        payload = b'{"id": 1, "title": "Phone"}'
        SequencePublisher([payload]).decode(Sample).subscribe(subscriber)

        assert subscriber.values == [Sample(id=1, title="Phone")]
        assert subscriber.completions == [Completion.FINISHED]

    def test_decode_failure_is_decode_error(self) -> None:
        subscriber = RecordingSubscriber[Sample]()
        SequencePublisher([b'{"id": "x"}']).decode(Sample).subscribe(subscriber)

        assert subscriber.values == []
        assert subscriber.completion is not None
        assert isinstance(subscriber.completion.error, DecodeError)

    def test_invalid_json(self) -> None:
        subscriber = RecordingSubscriber[Sample]()
        SequencePublisher([b"not json"]).decode(Sample).subscribe(subscriber)

        assert subscriber.completion is not None
        assert isinstance(subscriber.completion.error, DecodeError)

    def test_custom_decoder(self) -> None:
        subscriber = RecordingSubscriber[str]()
        SequencePublisher([b"caf\xc3\xa9", b"\xff"]).decode(str, StringCodec()).subscribe(subscriber)

        assert subscriber.values == ["café"]
        assert subscriber.completion is not None
        assert isinstance(subscriber.completion.error, DecodeError)

    def test_foreign_decoder_errors_are_wrapped(self) -> None:
        class Broken(StringCodec):
            def decode(self, data):
                raise KeyError("missing")

        subscriber = RecordingSubscriber[str]()
        SequencePublisher([b"x"]).decode(str, Broken()).subscribe(subscriber)

        assert subscriber.completion is not None
        error = subscriber.completion.error
        assert isinstance(error, DecodeError)
        assert isinstance(error.__cause__, KeyError)


class TestCodecBase:
    def test_codec_is_abstract(self) -> None:
        with pytest.raises(TypeError, match="abstract"):
            Codec()

    def test_codec_without_decode_is_abstract(self) -> None:
        class EncodeOnly(Codec[str]):
            def encode(self, item: str) -> bytes:
                return item.encode()

        with pytest.raises(TypeError, match="decode"):
            EncodeOnly()


class TestOperatorBase:
    def test_operator_without_link_is_abstract(self) -> None:
        class Unlinked(_Operator[int, int]):
            pass

        with pytest.raises(TypeError, match="_link"):
            Unlinked(SequencePublisher([1]))


class TestJSONCodec:
    def test_encode(self) -> None:
        codec = JSONCodec(Sample)
        assert codec.decode(codec.encode(Sample(2, "Lamp"))) == Sample(2, "Lamp")

    def test_list_type(self) -> None:
        assert JSONCodec(list[int]).decode(b"[1, 2]") == [1, 2]


class TestScan:
    def test_running_total(self) -> None:
        subscriber = RecordingSubscriber[int]()
        SequencePublisher([1, 2, 3, 4]).scan(0, lambda acc, v: acc + v).subscribe(subscriber)
        assert subscriber.values == [1, 3, 6, 10]

    def test_each_subscriber_has_own_accumulator(self) -> None:
        subject = PassthroughSubject[int]()
        first, second = RecordingSubscriber[int](), RecordingSubscriber[int]()
        counter = subject.scan(0, lambda count, _: count + 1)
        counter.subscribe(first)
        subject.send(0)
        counter.subscribe(second)
        subject.send(0)

        assert first.values == [1, 2]
        assert second.values == [1]


# =============================================================================
# Debugging operators
# =============================================================================


class TestHandleEvents:
    def test_hooks_run_in_order(self) -> None:
        events: list[str] = []
        publisher = SequencePublisher(["a"]).handle_events(
            receive_subscription=lambda _: events.append("subscription"),
            receive_request=lambda d: events.append(f"request {d}"),
            receive_output=lambda v: events.append(f"output {v}"),
            receive_completion=lambda c: events.append(f"completion {c}"),
        )
        publisher.sink()

        assert events == [
            "subscription",
            "request unlimited",
            "output a",
            "completion finished",
        ]

    def test_receive_cancel(self) -> None:
        events: list[str] = []
        subject = PassthroughSubject[int]()
        cancellable = subject.handle_events(receive_cancel=lambda: events.append("cancel")).sink()

        cancellable.cancel()
        cancellable.cancel()

        assert events == ["cancel"]


class TestPrint:
    def test_lifecycle_lines(self) -> None:
        stream = ListStream()
        SequencePublisher([1, 2]).print("seq", stream=stream).sink()

        assert stream.lines == [
            "seq: receive subscription: ([1, 2])",
            "seq: request unlimited",
            "seq: receive value: (1)",
            "seq: receive value: (2)",
            "seq: receive finished",
        ]

    def test_limited_request_and_cancel(self) -> None:
        stream = ListStream()
        subject = PassthroughSubject[str]()
        subscriber = RecordingSubscriber[str](Demand.max(1), on_value=lambda _: Demand.max(1))
        subject.print(stream=stream).subscribe(subscriber)

        subject.send("x")
        assert subscriber.subscription is not None
        subscriber.subscription.cancel()

        assert stream.lines == [
            "receive subscription: (PassthroughSubject)",
            "request max: (1)",
            "receive value: (x)",
            "request max: (1) (synchronous)",
            "receive cancel",
        ]

    def test_error_line(self) -> None:
        stream = ListStream()
        subject = PassthroughSubject[int]()
        subject.print(stream=stream).sink()
        subject.send_completion(Completion.failure(ValueError("bad")))

        assert stream.lines[-1] == "receive error: (ValueError('bad'))"

    def test_default_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        SequencePublisher([7]).print().sink()
        out = capsys.readouterr().out
        assert "receive value: (7)\n" in out


class TestBreakpoint:
    def test_trap_on_matching_value(self) -> None:
        trapped: list[int] = []
        received: list[int] = []
        values = iter(range(1, 5))
        subject = PassthroughSubject[int]()
        subject.breakpoint(
            receive_output=lambda v: v > 2,
            trap=lambda: trapped.append(len(received)),
        ).sink(received.append)

        for value in values:
            subject.send(value)

        assert received == [1, 2, 3, 4]
        assert trapped == [2, 3]

    def test_default_trap_uses_breakpointhook(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[str] = []
        monkeypatch.setattr("sys.breakpointhook", lambda: calls.append("hook"))

        SequencePublisher([1]).breakpoint(receive_completion=lambda c: c.is_finished).sink()

        assert calls == ["hook"]
