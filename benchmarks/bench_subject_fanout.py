"""Micro-benchmarks for synchronous delivery overhead."""

import asyncio

import pytest

from streamlet import Demand, PassthroughSubject, SequencePublisher, Subscriber

N = 1000


class Idle(Subscriber[int]):
    """Subscribes without ever requesting a value."""

    def on_subscribe(self, subscription):
        pass

    def on_value(self, value):
        return Demand.NONE

    def on_completion(self, completion):
        pass


class TestDeliveryMicroBenchmarks:
    """Where the per-value cost of a subscription goes."""

    @pytest.mark.benchmark(group="micro")
    def test_plain_callback_baseline(self, benchmark):
        """Calling the consumer directly, no subscription."""

        def run():
            received = []
            for i in range(N):
                received.append(i)
            return len(received)

        assert benchmark(run) == N

    @pytest.mark.benchmark(group="micro")
    def test_sequence_sink(self, benchmark):
        """Sequence publisher into a sink with unlimited demand."""
        publisher = SequencePublisher(range(N))

        def run():
            received = []
            publisher.sink(received.append)
            return len(received)

        assert benchmark(run) == N

    @pytest.mark.benchmark(group="micro")
    def test_operator_chain(self, benchmark):
        """map and scan between the sequence and the sink."""
        publisher = SequencePublisher(range(N)).map(lambda v: v * 2).scan(0, lambda acc, v: acc + v)

        def run():
            received = []
            publisher.sink(received.append)
            return received[-1]

        assert benchmark(run) == N * (N - 1)


class TestFanoutBenchmarks:
    @pytest.mark.benchmark(group="fanout")
    @pytest.mark.parametrize("subscribers", [1, 10, 100])
    def test_passthrough_fanout(self, benchmark, subscribers):
        """One subject, many unlimited sinks."""
        subject = PassthroughSubject[int]()
        counts = [0] * subscribers

        def make_counter(index):
            def count(_):
                counts[index] += 1

            return count

        for index in range(subscribers):
            subject.sink(make_counter(index))

        def run():
            for i in range(N):
                subject.send(i)

        benchmark(run)
        assert min(counts) >= N

    @pytest.mark.benchmark(group="fanout")
    def test_bounded_demand_drops(self, benchmark):
        """Subscribers without demand: the cost of checking and dropping."""
        subject = PassthroughSubject[int]()
        for _ in range(10):
            subject.subscribe(Idle())

        def run():
            for i in range(N):
                subject.send(i)

        benchmark(run)


class TestAsyncValuesBenchmarks:
    @pytest.mark.benchmark(group="async")
    def test_raw_queue_baseline(self, benchmark):
        """Raw asyncio.Queue baseline."""

        async def run():
            queue = asyncio.Queue()
            for i in range(N):
                queue.put_nowait(i)
            queue.put_nowait(None)
            count = 0
            while await queue.get() is not None:
                count += 1
            return count

        assert benchmark(lambda: asyncio.run(run())) == N

    @pytest.mark.benchmark(group="async")
    def test_values_iteration(self, benchmark):
        """async for over a sequence publisher."""
        publisher = SequencePublisher(range(N))

        async def run():
            count = 0
            async for _ in publisher.values():
                count += 1
            return count

        assert benchmark(lambda: asyncio.run(run())) == N
