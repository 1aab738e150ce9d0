"""Operators that sit between a publisher and its subscribers.

Each operator subscription subscribes upstream on behalf of one downstream
subscriber. Demand requested downstream is forwarded upstream unchanged, and
cancelling downstream cancels upstream.
"""

from __future__ import annotations

import builtins
import sys
from abc import abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .completion import Completion
from .demand import Demand
from .errors import DecodeError
from .pubsub import Publisher, Subscriber, Subscription

if TYPE_CHECKING:
    from .codecs import Codec


class _OperatorSubscription[In, Out](Subscriber[In], Subscription):
    """Upstream subscriber and downstream subscription for one operator link."""

    def __init__(self, downstream: Subscriber[Out]) -> None:
        self._downstream: Subscriber[Out] | None = downstream
        self._upstream: Subscription | None = None

    # Upstream side

    def on_subscribe(self, subscription: Subscription) -> None:
        if self._upstream is not None or self._downstream is None:
            subscription.cancel()
            return
        self._upstream = subscription
        self._downstream.on_subscribe(self)

    def on_value(self, value: In) -> Demand:
        downstream = self._downstream
        if downstream is None:
            return Demand.NONE
        return Demand.of(downstream.on_value(self._transform(value)))

    def on_completion(self, completion: Completion) -> None:
        downstream, self._downstream = self._downstream, None
        self._upstream = None
        if downstream is not None:
            downstream.on_completion(completion)

    def _transform(self, value: In) -> Out:
        return value  # type: ignore[return-value]

    # Downstream side

    def request(self, demand: Demand) -> None:
        if self._upstream is not None:
            self._upstream.request(demand)

    def cancel(self) -> None:
        upstream, self._upstream = self._upstream, None
        self._downstream = None
        if upstream is not None:
            upstream.cancel()

    def fail(self, error: BaseException) -> None:
        """Cancel upstream and complete downstream with ``error``."""
        downstream, self._downstream = self._downstream, None
        upstream, self._upstream = self._upstream, None
        if upstream is not None:
            upstream.cancel()
        if downstream is not None:
            downstream.on_completion(Completion.failure(error))

    def __str__(self) -> str:
        return type(self).__name__.strip("_").removesuffix("Subscription")


class _Operator[In, Out](Publisher[Out]):
    """Publisher that wraps ``upstream`` with one operator subscription per subscriber."""

    def __init__(self, upstream: Publisher[In]) -> None:
        self.upstream = upstream

    def subscribe(self, subscriber: Subscriber[Out]) -> None:
        self.upstream.subscribe(self._link(subscriber))

    @abstractmethod
    def _link(self, subscriber: Subscriber[Out]) -> _OperatorSubscription[In, Out]: ...


# =============================================================================
# Transforming operators
# =============================================================================


class _MapSubscription[In, Out](_OperatorSubscription[In, Out]):
    def __init__(self, downstream: Subscriber[Out], transform: Callable[[In], Out]) -> None:
        super().__init__(downstream)
        self._fn = transform

    def _transform(self, value: In) -> Out:
        return self._fn(value)


class Map[In, Out](_Operator[In, Out]):
    def __init__(self, upstream: Publisher[In], transform: Callable[[In], Out]) -> None:
        super().__init__(upstream)
        self.transform = transform

    def _link(self, subscriber: Subscriber[Out]) -> _OperatorSubscription[In, Out]:
        return _MapSubscription(subscriber, self.transform)


class _TryMapSubscription[In, Out](_MapSubscription[In, Out]):
    def on_value(self, value: In) -> Demand:
        downstream = self._downstream
        if downstream is None:
            return Demand.NONE
        try:
            output = self._fn(value)
        except Exception as e:
            self.fail(e)
            return Demand.NONE
        return Demand.of(downstream.on_value(output))


class TryMap[In, Out](Map[In, Out]):
    """Map with a transform that may raise; the exception fails the stream."""

    def _link(self, subscriber: Subscriber[Out]) -> _OperatorSubscription[In, Out]:
        return _TryMapSubscription(subscriber, self.transform)


def decode[T](upstream: Publisher[bytes], type_: type[T], decoder: Codec[T] | None = None) -> TryMap[bytes, T]:
    """Decode each ``bytes`` value with ``decoder`` (JSON into ``type_`` by default).

    Decoder exceptions that are not already a :class:`DecodeError` are
    wrapped in one.
    """
    if decoder is None:
        from .codecs import JSONCodec

        decoder = JSONCodec(type_)
    codec = decoder

    def _decode(data: bytes) -> T:
        try:
            return codec.decode(data)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Could not decode {type_.__name__}: {e}") from e

    return TryMap(upstream, _decode)


class _ScanSubscription[In, Acc](_OperatorSubscription[In, Acc]):
    def __init__(self, downstream: Subscriber[Acc], initial: Acc, accumulate: Callable[[Acc, In], Acc]) -> None:
        super().__init__(downstream)
        self._accumulator = initial
        self._accumulate = accumulate

    def _transform(self, value: In) -> Acc:
        self._accumulator = self._accumulate(self._accumulator, value)
        return self._accumulator


class Scan[In, Acc](_Operator[In, Acc]):
    """Publishes the running result of ``accumulate`` over the upstream values."""

    def __init__(self, upstream: Publisher[In], initial: Acc, accumulate: Callable[[Acc, In], Acc]) -> None:
        super().__init__(upstream)
        self.initial = initial
        self.accumulate = accumulate

    def _link(self, subscriber: Subscriber[Acc]) -> _OperatorSubscription[In, Acc]:
        return _ScanSubscription(subscriber, self.initial, self.accumulate)


# =============================================================================
# Debugging operators
# =============================================================================


class _HandleEventsSubscription[T](_OperatorSubscription[T, T]):
    def __init__(self, downstream: Subscriber[T], hooks: HandleEvents[T]) -> None:
        super().__init__(downstream)
        self._hooks = hooks

    def on_subscribe(self, subscription: Subscription) -> None:
        if self._hooks.receive_subscription is not None:
            self._hooks.receive_subscription(subscription)
        super().on_subscribe(subscription)

    def on_value(self, value: T) -> Demand:
        if self._hooks.receive_output is not None:
            self._hooks.receive_output(value)
        return super().on_value(value)

    def on_completion(self, completion: Completion) -> None:
        if self._hooks.receive_completion is not None:
            self._hooks.receive_completion(completion)
        super().on_completion(completion)

    def request(self, demand: Demand) -> None:
        if self._hooks.receive_request is not None:
            self._hooks.receive_request(demand)
        super().request(demand)

    def cancel(self) -> None:
        if self._upstream is not None and self._hooks.receive_cancel is not None:
            self._hooks.receive_cancel()
        super().cancel()


class HandleEvents[T](_Operator[T, T]):
    """Runs side-effect hooks for each lifecycle event, passing events through."""

    def __init__(
        self,
        upstream: Publisher[T],
        *,
        receive_subscription: Callable[[Subscription], None] | None = None,
        receive_output: Callable[[T], None] | None = None,
        receive_completion: Callable[[Completion], None] | None = None,
        receive_cancel: Callable[[], None] | None = None,
        receive_request: Callable[[Demand], None] | None = None,
    ) -> None:
        super().__init__(upstream)
        self.receive_subscription = receive_subscription
        self.receive_output = receive_output
        self.receive_completion = receive_completion
        self.receive_cancel = receive_cancel
        self.receive_request = receive_request

    def _link(self, subscriber: Subscriber[T]) -> _OperatorSubscription[T, T]:
        return _HandleEventsSubscription(subscriber, self)


def _format_request(demand: Demand) -> str:
    if demand.is_unlimited:
        return "request unlimited"
    return f"request max: ({demand.limit})"


class _PrintSubscription[T](_OperatorSubscription[T, T]):
    def __init__(self, downstream: Subscriber[T], printer: Print[T]) -> None:
        super().__init__(downstream)
        self._printer = printer

    def on_subscribe(self, subscription: Subscription) -> None:
        self._printer.emit(f"receive subscription: ({subscription})")
        super().on_subscribe(subscription)

    def on_value(self, value: T) -> Demand:
        self._printer.emit(f"receive value: ({value})")
        demand = super().on_value(value)
        if demand:
            self._printer.emit(f"{_format_request(demand)} (synchronous)")
        return demand

    def on_completion(self, completion: Completion) -> None:
        if completion.error is None:
            self._printer.emit("receive finished")
        else:
            self._printer.emit(f"receive error: ({completion.error!r})")
        super().on_completion(completion)

    def request(self, demand: Demand) -> None:
        self._printer.emit(_format_request(demand))
        super().request(demand)

    def cancel(self) -> None:
        if self._upstream is not None:
            self._printer.emit("receive cancel")
        super().cancel()


class Print[T](_Operator[T, T]):
    """Writes one line per lifecycle event.

    Lines go to ``stream.write`` when a stream is given (anything with a
    ``write(str)`` method, such as :class:`~streamlet.logging.TimeLogger`),
    otherwise to stdout.
    """

    def __init__(self, upstream: Publisher[T], prefix: str = "", stream: Any | None = None) -> None:
        super().__init__(upstream)
        self.prefix = prefix
        self.stream = stream

    def emit(self, message: str) -> None:
        line = f"{self.prefix}: {message}" if self.prefix else message
        if self.stream is None:
            builtins.print(line)
        else:
            self.stream.write(line + "\n")

    def _link(self, subscriber: Subscriber[T]) -> _OperatorSubscription[T, T]:
        return _PrintSubscription(subscriber, self)


class _BreakpointSubscription[T](_OperatorSubscription[T, T]):
    def __init__(self, downstream: Subscriber[T], operator: Breakpoint[T]) -> None:
        super().__init__(downstream)
        self._op = operator

    def on_subscribe(self, subscription: Subscription) -> None:
        if self._op.receive_subscription is not None and self._op.receive_subscription(subscription):
            self._op.raise_trap()
        super().on_subscribe(subscription)

    def on_value(self, value: T) -> Demand:
        if self._op.receive_output is not None and self._op.receive_output(value):
            self._op.raise_trap()
        return super().on_value(value)

    def on_completion(self, completion: Completion) -> None:
        if self._op.receive_completion is not None and self._op.receive_completion(completion):
            self._op.raise_trap()
        super().on_completion(completion)


class Breakpoint[T](_Operator[T, T]):
    """Drops into the debugger when a predicate matches an event.

    Without an explicit ``trap`` this calls :func:`sys.breakpointhook`, the
    hook behind :func:`breakpoint`, so ``PYTHONBREAKPOINT=0`` disables it.
    """

    def __init__(
        self,
        upstream: Publisher[T],
        *,
        receive_subscription: Callable[[Subscription], bool] | None = None,
        receive_output: Callable[[T], bool] | None = None,
        receive_completion: Callable[[Completion], bool] | None = None,
        trap: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(upstream)
        self.receive_subscription = receive_subscription
        self.receive_output = receive_output
        self.receive_completion = receive_completion
        self.trap = trap

    def raise_trap(self) -> None:
        if self.trap is not None:
            self.trap()
        else:
            sys.breakpointhook()

    def _link(self, subscriber: Subscriber[T]) -> _OperatorSubscription[T, T]:
        return _BreakpointSubscription(subscriber, self)
