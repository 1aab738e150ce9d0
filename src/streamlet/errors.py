"""Error types carried by failure completions."""


class StreamError(Exception):
    """Base class for errors produced by streamlet publishers."""

    pass


class DecodeError(StreamError):
    """A payload could not be decoded into the requested type."""

    pass


class TransportError(StreamError):
    """A network fetch failed before a response was received.

    The underlying ``httpx`` exception is chained as ``__cause__``.
    """

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
