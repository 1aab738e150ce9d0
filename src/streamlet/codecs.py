"""Codecs for turning raw payload bytes into typed values and back.

Recommended codecs:
- JSONCodec: JSON into dataclasses, pydantic models or builtin types
- StringCodec: UTF-8 text

Decoding failures raise :class:`~streamlet.errors.DecodeError`, which the
``decode`` operator turns into a failure completion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Buffer
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError


class Codec[T](ABC):
    """Abstract base class for encoding/decoding payloads to/from bytes."""

    @abstractmethod
    def encode(self, item: T) -> bytes: ...

    @abstractmethod
    def decode(self, data: Buffer) -> T: ...


class JSONCodec[T](Codec[T]):
    """Validates JSON payloads into ``type_`` with a pydantic ``TypeAdapter``.

    Any type pydantic understands works: dataclasses, ``BaseModel``
    subclasses, ``TypedDict``, lists and dicts of those.

    Example:
        >>> @dataclass
        ... class Sample:
        ...     id: int
        ...     title: str
        >>> JSONCodec(Sample).decode(b'{"id": 1, "title": "Phone"}')
        Sample(id=1, title='Phone')
    """

    def __init__(self, type_: type[T] | Any) -> None:
        self.type_ = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def encode(self, item: T) -> bytes:
        return self._adapter.dump_json(item)

    def decode(self, data: Buffer) -> T:
        try:
            return self._adapter.validate_json(bytes(data))
        except ValidationError as e:
            name = getattr(self.type_, "__name__", repr(self.type_))
            raise DecodeError(f"Invalid {name} payload: {e.error_count()} error(s)\n{e}") from e


class StringCodec(Codec[str]):
    """UTF-8 text codec."""

    def encode(self, item: str) -> bytes:
        return item.encode("utf-8")

    def decode(self, data: Buffer) -> str:
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(str(e)) from e
