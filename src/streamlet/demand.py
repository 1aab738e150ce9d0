"""Subscriber demand: how many more values a subscriber will accept."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class Demand:
    """A non-negative count of values, or unlimited.

    Demand is additive and saturates: once a subscription has asked for an
    unlimited number of values, adding finite demand leaves it unlimited.

    Example:
        >>> Demand.max(2) + Demand.max(1)
        Demand.max(3)
        >>> Demand.UNLIMITED + Demand.max(1)
        Demand.UNLIMITED
    """

    limit: int | None

    UNLIMITED: ClassVar[Demand]
    NONE: ClassVar[Demand]

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"Demand must be non-negative, got {self.limit}")

    @classmethod
    def max(cls, count: int) -> Demand:
        """Demand for at most ``count`` more values."""
        return cls(count)

    @classmethod
    def of(cls, value: Demand | int | None) -> Demand:
        """Coerce a subscriber's return value into a Demand.

        ``None`` means no additional demand, ints are finite demand.
        """
        if value is None:
            return cls.NONE
        if isinstance(value, Demand):
            return value
        return cls(value)

    @property
    def is_unlimited(self) -> bool:
        return self.limit is None

    def __add__(self, other: Demand | int) -> Demand:
        other = Demand.of(other)
        if self.limit is None or other.limit is None:
            return Demand.UNLIMITED
        return Demand(self.limit + other.limit)

    def __sub__(self, count: int) -> Demand:
        if self.limit is None:
            return self
        if count > self.limit:
            raise ValueError(f"Cannot consume {count} values from {self}")
        return Demand(self.limit - count)

    def __bool__(self) -> bool:
        return self.limit is None or self.limit > 0

    def __str__(self) -> str:
        if self.limit is None:
            return "unlimited"
        return f"max({self.limit})"

    def __repr__(self) -> str:
        if self.limit is None:
            return "Demand.UNLIMITED"
        return f"Demand.max({self.limit})"


Demand.UNLIMITED = Demand(None)
Demand.NONE = Demand(0)
