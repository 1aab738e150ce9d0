"""Terminal signals for a subscription."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class Completion:
    """Either ``finished`` or ``failure(error)``.

    A completion ends a subscription: no values follow it, and it is
    delivered at most once.
    """

    error: BaseException | None = None

    FINISHED: ClassVar[Completion]

    @classmethod
    def failure(cls, error: BaseException) -> Completion:
        return cls(error)

    @property
    def is_finished(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def __str__(self) -> str:
        if self.error is None:
            return "finished"
        return f"failure({self.error!r})"


Completion.FINISHED = Completion()
FINISHED = Completion.FINISHED
