"""Settings for running the playground chapters."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_URL = "https://dummyjson.com/products/1"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_TIMER_DURATION = 3.5
DEFAULT_TIMER_INTERVAL = 1.0
DEFAULT_TIMER_SPEED = 1.0


@dataclass
class PlaygroundConfig:
    """Options shared by the playground examples.

    Attributes:
        url: Address fetched by the networking examples.
        request_timeout: Per-request timeout in seconds; also bounds how long
            an example waits for its requests to complete.
        timer_duration: How long the timer examples run before cancelling.
        timer_interval: Tick interval for the timer examples.
        timer_speed: How fast time passes in the timer examples; 1.0 is real
            time and ``inf`` fast-forwards on a virtual clock.
        debugger: Let the breakpoint example enter the debugger instead of
            printing where it would have stopped.
    """

    url: str = DEFAULT_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    timer_duration: float = DEFAULT_TIMER_DURATION
    timer_interval: float = DEFAULT_TIMER_INTERVAL
    timer_speed: float = DEFAULT_TIMER_SPEED
    debugger: bool = False

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.timer_duration < 0:
            raise ValueError(f"timer_duration must be non-negative, got {self.timer_duration}")
        if self.timer_interval <= 0:
            raise ValueError(f"timer_interval must be positive, got {self.timer_interval}")
        if not self.timer_speed > 0:
            raise ValueError(f"timer_speed must be positive, got {self.timer_speed}")
