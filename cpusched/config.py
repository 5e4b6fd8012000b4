from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidInput

DEFAULT_QUANTUM = 2
DEFAULT_STEP_DELAY = 0.3
MIN_SPEED = 0.5
MAX_SPEED = 3.0


@dataclass(frozen=True)
class RunConfig:
    """
    Settings shared by the CLI commands. The replay driver sleeps
    ``step_delay / speed`` seconds between ticks.
    """

    quantum: int = DEFAULT_QUANTUM
    step_delay: float = DEFAULT_STEP_DELAY
    speed: float = 1.0

    def __post_init__(self) -> None:
        if self.quantum < 1:
            raise InvalidInput(f"quantum must be at least 1 (got {self.quantum})")
        if self.step_delay < 0:
            raise InvalidInput("step delay cannot be negative")
        if not MIN_SPEED <= self.speed <= MAX_SPEED:
            raise InvalidInput(f"speed must be between {MIN_SPEED}x and {MAX_SPEED}x")

    @property
    def tick_interval(self) -> float:
        return self.step_delay / self.speed
