from __future__ import annotations

from typing import Iterable, List


class SchedulerError(ValueError):
    """Base class for every error the scheduling core reports."""


class InvalidInput(SchedulerError):
    """
    The process set (or quantum) cannot be simulated.

    All problems found are collected in ``problems`` so a caller can report
    them together instead of one per attempt.
    """

    def __init__(self, problems: Iterable[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems))


class InconsistentTimeline(SchedulerError):
    """A timeline does not match the process set it is paired with."""


class EmptyInputSet(SchedulerError):
    """Metrics were requested for an empty process set."""

    def __init__(self, message: str = "no processes to evaluate") -> None:
        super().__init__(message)
