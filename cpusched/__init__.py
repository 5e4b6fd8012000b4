"""
CPU scheduling simulator package.

Computes allocation timelines for FCFS, SJF, SRTF, Priority and Round Robin,
derives performance metrics from them, and replays a timeline tick by tick
to reconstruct the ready queue, CPU and completed set at every instant.
"""

from .algorithms import run_algorithm
from .compare import compare_all
from .errors import EmptyInputSet, InconsistentTimeline, InvalidInput, SchedulerError
from .metrics import compute_metrics
from .models import IDLE, Metrics, Policy, Process, TimelineItem
from .replay import Replay

__all__ = [
    "IDLE",
    "EmptyInputSet",
    "InconsistentTimeline",
    "InvalidInput",
    "Metrics",
    "Policy",
    "Process",
    "Replay",
    "SchedulerError",
    "TimelineItem",
    "cli",
    "compare_all",
    "compute_metrics",
    "run_algorithm",
]
