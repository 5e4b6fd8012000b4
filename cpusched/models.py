from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

IDLE = "IDLE"


class Policy(str, Enum):
    FCFS = "FCFS"
    SJF = "SJF"
    SRTF = "SRTF"
    PRIORITY = "Priority"
    ROUND_ROBIN = "RoundRobin"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def preemptive(self) -> bool:
        return self in (Policy.SRTF, Policy.PRIORITY, Policy.ROUND_ROBIN)

    @classmethod
    def parse(cls, name: str | Policy) -> Policy:
        """
        Resolve a policy from its name or a common alias (case-insensitive).
        """
        if isinstance(name, Policy):
            return name
        key = name.strip().lower().replace("-", "_")
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown scheduling policy '{name}'") from None


_LABELS = {
    Policy.FCFS: "First Come First Served (FCFS)",
    Policy.SJF: "Shortest Job First (SJF)",
    Policy.SRTF: "Shortest Remaining Time First (SRTF)",
    Policy.PRIORITY: "Priority Scheduling (Preemptive)",
    Policy.ROUND_ROBIN: "Round Robin",
}

_ALIASES = {
    "fcfs": Policy.FCFS,
    "sjf": Policy.SJF,
    "srtf": Policy.SRTF,
    "priority": Policy.PRIORITY,
    "rr": Policy.ROUND_ROBIN,
    "roundrobin": Policy.ROUND_ROBIN,
    "round_robin": Policy.ROUND_ROBIN,
}


@dataclass(frozen=True)
class Process:
    pid: str
    arrival_time: int
    burst_time: int
    priority: int = 1


@dataclass(frozen=True)
class TimelineItem:
    """
    One contiguous slice of the allocation timeline: a process run or an idle gap.
    """

    pid: str
    start_time: int
    end_time: int
    arrival_time: Optional[int] = None

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def is_idle(self) -> bool:
        return self.pid == IDLE


Timeline = List[TimelineItem]


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: int
    burst_time: int
    priority: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int


@dataclass
class Metrics:
    avg_waiting: float
    avg_turnaround: float
    avg_response: float
    total_time: int
    total_turnaround: int
    cpu_utilization: float
    throughput: float
    response_times: Dict[str, int] = field(default_factory=dict)
    processes: List[ProcessMetrics] = field(default_factory=list)


@dataclass
class Comparison:
    policy: Policy
    quantum: Optional[int]
    metrics: Metrics
