from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .models import Policy, Process


@dataclass(frozen=True)
class Scenario:
    key: str
    name: str
    description: str
    recommended: Policy
    processes: Tuple[Process, ...]
    quantum: Optional[int] = None


_CONVOY = (
    Process("P1", arrival_time=0, burst_time=30, priority=1),
    Process("P2", arrival_time=1, burst_time=2, priority=1),
    Process("P3", arrival_time=2, burst_time=2, priority=1),
    Process("P4", arrival_time=3, burst_time=1, priority=1),
)

PRESETS: Dict[str, Scenario] = {
    s.key: s
    for s in (
        Scenario(
            key="convoy-effect",
            name="The Convoy Effect",
            description="One long process blocks short interactive ones in FCFS.",
            recommended=Policy.FCFS,
            processes=_CONVOY,
        ),
        Scenario(
            key="sjf-advantage",
            name="SJF Efficiency",
            description="The convoy workload again, handled efficiently by SJF.",
            recommended=Policy.SJF,
            processes=_CONVOY,
        ),
        Scenario(
            key="starvation",
            name="Priority Starvation",
            description="A low priority process waits while higher priority ones keep arriving.",
            recommended=Policy.PRIORITY,
            processes=(
                Process("LowPri", arrival_time=0, burst_time=20, priority=10),
                Process("High1", arrival_time=2, burst_time=4, priority=1),
                Process("High2", arrival_time=4, burst_time=5, priority=2),
                Process("High3", arrival_time=6, burst_time=3, priority=1),
                Process("High4", arrival_time=8, burst_time=4, priority=2),
            ),
        ),
        Scenario(
            key="rr-fairness",
            name="Round Robin Fairness",
            description="Similar burst times sharing the CPU fairly via the time quantum.",
            recommended=Policy.ROUND_ROBIN,
            quantum=4,
            processes=(
                Process("A", arrival_time=0, burst_time=10, priority=1),
                Process("B", arrival_time=2, burst_time=8, priority=1),
                Process("C", arrival_time=4, burst_time=6, priority=1),
                Process("D", arrival_time=6, burst_time=12, priority=1),
            ),
        ),
    )
}


def get_preset(key: str) -> Scenario:
    try:
        return PRESETS[key]
    except KeyError:
        raise KeyError(f"Unknown preset '{key}' (available: {', '.join(PRESETS)})") from None
