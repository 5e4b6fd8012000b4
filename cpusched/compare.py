from __future__ import annotations

import logging
from typing import List, Sequence

from .algorithms import run_algorithm
from .config import DEFAULT_QUANTUM
from .metrics import compute_metrics
from .models import Comparison, Policy, Process

logger = logging.getLogger(__name__)

COMPARED_POLICIES = (
    Policy.FCFS,
    Policy.SJF,
    Policy.SRTF,
    Policy.PRIORITY,
    Policy.ROUND_ROBIN,
)

RANKED_METRICS = ("avg_waiting", "avg_turnaround", "avg_response")


def compare_all(processes: Sequence[Process], quantum: int = DEFAULT_QUANTUM) -> List[Comparison]:
    """
    Run every policy over the same process set and collect their metrics.
    """
    if not processes:
        return []

    results: List[Comparison] = []
    for policy in COMPARED_POLICIES:
        q = quantum if policy is Policy.ROUND_ROBIN else None
        timeline = run_algorithm(policy, processes, quantum=q)
        results.append(Comparison(policy=policy, quantum=q, metrics=compute_metrics(processes, timeline)))

    logger.debug("compared %d policies over %d processes", len(results), len(processes))
    return results


def best_by(comparisons: Sequence[Comparison], attribute: str) -> Comparison:
    """
    Return the comparison with the lowest value of ``attribute``; earlier wins ties.
    """
    if attribute not in RANKED_METRICS:
        raise ValueError(f"cannot rank by '{attribute}' (choose from {', '.join(RANKED_METRICS)})")
    if not comparisons:
        raise ValueError("no comparisons to rank")
    return min(comparisons, key=lambda c: getattr(c.metrics, attribute))
