from __future__ import annotations

from typing import Dict, List, Sequence

from .errors import EmptyInputSet, InconsistentTimeline
from .models import Metrics, Process, ProcessMetrics, Timeline


def validate_timeline(processes: Sequence[Process], timeline: Timeline) -> None:
    """
    Check that ``timeline`` is a gap-free allocation of exactly the bursts in
    ``processes``. Raises InconsistentTimeline on the first violation.
    """
    by_pid = {p.pid: p for p in processes}
    executed: Dict[str, int] = {}
    expected_start = 0

    for idx, item in enumerate(timeline):
        if item.start_time != expected_start:
            kind = "gap" if item.start_time > expected_start else "overlap"
            raise InconsistentTimeline(
                f"item {idx} ({item.pid}) starts at {item.start_time}, expected {expected_start} ({kind})"
            )
        if item.end_time <= item.start_time:
            raise InconsistentTimeline(f"item {idx} ({item.pid}) has non-positive duration")
        if not item.is_idle:
            if item.pid not in by_pid:
                raise InconsistentTimeline(f"timeline references unknown process '{item.pid}'")
            if item.start_time < by_pid[item.pid].arrival_time:
                raise InconsistentTimeline(
                    f"item {idx} runs {item.pid} at {item.start_time}, before its arrival at {by_pid[item.pid].arrival_time}"
                )
            executed[item.pid] = executed.get(item.pid, 0) + item.duration
        expected_start = item.end_time

    for p in processes:
        ran = executed.get(p.pid, 0)
        if ran != p.burst_time:
            raise InconsistentTimeline(f"{p.pid} executes for {ran} units but its burst is {p.burst_time}")


def completion_times(timeline: Timeline) -> Dict[str, int]:
    completion: Dict[str, int] = {}
    for item in timeline:
        if not item.is_idle:
            completion[item.pid] = item.end_time
    return completion


def per_process_metrics(processes: Sequence[Process], timeline: Timeline) -> List[ProcessMetrics]:
    """
    Derive completion, turnaround, waiting and response per process, in input order.
    """
    completion = completion_times(timeline)
    first_start: Dict[str, int] = {}
    for item in timeline:
        if not item.is_idle:
            first_start.setdefault(item.pid, item.start_time)

    metrics: List[ProcessMetrics] = []
    for p in processes:
        turnaround_time = completion[p.pid] - p.arrival_time
        metrics.append(
            ProcessMetrics(
                pid=p.pid,
                arrival_time=p.arrival_time,
                burst_time=p.burst_time,
                priority=p.priority,
                start_time=first_start[p.pid],
                completion_time=completion[p.pid],
                waiting_time=turnaround_time - p.burst_time,
                turnaround_time=turnaround_time,
                response_time=first_start[p.pid] - p.arrival_time,
            )
        )
    return metrics


def compute_metrics(processes: Sequence[Process], timeline: Timeline) -> Metrics:
    """
    Reduce a timeline and its process set to aggregate performance metrics.
    """
    if not processes:
        raise EmptyInputSet()
    validate_timeline(processes, timeline)

    per_process = per_process_metrics(processes, timeline)
    n = len(per_process)

    total_time = max(item.end_time for item in timeline)
    busy_time = sum(item.duration for item in timeline if not item.is_idle)
    total_turnaround = sum(m.turnaround_time for m in per_process)

    return Metrics(
        avg_waiting=sum(m.waiting_time for m in per_process) / n,
        avg_turnaround=total_turnaround / n,
        avg_response=sum(m.response_time for m in per_process) / n,
        total_time=total_time,
        total_turnaround=total_turnaround,
        cpu_utilization=100.0 * busy_time / total_time,
        throughput=n / total_time,
        response_times={m.pid: m.response_time for m in per_process},
        processes=per_process,
    )
