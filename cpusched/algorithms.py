from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Sequence

from .errors import InvalidInput
from .models import IDLE, Policy, Process, Timeline, TimelineItem

logger = logging.getLogger(__name__)


@dataclass
class _Job:
    """
    Per-run working copy of a process. ``index`` is the input position and
    settles any tie that arrival time leaves open.
    """

    index: int
    process: Process
    remaining: int

    @property
    def pid(self) -> str:
        return self.process.pid

    @property
    def arrival_time(self) -> int:
        return self.process.arrival_time


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_processes(processes: Sequence[Process]) -> None:
    """
    Refuse process sets the engine cannot simulate to completion.
    """
    problems: List[str] = []
    seen: set[str] = set()

    for p in processes:
        if not isinstance(p.pid, str) or not p.pid.strip():
            problems.append(f"process id must be a non-empty string (got {p.pid!r})")
            continue
        if p.pid == IDLE:
            problems.append(f"'{IDLE}' is reserved and cannot be used as a process id")
        if p.pid in seen:
            problems.append(f"duplicate process id '{p.pid}'")
        seen.add(p.pid)

        if not _is_int(p.arrival_time) or p.arrival_time < 0:
            problems.append(f"{p.pid}: arrival time must be an integer >= 0 (got {p.arrival_time!r})")
        if not _is_int(p.burst_time) or p.burst_time < 1:
            problems.append(f"{p.pid}: burst time must be an integer >= 1 (got {p.burst_time!r})")
        if not _is_int(p.priority) or p.priority < 1:
            problems.append(f"{p.pid}: priority must be an integer >= 1 (got {p.priority!r})")

    if problems:
        raise InvalidInput(problems)


def _jobs(processes: Sequence[Process]) -> List[_Job]:
    validate_processes(processes)
    return [_Job(index=i, process=p, remaining=p.burst_time) for i, p in enumerate(processes)]


def _run_item(job: _Job, start: int, end: int) -> TimelineItem:
    return TimelineItem(pid=job.pid, start_time=start, end_time=end, arrival_time=job.arrival_time)


def _idle_item(start: int, end: int) -> TimelineItem:
    return TimelineItem(pid=IDLE, start_time=start, end_time=end)


def schedule_fcfs(processes: Sequence[Process], quantum: Optional[int] = None) -> Timeline:
    """
    First-Come First-Serve (non-preemptive) scheduling.
    """
    jobs = sorted(_jobs(processes), key=lambda j: (j.arrival_time, j.index))

    time = 0
    timeline: Timeline = []

    for job in jobs:
        if time < job.arrival_time:
            timeline.append(_idle_item(time, job.arrival_time))
            time = job.arrival_time

        timeline.append(_run_item(job, time, time + job.remaining))
        time += job.remaining

    logger.debug("FCFS: %d processes -> %d timeline items", len(jobs), len(timeline))
    return timeline


def schedule_sjf(processes: Sequence[Process], quantum: Optional[int] = None) -> Timeline:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    scheduled, choose the one with the smallest burst time.
    """
    pending = _jobs(processes)

    time = 0
    timeline: Timeline = []

    while pending:
        ready = [j for j in pending if j.arrival_time <= time]

        if not ready:
            next_arrival = min(j.arrival_time for j in pending)
            timeline.append(_idle_item(time, next_arrival))
            time = next_arrival
            continue

        # Tie-breaker: earlier arrival, then input order.
        job = min(ready, key=lambda j: (j.process.burst_time, j.arrival_time, j.index))

        timeline.append(_run_item(job, time, time + job.remaining))
        time += job.remaining
        pending.remove(job)

    logger.debug("SJF: %d processes -> %d timeline items", len(processes), len(timeline))
    return timeline


def _schedule_preemptive(
    processes: Sequence[Process],
    key: Callable[[_Job], int],
    name: str,
) -> Timeline:
    """
    Unit-step preemptive scheduler shared by SRTF and Priority.

    Each time unit the eligible job with the lowest ``key`` (then earliest
    arrival, then input order) runs; a change of job closes the open item.
    """
    jobs = _jobs(processes)
    unfinished = len(jobs)

    time = 0
    timeline: Timeline = []
    active: Optional[_Job] = None
    slice_start = 0
    preemptions = 0

    while unfinished:
        ready = [j for j in jobs if j.arrival_time <= time and j.remaining > 0]

        if not ready:
            next_arrival = min(j.arrival_time for j in jobs if j.remaining > 0)
            timeline.append(_idle_item(time, next_arrival))
            time = next_arrival
            continue

        chosen = min(ready, key=lambda j: (key(j), j.arrival_time, j.index))

        if chosen is not active:
            if active is not None:
                timeline.append(_run_item(active, slice_start, time))
                preemptions += 1
                logger.debug("%s: %s preempted by %s at t=%d", name, active.pid, chosen.pid, time)
            active = chosen
            slice_start = time

        active.remaining -= 1
        time += 1

        if active.remaining == 0:
            timeline.append(_run_item(active, slice_start, time))
            active = None
            unfinished -= 1

    logger.debug(
        "%s: %d processes -> %d timeline items (%d preemptions)",
        name,
        len(jobs),
        len(timeline),
        preemptions,
    )
    return timeline


def schedule_srtf(processes: Sequence[Process], quantum: Optional[int] = None) -> Timeline:
    """
    Shortest Remaining Time First (preemptive SJF).
    """
    return _schedule_preemptive(processes, key=lambda j: j.remaining, name="SRTF")


def schedule_priority(processes: Sequence[Process], quantum: Optional[int] = None) -> Timeline:
    """
    Preemptive Priority scheduling.

    Lower numeric priority value means higher priority. A newly arrived
    process with a strictly better priority takes the CPU immediately.
    """
    return _schedule_preemptive(processes, key=lambda j: j.process.priority, name="Priority")


def schedule_rr(processes: Sequence[Process], quantum: Optional[int] = None) -> Timeline:
    """
    Round Robin scheduling with a fixed time quantum.

    Processes that arrive while a slice runs (including at its last instant)
    join the ready queue before the process whose slice just ended.
    """
    if not _is_int(quantum) or quantum < 1:
        raise InvalidInput(f"Round Robin requires a positive integer quantum (got {quantum!r})")

    jobs = _jobs(processes)
    by_arrival = sorted(jobs, key=lambda j: (j.arrival_time, j.index))
    unfinished = len(jobs)

    time = 0
    timeline: Timeline = []
    ready: Deque[_Job] = deque()
    next_idx = 0

    def admit_arrivals(current_time: int) -> None:
        nonlocal next_idx
        while next_idx < len(by_arrival) and by_arrival[next_idx].arrival_time <= current_time:
            ready.append(by_arrival[next_idx])
            next_idx += 1

    admit_arrivals(time)

    while unfinished:
        if not ready:
            next_arrival = by_arrival[next_idx].arrival_time
            timeline.append(_idle_item(time, next_arrival))
            time = next_arrival
            admit_arrivals(time)
            continue

        job = ready.popleft()
        run_time = min(quantum, job.remaining)
        timeline.append(_run_item(job, time, time + run_time))

        time += run_time
        job.remaining -= run_time

        admit_arrivals(time)

        if job.remaining > 0:
            ready.append(job)
        else:
            unfinished -= 1

    logger.debug("RR(q=%d): %d processes -> %d timeline items", quantum, len(jobs), len(timeline))
    return timeline


ALGORITHMS: Dict[Policy, Callable[..., Timeline]] = {
    Policy.FCFS: schedule_fcfs,
    Policy.SJF: schedule_sjf,
    Policy.SRTF: schedule_srtf,
    Policy.PRIORITY: schedule_priority,
    Policy.ROUND_ROBIN: schedule_rr,
}


def run_algorithm(
    policy: Policy | str,
    processes: Sequence[Process],
    quantum: Optional[int] = None,
) -> Timeline:
    """
    Dispatch to the requested policy. Quantum is only used by Round Robin.
    """
    try:
        policy = Policy.parse(policy)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from None

    func = ALGORITHMS[policy]
    return func(processes, quantum=quantum)
