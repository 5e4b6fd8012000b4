"""
Tick-by-tick reconstruction of scheduler state from a finished timeline.

A :class:`Replay` walks a timeline one time unit per :meth:`Replay.advance`
call and rebuilds what the scheduler looked like at that instant: which
processes have not arrived yet, the ready queue, the process on the CPU and
the completed set. Every state change is recorded as a :class:`LogEntry`.

The replay never re-runs a policy. It only reads the timeline, so whatever
it shows is consistent with the metrics computed from that same timeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .algorithms import run_algorithm, validate_processes
from .metrics import validate_timeline
from .models import Policy, Process, Timeline

logger = logging.getLogger(__name__)


class LogKind(str, Enum):
    ARRIVAL = "arrival"
    QUEUED = "queued"
    STARTED = "started"
    COMPLETED = "completed"
    REENTERED = "reentered"
    IDLE = "idle"


@dataclass(frozen=True)
class LogEntry:
    time: int
    message: str
    kind: LogKind


@dataclass(frozen=True)
class ReplaySnapshot:
    """Read-only view of the replay state between two ticks."""

    current_time: int
    ready_queue: Tuple[Process, ...]
    waiting: Tuple[Process, ...]
    executing: Optional[Process]
    completed: Tuple[Process, ...]
    remaining: Mapping[str, int]
    timeline_cursor: int
    completion_times: Mapping[str, int]


@dataclass(frozen=True)
class ReplayStep:
    snapshot: ReplaySnapshot
    entries: Tuple[LogEntry, ...] = ()


@dataclass
class _ReplayState:
    current_time: int
    waiting: Dict[str, Process]
    remaining: Dict[str, int]
    ready: Dict[str, Process] = field(default_factory=dict)
    executing: Optional[Process] = None
    completed: Dict[str, Process] = field(default_factory=dict)
    completion: Dict[str, int] = field(default_factory=dict)
    started: set[str] = field(default_factory=set)
    cursor: int = 0


class Replay:
    """
    Replays ``timeline`` (produced by ``policy`` over ``processes``).

    One instance serves one replay session and must be advanced by a single
    driver; :meth:`advance` and :meth:`restart` are the only mutating calls.
    """

    def __init__(self, processes: Sequence[Process], timeline: Timeline, policy: Policy | str) -> None:
        self.policy = Policy.parse(policy)
        self.processes: Tuple[Process, ...] = tuple(processes)
        self.timeline: Timeline = list(timeline)

        validate_processes(self.processes)
        validate_timeline(self.processes, self.timeline)

        self._by_pid = {p.pid: p for p in self.processes}
        self._index = {p.pid: i for i, p in enumerate(self.processes)}
        self._arrivals: Dict[int, List[Process]] = {}
        for p in self.processes:
            self._arrivals.setdefault(p.arrival_time, []).append(p)

        self.terminal_time = self.timeline[-1].end_time if self.timeline else -1
        self._log: List[LogEntry] = []
        self._state = self._initial_state()

    @classmethod
    def from_policy(
        cls,
        policy: Policy | str,
        processes: Sequence[Process],
        quantum: Optional[int] = None,
    ) -> Replay:
        policy = Policy.parse(policy)
        return cls(processes, run_algorithm(policy, processes, quantum=quantum), policy)

    def _initial_state(self) -> _ReplayState:
        upcoming = sorted(self.processes, key=lambda p: (p.arrival_time, self._index[p.pid]))
        return _ReplayState(
            current_time=0,
            waiting={p.pid: p for p in upcoming},
            remaining={p.pid: p.burst_time for p in self.processes},
        )

    @property
    def finished(self) -> bool:
        return self._state.current_time > self.terminal_time

    @property
    def current_time(self) -> int:
        return self._state.current_time

    @property
    def log(self) -> Tuple[LogEntry, ...]:
        return tuple(self._log)

    @property
    def state(self) -> ReplaySnapshot:
        s = self._state
        return ReplaySnapshot(
            current_time=s.current_time,
            ready_queue=tuple(self._ordered_ready()),
            waiting=tuple(s.waiting.values()),
            executing=s.executing,
            completed=tuple(s.completed.values()),
            remaining=MappingProxyType(dict(s.remaining)),
            timeline_cursor=s.cursor,
            completion_times=MappingProxyType(dict(s.completion)),
        )

    def _ready_key(self, p: Process) -> Tuple[int, int, int]:
        if self.policy is Policy.SJF:
            first = p.burst_time
        elif self.policy is Policy.SRTF:
            first = self._state.remaining[p.pid]
        else:
            first = p.priority
        return (first, p.arrival_time, self._index[p.pid])

    def _ordered_ready(self) -> List[Process]:
        # FCFS and Round Robin keep admission order.
        ready = list(self._state.ready.values())
        if self.policy in (Policy.FCFS, Policy.ROUND_ROBIN):
            return ready
        return sorted(ready, key=self._ready_key)

    def _queue_position(self, pid: str) -> int:
        return [p.pid for p in self._ordered_ready()].index(pid) + 1

    def advance(self) -> ReplayStep:
        """
        Apply the events of the current tick, then move the clock one unit on.
        """
        if self.finished:
            return ReplayStep(self.state)

        s = self._state
        t = s.current_time
        entries: List[LogEntry] = []

        for p in self._arrivals.get(t, ()):
            del s.waiting[p.pid]
            entries.append(LogEntry(t, f"Process {p.pid} arrived", LogKind.ARRIVAL))
            s.ready[p.pid] = p
            entries.append(
                LogEntry(
                    t,
                    f"Process {p.pid} entered ready queue at position {self._queue_position(p.pid)}",
                    LogKind.QUEUED,
                )
            )

        while s.cursor < len(self.timeline):
            item = self.timeline[s.cursor]

            if item.end_time == t:
                s.executing = None
                s.cursor += 1
                if item.is_idle:
                    continue
                s.remaining[item.pid] -= item.duration
                process = self._by_pid[item.pid]
                if s.remaining[item.pid] == 0:
                    s.completed[item.pid] = process
                    s.completion[item.pid] = t
                    entries.append(LogEntry(t, f"Process {item.pid} completed execution", LogKind.COMPLETED))
                else:
                    s.ready[item.pid] = process
                    entries.append(
                        LogEntry(
                            t,
                            f"Process {item.pid} time slice ended with {s.remaining[item.pid]} "
                            "units left, re-entered ready queue",
                            LogKind.REENTERED,
                        )
                    )
                continue

            if item.start_time == t:
                if item.is_idle:
                    s.executing = None
                    entries.append(LogEntry(t, f"CPU is IDLE until t={item.end_time}", LogKind.IDLE))
                else:
                    del s.ready[item.pid]
                    s.executing = self._by_pid[item.pid]
                    verb = "resumed" if item.pid in s.started else "started"
                    s.started.add(item.pid)
                    entries.append(LogEntry(t, f"Process {item.pid} {verb} executing on CPU", LogKind.STARTED))
            break

        s.current_time += 1
        self._log.extend(entries)
        logger.debug("replay %s t=%d: %d events", self.policy.value, t, len(entries))
        return ReplayStep(self.state, tuple(entries))

    def restart(self) -> ReplaySnapshot:
        self._state = self._initial_state()
        self._log.clear()
        return self.state

    def run_to_end(self) -> List[ReplayStep]:
        steps: List[ReplayStep] = []
        while not self.finished:
            steps.append(self.advance())
        return steps
