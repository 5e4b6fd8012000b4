import pytest

from cpusched.algorithms import run_algorithm
from cpusched.errors import InconsistentTimeline
from cpusched.metrics import completion_times
from cpusched.models import IDLE, Policy, Process, TimelineItem
from cpusched.replay import LogKind, Replay


def _procs():
    return [
        Process("P1", arrival_time=0, burst_time=5, priority=2),
        Process("P2", arrival_time=1, burst_time=3, priority=1),
        Process("P3", arrival_time=2, burst_time=8, priority=3),
    ]


def _pids(processes):
    return [p.pid for p in processes]


def _entries_at(replay, time):
    return [(e.kind, e.message) for e in replay.log if e.time == time]


WORKLOADS = [
    _procs(),
    [
        Process("P1", arrival_time=2, burst_time=3),
        Process("P2", arrival_time=10, burst_time=2),
    ],
    [
        Process("A", arrival_time=0, burst_time=6, priority=3),
        Process("B", arrival_time=1, burst_time=4, priority=1),
        Process("C", arrival_time=2, burst_time=2, priority=4),
        Process("D", arrival_time=3, burst_time=1, priority=2),
        Process("E", arrival_time=20, burst_time=3, priority=1),
    ],
]

POLICIES = [
    (Policy.FCFS, None),
    (Policy.SJF, None),
    (Policy.SRTF, None),
    (Policy.PRIORITY, None),
    (Policy.ROUND_ROBIN, 2),
]


def test_initial_state():
    replay = Replay.from_policy("fcfs", _procs())
    state = replay.state
    assert state.current_time == 0
    assert _pids(state.waiting) == ["P1", "P2", "P3"]
    assert state.ready_queue == ()
    assert state.executing is None
    assert state.completed == ()
    assert dict(state.remaining) == {"P1": 5, "P2": 3, "P3": 8}
    assert replay.terminal_time == 16
    assert not replay.finished


def test_fcfs_replay_log():
    replay = Replay.from_policy(Policy.FCFS, _procs())
    steps = replay.run_to_end()

    assert len(steps) == 17
    assert replay.finished
    assert [e.kind for e in replay.log] == [
        LogKind.ARRIVAL,
        LogKind.QUEUED,
        LogKind.STARTED,
        LogKind.ARRIVAL,
        LogKind.QUEUED,
        LogKind.ARRIVAL,
        LogKind.QUEUED,
        LogKind.COMPLETED,
        LogKind.STARTED,
        LogKind.COMPLETED,
        LogKind.STARTED,
        LogKind.COMPLETED,
    ]
    assert [e.time for e in replay.log if e.kind is LogKind.COMPLETED] == [5, 8, 16]


def test_state_after_three_ticks():
    replay = Replay.from_policy(Policy.FCFS, _procs())
    for _ in range(3):
        step = replay.advance()

    state = step.snapshot
    assert state.current_time == 3
    assert state.executing.pid == "P1"
    assert _pids(state.ready_queue) == ["P2", "P3"]
    assert state.waiting == ()
    assert state.timeline_cursor == 0
    assert [e.kind for e in step.entries] == [LogKind.ARRIVAL, LogKind.QUEUED]
    assert "position 2" in step.entries[1].message


def test_priority_preemption_is_replayed():
    procs = [
        Process("P1", arrival_time=0, burst_time=4, priority=2),
        Process("P2", arrival_time=1, burst_time=3, priority=1),
    ]
    replay = Replay.from_policy(Policy.PRIORITY, procs)
    replay.advance()
    step = replay.advance()

    assert [e.kind for e in step.entries] == [
        LogKind.ARRIVAL,
        LogKind.QUEUED,
        LogKind.REENTERED,
        LogKind.STARTED,
    ]
    state = step.snapshot
    assert state.executing.pid == "P2"
    assert _pids(state.ready_queue) == ["P1"]
    assert state.remaining["P1"] == 3

    replay.run_to_end()
    resumed = _entries_at(replay, 4)
    assert (LogKind.COMPLETED, "Process P2 completed execution") in resumed
    assert (LogKind.STARTED, "Process P1 resumed executing on CPU") in resumed
    assert dict(replay.state.completion_times) == {"P2": 4, "P1": 7}


def test_rr_arrival_queued_ahead_of_reentering_process():
    procs = [
        Process("A", arrival_time=0, burst_time=4),
        Process("B", arrival_time=2, burst_time=2),
    ]
    replay = Replay.from_policy(Policy.ROUND_ROBIN, procs, quantum=2)
    replay.advance()
    replay.advance()
    step = replay.advance()

    assert [(e.kind, e.message.split()[1]) for e in step.entries] == [
        (LogKind.ARRIVAL, "B"),
        (LogKind.QUEUED, "B"),
        (LogKind.REENTERED, "A"),
        (LogKind.STARTED, "B"),
    ]
    assert step.snapshot.executing.pid == "B"
    assert _pids(step.snapshot.ready_queue) == ["A"]


def test_rr_ready_queue_head_is_next_dispatch():
    procs = [
        Process("A", arrival_time=0, burst_time=10),
        Process("B", arrival_time=2, burst_time=8),
        Process("C", arrival_time=3, burst_time=2),
    ]
    replay = Replay.from_policy(Policy.ROUND_ROBIN, procs, quantum=4)
    timeline = replay.timeline

    while not replay.finished:
        state = replay.advance().snapshot
        t = state.current_time - 1
        upcoming = [item for item in timeline if item.start_time > t]
        # Whatever waits at the head of the queue is the next process to run.
        if state.ready_queue and upcoming and upcoming[0].pid != IDLE:
            assert state.ready_queue[0].pid == upcoming[0].pid


def test_sjf_ready_queue_sorted_by_burst():
    procs = [
        Process("A", arrival_time=0, burst_time=6),
        Process("B", arrival_time=1, burst_time=4),
        Process("C", arrival_time=2, burst_time=2),
        Process("D", arrival_time=3, burst_time=1),
    ]
    replay = Replay.from_policy(Policy.SJF, procs)
    for _ in range(4):
        step = replay.advance()

    assert _pids(step.snapshot.ready_queue) == ["D", "C", "B"]
    assert "position 1" in step.entries[1].message


def test_srtf_ready_queue_sorted_by_remaining():
    procs = [
        Process("A", arrival_time=0, burst_time=8),
        Process("B", arrival_time=1, burst_time=2),
        Process("C", arrival_time=2, burst_time=5),
    ]
    replay = Replay.from_policy(Policy.SRTF, procs)
    for _ in range(3):
        state = replay.advance().snapshot

    # A was preempted at t=1 with 7 units left; C needs 5.
    assert state.executing.pid == "B"
    assert _pids(state.ready_queue) == ["C", "A"]
    assert state.remaining["A"] == 7


def test_idle_entries():
    procs = WORKLOADS[1]
    replay = Replay.from_policy(Policy.FCFS, procs)
    first = replay.advance()

    assert [e.kind for e in first.entries] == [LogKind.IDLE]
    assert first.snapshot.executing is None
    assert _pids(first.snapshot.waiting) == ["P1", "P2"]

    replay.run_to_end()
    assert [e.time for e in replay.log if e.kind is LogKind.IDLE] == [0, 5]


@pytest.mark.parametrize("policy,quantum", POLICIES)
@pytest.mark.parametrize("procs", WORKLOADS)
def test_replay_reproduces_completion_times(policy, quantum, procs):
    timeline = run_algorithm(policy, procs, quantum=quantum)
    replay = Replay(procs, timeline, policy)
    replay.run_to_end()

    state = replay.state
    assert dict(state.completion_times) == completion_times(timeline)
    assert sorted(_pids(state.completed)) == sorted(p.pid for p in procs)
    assert state.ready_queue == ()
    assert state.waiting == ()
    assert state.executing is None
    assert all(v == 0 for v in state.remaining.values())
    assert state.timeline_cursor == len(timeline)


@pytest.mark.parametrize("policy,quantum", POLICIES)
def test_remaining_trace_follows_timeline(policy, quantum):
    procs = WORKLOADS[2]
    replay = Replay.from_policy(policy, procs, quantum=quantum)

    while not replay.finished:
        state = replay.advance().snapshot
        t = state.current_time - 1
        for p in procs:
            done = sum(i.duration for i in replay.timeline if i.pid == p.pid and i.end_time <= t)
            assert state.remaining[p.pid] == p.burst_time - done
        for p in state.waiting:
            assert p.arrival_time > t


def test_advance_after_terminal_is_a_no_op():
    replay = Replay.from_policy(Policy.SJF, _procs())
    replay.run_to_end()
    log_len = len(replay.log)

    step = replay.advance()
    assert step.entries == ()
    assert step.snapshot.current_time == 17
    assert len(replay.log) == log_len


def test_restart_resets_state_and_log():
    replay = Replay.from_policy(Policy.ROUND_ROBIN, _procs(), quantum=2)
    replay.run_to_end()
    first_log = replay.log

    state = replay.restart()
    assert state.current_time == 0
    assert replay.log == ()
    assert dict(state.remaining) == {"P1": 5, "P2": 3, "P3": 8}
    assert state.completed == ()

    replay.run_to_end()
    assert replay.log == first_log


def test_snapshot_is_read_only():
    replay = Replay.from_policy(Policy.FCFS, _procs())
    state = replay.advance().snapshot
    with pytest.raises(TypeError):
        state.remaining["P1"] = 0
    assert replay.state.remaining["P1"] == 5


def test_empty_replay_is_terminal():
    replay = Replay([], [], Policy.FCFS)
    assert replay.finished
    assert replay.advance().entries == ()


def test_rejects_inconsistent_timeline():
    procs = [Process("P1", arrival_time=0, burst_time=2)]
    with pytest.raises(InconsistentTimeline):
        Replay(procs, [TimelineItem("P9", 0, 2)], Policy.FCFS)
    with pytest.raises(InconsistentTimeline):
        Replay(procs, [TimelineItem("P1", 0, 1), TimelineItem("P1", 2, 3)], Policy.SRTF)
    with pytest.raises(InconsistentTimeline):
        Replay([Process("A", arrival_time=3, burst_time=2)], [TimelineItem("A", 0, 2)], Policy.FCFS)
