import pytest

from cpusched.algorithms import run_algorithm
from cpusched.compare import COMPARED_POLICIES, best_by, compare_all
from cpusched.metrics import compute_metrics
from cpusched.models import Policy
from cpusched.presets import get_preset


def _convoy():
    return list(get_preset("convoy-effect").processes)


def test_compare_runs_every_policy_in_order():
    results = compare_all(_convoy(), quantum=2)
    assert [r.policy for r in results] == [
        Policy.FCFS,
        Policy.SJF,
        Policy.SRTF,
        Policy.PRIORITY,
        Policy.ROUND_ROBIN,
    ]
    assert [r.quantum for r in results] == [None, None, None, None, 2]


def test_compare_matches_individual_runs():
    procs = _convoy()
    for result in compare_all(procs, quantum=3):
        timeline = run_algorithm(result.policy, procs, quantum=result.quantum)
        assert result.metrics == compute_metrics(procs, timeline)


def test_convoy_effect_waiting_times():
    by_policy = {r.policy: r.metrics for r in compare_all(_convoy(), quantum=2)}
    assert by_policy[Policy.FCFS].avg_waiting == pytest.approx(22.5)
    assert by_policy[Policy.SJF].avg_waiting == pytest.approx(22.0)
    assert by_policy[Policy.SRTF].avg_waiting == pytest.approx(1.75)
    assert by_policy[Policy.PRIORITY].avg_waiting == pytest.approx(22.5)
    assert by_policy[Policy.ROUND_ROBIN].avg_waiting == pytest.approx(3.25)


def test_best_by_picks_lowest_value():
    results = compare_all(_convoy(), quantum=2)
    assert best_by(results, "avg_waiting").policy is Policy.SRTF


def test_best_by_ties_favour_earlier_policy():
    results = compare_all(_convoy(), quantum=2)
    fcfs_and_priority = [r for r in results if r.policy in (Policy.PRIORITY, Policy.FCFS)]
    assert best_by(fcfs_and_priority, "avg_turnaround").policy is Policy.FCFS


def test_best_by_rejects_unknown_metric():
    with pytest.raises(ValueError):
        best_by(compare_all(_convoy()), "total_time")


def test_compare_empty_workload():
    assert compare_all([]) == []


def test_compare_does_not_touch_input():
    procs = _convoy()
    before = list(procs)
    compare_all(procs)
    assert procs == before
    assert len(COMPARED_POLICIES) == 5
