from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import run_algorithm
from .compare import RANKED_METRICS, best_by, compare_all
from .config import DEFAULT_QUANTUM, DEFAULT_STEP_DELAY, RunConfig
from .gantt import build_rich_gantt
from .metrics import compute_metrics
from .models import Metrics, Policy, Process, Timeline
from .presets import PRESETS, get_preset
from .replay import LogKind, Replay, ReplayStep
from .workload_io import SAMPLE_CSV, load_workload

logger = logging.getLogger(__name__)

KIND_STYLES = {
    LogKind.ARRIVAL: "cyan",
    LogKind.QUEUED: "blue",
    LogKind.STARTED: "green",
    LogKind.COMPLETED: "bold green",
    LogKind.REENTERED: "yellow",
    LogKind.IDLE: "dim",
}


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--workload",
        "-w",
        help="Path to JSON or CSV workload file.",
    )
    source.add_argument(
        "--preset",
        "-p",
        choices=sorted(PRESETS),
        help="Use a built-in scenario instead of a workload file.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpusched",
        description="CPU scheduling simulator and replayer (FCFS, SJF, SRTF, Priority, Round Robin).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one scheduling policy on a workload.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Policy to use (fcfs, sjf, srtf, priority, rr).",
    )
    _add_source_arguments(run_parser)
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help=f"Time quantum for round-robin (default: preset value or {DEFAULT_QUANTUM}).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Replay the schedule tick by tick before printing the summary.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=DEFAULT_STEP_DELAY,
        help=f"Seconds per tick when --step is used (default: {DEFAULT_STEP_DELAY}).",
    )
    run_parser.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help="Replay speed multiplier between 0.5 and 3 (default: 1).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run all five policies on the same workload and compare average metrics.",
    )
    _add_source_arguments(compare_parser)
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help=f"Time quantum used for round-robin (default: preset value or {DEFAULT_QUANTUM}).",
    )

    subparsers.add_parser("presets", help="List the built-in scenarios.")

    template_parser = subparsers.add_parser("template", help="Write a sample CSV workload.")
    template_parser.add_argument(
        "path",
        nargs="?",
        default="-",
        help="Destination file (default: print to stdout).",
    )

    return parser


def _load_source(args: argparse.Namespace) -> Tuple[List[Process], Optional[int]]:
    """
    Return the processes named on the command line and the preset's quantum, if any.
    """
    if args.preset:
        scenario = get_preset(args.preset)
        return list(scenario.processes), scenario.quantum
    return load_workload(Path(args.workload)), None


def _pick_quantum(requested: Optional[int], preset_quantum: Optional[int]) -> int:
    if requested is not None:
        return requested
    return preset_quantum or DEFAULT_QUANTUM


def _print_result(console: Console, policy: Policy, quantum: Optional[int], timeline: Timeline, metrics: Metrics) -> None:
    console.print(f"[bold]Algorithm:[/bold] {policy.label}")
    if quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Priority",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in metrics.processes:
        proc_table.add_row(
            escape(p.pid),
            str(p.arrival_time),
            str(p.burst_time),
            str(p.priority),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{metrics.avg_waiting:.2f}")
    sys_table.add_row("Avg turnaround", f"{metrics.avg_turnaround:.2f}")
    sys_table.add_row("Avg response", f"{metrics.avg_response:.2f}")
    sys_table.add_row("Total time", str(metrics.total_time))
    sys_table.add_row("Throughput (proc/time)", f"{metrics.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{metrics.cpu_utilization:.1f}%")

    console.print(sys_table)


def _names(processes: Sequence[Process]) -> str:
    return escape("[" + (", ".join(p.pid for p in processes) or "-") + "]")


def _print_step(console: Console, step: ReplayStep) -> None:
    snap = step.snapshot
    tick = snap.current_time - 1
    cpu = snap.executing.pid if snap.executing else "[dim]idle[/dim]"
    console.print(
        f"t={tick:3d}  CPU: {cpu:<6}  ready: {_names(snap.ready_queue)}  "
        f"waiting: {_names(snap.waiting)}  done: {_names(snap.completed)}"
    )
    for entry in step.entries:
        console.print(f"       [{KIND_STYLES[entry.kind]}]{escape(entry.message)}[/]")


def _animate(console: Console, replay: Replay, config: RunConfig) -> None:
    """
    Drive the replay at the configured tick rate, printing each tick's state.
    """
    if not replay.timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    console.print(
        f"[bold]Replaying {replay.policy.label}[/bold] (duration {replay.terminal_time} time units)"
    )
    console.print("[dim]Press Ctrl+C to skip the replay.[/dim]")

    while not replay.finished:
        _print_step(console, replay.advance())
        time.sleep(config.tick_interval)

    console.print()


def _run(console: Console, args: argparse.Namespace) -> int:
    policy = Policy.parse(args.algorithm)
    processes, preset_quantum = _load_source(args)
    config = RunConfig(
        # Only Round Robin uses the quantum; other policies ignore it.
        quantum=_pick_quantum(args.quantum, preset_quantum) if policy is Policy.ROUND_ROBIN else DEFAULT_QUANTUM,
        step_delay=args.step_delay,
        speed=args.speed,
    )
    quantum = config.quantum if policy is Policy.ROUND_ROBIN else None

    timeline = run_algorithm(policy, processes, quantum=quantum)
    metrics = compute_metrics(processes, timeline)

    if args.step:
        try:
            _animate(console, Replay(processes, timeline, policy), config)
        except KeyboardInterrupt:
            console.print("[yellow]Replay skipped.[/yellow]")

    _print_result(console, policy, quantum, timeline, metrics)
    return 0


def _compare(console: Console, args: argparse.Namespace) -> int:
    processes, preset_quantum = _load_source(args)
    config = RunConfig(quantum=_pick_quantum(args.quantum, preset_quantum))

    comparisons = compare_all(processes, quantum=config.quantum)
    if not comparisons:
        console.print("[red]Workload contains no processes.[/red]")
        return 1

    winners = {attr: best_by(comparisons, attr).policy for attr in RANKED_METRICS}

    def cell(c, attr: str) -> str:
        text = f"{getattr(c.metrics, attr):.2f}"
        return f"[bold green]{text}[/bold green]" if winners[attr] is c.policy else text

    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("CPU util", justify="right")
    summary_table.add_column("Total time", justify="right")

    for c in comparisons:
        summary_table.add_row(
            c.policy.label,
            "" if c.quantum is None else str(c.quantum),
            cell(c, "avg_waiting"),
            cell(c, "avg_turnaround"),
            cell(c, "avg_response"),
            f"{c.metrics.cpu_utilization:.1f}%",
            str(c.metrics.total_time),
        )

    console.print(summary_table)
    console.print(f"[bold]Lowest average waiting time:[/bold] {winners['avg_waiting'].label}")
    return 0


def _list_presets(console: Console) -> int:
    table = Table(title="Built-in scenarios", box=box.SIMPLE_HEAVY)
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Recommended")
    table.add_column("Processes", justify="right")
    table.add_column("Description")

    for scenario in PRESETS.values():
        recommended = scenario.recommended.value
        if scenario.quantum is not None:
            recommended += f" (q={scenario.quantum})"
        table.add_row(
            scenario.key,
            scenario.name,
            recommended,
            str(len(scenario.processes)),
            scenario.description,
        )

    console.print(table)
    return 0


def _write_template(console: Console, destination: str) -> int:
    if destination == "-":
        sys.stdout.write(SAMPLE_CSV)
        return 0
    Path(destination).write_text(SAMPLE_CSV, encoding="utf-8")
    console.print(f"Wrote sample workload to [green]{destination}[/green]")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    console = Console()

    try:
        if args.command == "run":
            return _run(console, args)
        if args.command == "compare":
            return _compare(console, args)
        if args.command == "presets":
            return _list_presets(console)
        if args.command == "template":
            return _write_template(console, args.path)
    except (ValueError, OSError) as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
