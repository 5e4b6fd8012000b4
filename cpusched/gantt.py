from __future__ import annotations

from typing import Dict

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Timeline

COLORS = ["blue", "green", "yellow", "magenta", "red", "cyan"]


def render_gantt(timeline: Timeline) -> str:
    """
    Plain-text Gantt chart; ``=`` marks execution and ``.`` an idle CPU.
    """
    if not timeline:
        return "(no execution)"

    line = "|"
    labels = ""
    time_marks = "0"

    for item in timeline:
        width = item.duration
        line += ("." if item.is_idle else "=") * width
        labels += ("" if item.is_idle else item.pid[:width]).ljust(width)
        time_marks += f"{item.end_time:>3}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


def build_rich_gantt(timeline: Timeline) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not timeline:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            pid_to_color[pid] = COLORS[len(pid_to_color) % len(COLORS)]
        return pid_to_color[pid]

    bars = Text()
    labels = Text()
    time_marks = "0"

    for item in timeline:
        width = item.duration
        if item.is_idle:
            bars.append("·" * width, style="dim")
            labels.append("idle"[:width].ljust(width), style="dim")
        else:
            bars.append(" " * width, style=f"on {pid_color(item.pid)}")
            labels.append(item.pid[:width].ljust(width), style="bold")
        time_marks += f"{item.end_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(bars)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
