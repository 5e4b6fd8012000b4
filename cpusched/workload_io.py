from __future__ import annotations

import csv
import json
import logging
import math
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from .errors import InvalidInput
from .models import Process

logger = logging.getLogger(__name__)

FIELDNAMES = ["pid", "arrival_time", "burst_time", "priority"]

# Accepted spellings per field, checked in order against lower-cased headers.
_ID_KEYS = ("pid", "id", "process", "processid", "process_id")
_ARRIVAL_KEYS = ("arrival_time", "arrival", "arrivaltime", "at")
_BURST_KEYS = ("burst_time", "burst", "bursttime", "bt")
_PRIORITY_KEYS = ("priority", "p")

SAMPLE_CSV = """pid,arrival_time,burst_time,priority
P1,0,5,2
P2,1,3,1
P3,2,8,3
P4,3,6,2
P5,4,4,1
"""


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise InvalidInput(f"Unsupported workload format: {suffix} (use .json or .csv)")

    logger.info("loaded %d processes from %s", len(processes), path)
    return processes


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInput(f"{path}: invalid JSON ({exc})") from exc

    if not isinstance(raw, list):
        raise InvalidInput("JSON workload must be a list of process objects")

    # JSON entries are numbered from 1.
    return parse_entries(raw, first_row=1)


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    # Row 1 is the header.
    return parse_entries(rows, first_row=2)


def parse_entries(entries: Iterable[Mapping], first_row: int = 1) -> List[Process]:
    """
    Convert raw mappings into processes, collecting every bad row before failing.
    """
    processes: List[Process] = []
    problems: List[str] = []
    seen: set[str] = set()

    for row_no, entry in enumerate(entries, start=first_row):
        try:
            process = _process_from_mapping(entry)
        except ValueError as exc:
            problems.append(f"Row {row_no}: {exc}")
            continue
        if process.pid in seen:
            problems.append(f"Row {row_no}: Process {process.pid} already exists")
            continue
        seen.add(process.pid)
        processes.append(process)

    if problems:
        raise InvalidInput(problems)
    return processes


def _lookup(mapping: Mapping, keys: Sequence[str]) -> Optional[object]:
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return None


def _process_from_mapping(mapping) -> Process:
    if not isinstance(mapping, Mapping):
        raise ValueError(f"expected an object, got {mapping!r}")

    normalized = {str(k).strip().lower(): v.strip() if isinstance(v, str) else v for k, v in mapping.items()}

    pid = _lookup(normalized, _ID_KEYS)
    if pid is None:
        raise ValueError("Missing process ID")
    pid = str(pid)

    try:
        arrival = float(_lookup(normalized, _ARRIVAL_KEYS))
    except (TypeError, ValueError):
        arrival = math.nan
    if not math.isfinite(arrival) or arrival < 0:
        raise ValueError(f"Invalid arrival time for {pid}")

    try:
        burst = float(_lookup(normalized, _BURST_KEYS))
    except (TypeError, ValueError):
        burst = math.nan
    if not math.isfinite(burst) or burst < 1:
        raise ValueError(f"Invalid burst time for {pid}")

    priority_val = _lookup(normalized, _PRIORITY_KEYS)
    try:
        priority = int(priority_val) if priority_val is not None else 1
    except (TypeError, ValueError):
        raise ValueError(f"Invalid priority for {pid}") from None
    if priority < 1:
        raise ValueError(f"Invalid priority for {pid}")

    return Process(
        pid=pid,
        arrival_time=int(arrival),
        burst_time=math.floor(burst),
        priority=priority,
    )


def dump_workload(processes: Sequence[Process], path: str | Path) -> Path:
    """
    Write processes to ``path`` as CSV or JSON, chosen by suffix.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    rows = [
        {"pid": p.pid, "arrival_time": p.arrival_time, "burst_time": p.burst_time, "priority": p.priority}
        for p in processes
    ]

    if suffix == ".json":
        path.write_text(json.dumps(rows, indent=2) + "\n", encoding="utf-8")
    elif suffix == ".csv":
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            writer.writerows(rows)
    else:
        raise InvalidInput(f"Unsupported workload format: {suffix} (use .json or .csv)")

    logger.info("wrote %d processes to %s", len(rows), path)
    return path
