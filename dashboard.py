"""
Read-only progress dashboard for the project plan sheet.

Usage:
    python dashboard.py --file project-plan.xlsx
    python dashboard.py --sheet-id <ID or URL> --filter in-progress
    python dashboard.py --offline   # show the last cached snapshot
"""

import argparse
import json
import os
from dataclasses import asdict
from datetime import date, datetime
from zipfile import BadZipFile

from openpyxl.utils.exceptions import InvalidFileException

from clients import ApiError
from models import DashboardTask, PhaseSummary, ProjectSnapshot, TaskRecord
from sheet_reader import extract_sheet_id, fetch_table, load_records, read_table
from utils import (
    CONFIG_FILE,
    apply_env_overrides,
    load_config,
    load_last_sync,
    print_json_error,
    settings_from_config,
)

CACHE_FILE = "dashboard_cache.json"
DEFAULT_NAME = "Project Plan"
FILTERS = {
    "all": None,
    "in-progress": "in-progress",
    "completed": "completed",
    "upcoming": "not-started",
}
BAR_WIDTH = 30
SHEET_STATUSES = {
    "not started": "not-started",
    "started": "in-progress",
    "in progress": "in-progress",
    "completed": "completed",
}


def determine_status(start_date: str, end_date: str, today: date, sheet_status: str = "") -> str:
    """Status from the sheet's Status column if it is a known value, else from dates."""
    known = SHEET_STATUSES.get(sheet_status.strip().lower())
    if known:
        return known
    if not start_date and not end_date:
        return "not-started"
    if end_date and date.fromisoformat(end_date) < today:
        return "completed"
    if start_date and date.fromisoformat(start_date) <= today:
        return "in-progress"
    return "not-started"


def calculate_progress(start_date: str, end_date: str, today: date) -> int:
    if not start_date or not end_date:
        return 0
    start = date.fromisoformat(start_date)
    end = date.fromisoformat(end_date)
    if today >= end:
        return 100
    if today <= start:
        return 0
    return round((today - start).days / (end - start).days * 100)


def build_snapshot(records: list[TaskRecord], today: date, name: str = DEFAULT_NAME) -> ProjectSnapshot:
    tasks = []
    by_phase: dict[str, list[DashboardTask]] = {}
    for i, record in enumerate(records, start=1):
        task = DashboardTask(
            id=f"task-{record.row_number or i}",
            phase=record.phase,
            activity=record.activity,
            owner=record.owner,
            quarter=record.quarter,
            start_date=record.start_date,
            end_date=record.end_date,
            status=determine_status(record.start_date, record.end_date, today, record.status),
            progress=calculate_progress(record.start_date, record.end_date, today),
        )
        tasks.append(task)
        if task.phase:
            by_phase.setdefault(task.phase, []).append(task)

    phases = []
    for phase, phase_tasks in by_phase.items():
        starts = sorted(t.start_date for t in phase_tasks if t.start_date)
        ends = sorted(t.end_date for t in phase_tasks if t.end_date)
        phases.append(
            PhaseSummary(
                name=phase,
                task_count=len(phase_tasks),
                progress=round(sum(t.progress for t in phase_tasks) / len(phase_tasks)),
                start_date=starts[0] if starts else "",
                end_date=ends[-1] if ends else "",
            )
        )

    today_str = today.isoformat()
    stats = {
        "total": len(tasks),
        "completed": sum(1 for t in tasks if t.status == "completed"),
        "in_progress": sum(1 for t in tasks if t.status == "in-progress"),
        "not_started": sum(1 for t in tasks if t.status == "not-started"),
        "overdue": sum(1 for t in tasks if is_overdue(t, today_str)),
    }
    overall = round(sum(t.progress for t in tasks) / len(tasks)) if tasks else 0

    return ProjectSnapshot(
        name=name,
        tasks=tasks,
        phases=phases,
        stats=stats,
        overall_progress=overall,
        last_updated=datetime.now().isoformat(timespec="seconds"),
    )


def is_overdue(task: DashboardTask, today_str: str) -> bool:
    return task.status != "completed" and bool(task.end_date) and task.end_date < today_str


# ============================================================================
# Cache
# ============================================================================


def save_snapshot(snapshot: ProjectSnapshot, path: str = CACHE_FILE) -> None:
    with open(path, "w") as f:
        json.dump(asdict(snapshot), f, indent=2, ensure_ascii=False)


def load_snapshot(path: str = CACHE_FILE) -> ProjectSnapshot | None:
    if not os.path.exists(path):
        return None
    with open(path) as f:
        data = json.load(f)
    return ProjectSnapshot(
        name=data["name"],
        tasks=[DashboardTask(**t) for t in data["tasks"]],
        phases=[PhaseSummary(**p) for p in data["phases"]],
        stats=data["stats"],
        overall_progress=data["overall_progress"],
        last_updated=data["last_updated"],
    )


# ============================================================================
# Rendering
# ============================================================================


def progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    filled = round(width * percent / 100)
    return "#" * filled + "." * (width - filled)


def render(snapshot: ProjectSnapshot, status_filter: str = "all", last_sync: dict | None = None) -> None:
    today_str = date.today().isoformat()
    stats = snapshot.stats

    print()
    print("=" * 70)
    print(f"{snapshot.name.upper()} | Updated {snapshot.last_updated}")
    print("=" * 70)
    if last_sync:
        print(f"[*] Last GitHub sync: {last_sync.get('synced_at', '?')}")
    print()
    print(f"Overall: [{progress_bar(snapshot.overall_progress)}] {snapshot.overall_progress:3d}%")
    print(
        f"Tasks: {stats['total']} | Completed: {stats['completed']} | "
        f"In progress: {stats['in_progress']} | Not started: {stats['not_started']} | "
        f"Overdue: {stats['overdue']}"
    )

    if snapshot.phases:
        print()
        print("Phases:")
        for phase in snapshot.phases:
            span = f"{phase.start_date or '?'} -> {phase.end_date or '?'}"
            print(f"    {phase.name[:40]:<40} [{progress_bar(phase.progress, 20)}] {phase.progress:3d}%  {span}")

    wanted = FILTERS[status_filter]
    tasks = [t for t in snapshot.tasks if wanted is None or t.status == wanted]
    print()
    print(f"Tasks ({status_filter}):")
    for t in tasks:
        flag = " [!] OVERDUE" if is_overdue(t, today_str) else ""
        print(
            f"    {t.end_date or '----------'} | {t.progress:3d}% | {t.status:<11} | "
            f"{t.activity[:40]:<40} | {t.owner or '-'}{flag}"
        )
    print(f"    {'─' * 60}")
    print(f"    {len(tasks)} of {len(snapshot.tasks)} tasks")


# ============================================================================
# CLI
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Show project plan progress")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", help="Local .xlsx or .csv export of the sheet")
    source.add_argument("--sheet-id", help="Google Sheet ID or URL")
    source.add_argument("--offline", action="store_true", help="Only show the cached snapshot")
    parser.add_argument("--sheet-name", help="Worksheet to read (default: first)")
    parser.add_argument("--filter", choices=list(FILTERS), default="all", help="Which tasks to list")
    parser.add_argument("--name", help=f"Dashboard title (default: {DEFAULT_NAME})")
    parser.add_argument("--config", default=CONFIG_FILE, help=f"Config file (default: {CONFIG_FILE})")
    args = parser.parse_args(argv)

    try:
        config = apply_env_overrides(load_config(args.config))
    except json.JSONDecodeError as e:
        print_json_error(args.config, e)
        return 1
    sheet = config.get("sheet", {})
    sheet_file = args.file or (None if args.sheet_id else sheet.get("file"))
    sheet_id = extract_sheet_id(args.sheet_id) if args.sheet_id else sheet.get("sheet_id")
    sheet_name = args.sheet_name or sheet.get("sheet_name")
    name = args.name or sheet.get("name") or DEFAULT_NAME

    snapshot = None
    if not args.offline:
        if not sheet_file and not sheet_id:
            print("Error: No sheet given. Use --file, --sheet-id, or --offline")
            return 1
        try:
            table = read_table(sheet_file, sheet_name) if sheet_file else fetch_table(sheet_id, sheet_name)
            records = load_records(table, settings_from_config(config).column_keywords)
            snapshot = build_snapshot(records, date.today(), name)
            save_snapshot(snapshot)
        except (ApiError, OSError, ValueError, BadZipFile, InvalidFileException) as e:
            print(f"[!] Could not read sheet: {e}")

    if snapshot is None:
        snapshot = load_snapshot()
        if snapshot is None:
            print("[!] No cached snapshot available.")
            return 1
        print(f"[*] Showing cached snapshot from {snapshot.last_updated}")

    render(snapshot, args.filter, load_last_sync())
    return 0


if __name__ == "__main__":
    exit(main())
