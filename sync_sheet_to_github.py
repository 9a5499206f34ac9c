"""
Sync a project plan sheet to GitHub Issues and a GitHub Project board.

Usage:
    # Dry-run (default) - shows what would happen
    python sync_sheet_to_github.py --file project-plan.xlsx

    # Execute - actually creates/updates issues
    python sync_sheet_to_github.py --file project-plan.xlsx --execute

    # Read the sheet straight from Google Sheets
    python sync_sheet_to_github.py --sheet-id <ID or URL> --execute
"""

import argparse
import time
from datetime import datetime

from clients import ApiError, GitHubClient
from labels import LabelDeriver
from models import SyncSettings, SyncState
from project_board import ProjectBoard
from reconciler import IssueSnapshot, TaskReconciler
from sheet_reader import (
    SheetTable,
    extract_sheet_id,
    fetch_table,
    is_blank,
    map_columns,
    normalize_row,
    read_table,
)
from utils import CONFIG_FILE, load_config_safe, save_last_sync, settings_from_config


def sync_rows(
    table: SheetTable,
    client,
    settings: SyncSettings,
    board: ProjectBoard | None = None,
    execute: bool = False,
    sleep=None,
    synced_on: str | None = None,
) -> SyncState:
    """Sync every row of the table, in order.

    ApiError from any remote call stops the batch; rows already synced stay
    synced and a re-run picks up where this one stopped.
    """
    dry_run = not execute
    sleep = sleep or time.sleep
    state = SyncState()

    columns = map_columns(table.headers, settings.column_keywords)
    if columns.get("activity", -1) < 0:
        print(f"[!] No 'Activity' column found. Columns: {', '.join(table.headers)}")
        state.skipped = sum(1 for row in table.rows if not is_blank(row))
        print(f"    [-] {state.skipped} rows skipped (no activity)")
        return state

    print("[2] Fetching existing issues...")
    snapshot = IssueSnapshot.fetch(client)
    print(f"    Found {len(snapshot)} existing issues")

    deriver = LabelDeriver(client, settings, dry_run=dry_run)
    reconciler = TaskReconciler(client, snapshot, table.source, board=board, dry_run=dry_run)

    print()
    print(f"[3] Syncing {len(table.rows)} rows...")
    stale_warned = False
    for row_number, row in enumerate(table.rows, start=2):
        if is_blank(row):
            continue

        task = normalize_row(row, columns, row_number)
        if task is None:
            state.skipped += 1
            print(f"    [-] Row {row_number}: no activity, skipped")
            continue

        print(f"  Row {row_number}: {task.activity}")
        labels = deriver.ensure_labels(task)
        result = reconciler.reconcile(task, labels, synced_on)
        state.results.append(result)
        if result.action == "created":
            state.created += 1
        else:
            state.updated += 1

        if board and not dry_run and result.number is not None:
            # Also repairs issues left off the board by an earlier run
            board.ensure_item(result.number)
            updated = board.set_dates(result.number, task.start_date, task.end_date)
            if updated:
                state.dates_set += 1
                print(f"    [*] Dates set: {', '.join(updated)}")

        if not stale_warned and snapshot.is_stale(settings.snapshot_max_age_s):
            print(
                f"    [!] Issue list is older than {settings.snapshot_max_age_s:.0f}s; "
                "issues changed by others since then are not seen by this run"
            )
            stale_warned = True

        sleep(settings.delay_ms / 1000)

    return state


def print_summary(state: SyncState, execute: bool) -> None:
    prefix = "" if execute else "[DRY-RUN] Would have "
    print()
    print("=" * 70)
    print(f"{prefix}Created: {state.created} issues")
    print(f"{prefix}Updated: {state.updated} issues")
    print(f"Skipped: {state.skipped} rows (no activity)")
    if execute:
        print(f"Dates set on {state.dates_set} project items")
    print("=" * 70)
    if not execute:
        print()
        print("Run with --execute to apply changes.")


def load_table(config: dict) -> SheetTable:
    sheet = config.get("sheet", {})
    if sheet.get("file"):
        print(f"[1] Reading {sheet['file']}...")
        table = read_table(sheet["file"], sheet.get("sheet_name"))
    else:
        print("[1] Fetching Google Sheet...")
        table = fetch_table(sheet["sheet_id"], sheet.get("sheet_name"))
    print(f"    Found {len(table.rows)} rows")
    print(f"    Columns: {', '.join(table.headers)}")
    return table


def build_board(config: dict, client: GitHubClient, settings: SyncSettings) -> ProjectBoard | None:
    github = config["github"]
    if github.get("project_number") is None:
        return None
    return ProjectBoard(
        client,
        owner=github.get("project_owner") or github["owner"],
        number=github["project_number"],
        owner_type=github.get("project_owner_type", "user"),
        start_field=settings.start_field,
        end_field=settings.end_field,
    )


def sync(config: dict, execute: bool) -> int:
    """Main sync function."""
    mode = "EXECUTE" if execute else "DRY-RUN"
    github = config["github"]

    print()
    print("=" * 70)
    print(f"SYNC SHEET -> GITHUB | {github['owner']}/{github['repo']} | Mode: {mode}")
    print("=" * 70)
    print()

    settings = settings_from_config(config)
    client = GitHubClient(config)
    board = build_board(config, client, settings)
    if board is None:
        print("[*] No github.project_number configured, project dates are skipped")

    table = load_table(config)
    print()
    state = sync_rows(table, client, settings, board=board, execute=execute)
    print_summary(state, execute)

    if execute:
        save_last_sync(
            {
                "synced_at": datetime.now().isoformat(timespec="seconds"),
                "source": table.source,
                "created": state.created,
                "updated": state.updated,
                "skipped": state.skipped,
            }
        )

    print()
    print("[*] Done.")
    return 0


# ============================================================================
# CLI
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sync a project plan sheet to GitHub Issues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Dry-run (default) - shows what would happen
    python sync_sheet_to_github.py --file project-plan.xlsx

    # Execute - actually creates/updates issues
    python sync_sheet_to_github.py --file project-plan.xlsx --execute

    # Google Sheet shared as "Anyone with the link can view"
    python sync_sheet_to_github.py --sheet-id https://docs.google.com/spreadsheets/d/<ID>/edit
        """,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", help="Local .xlsx or .csv export of the sheet")
    source.add_argument("--sheet-id", help="Google Sheet ID or URL")
    parser.add_argument("--sheet-name", help="Worksheet to read (default: first)")
    parser.add_argument(
        "--execute", action="store_true", help="Actually execute changes (default: dry-run)"
    )
    parser.add_argument("--delay-ms", type=int, help="Pause between rows (default: 500)")
    parser.add_argument("--config", default=CONFIG_FILE, help=f"Config file (default: {CONFIG_FILE})")

    args = parser.parse_args(argv)

    config = load_config_safe(args.config)
    if config is None:
        return 1

    sheet = config.setdefault("sheet", {})
    if args.file:
        sheet["file"] = args.file
        sheet.pop("sheet_id", None)
    if args.sheet_id:
        sheet_id = extract_sheet_id(args.sheet_id)
        if not sheet_id:
            print(f"Error: Invalid Google Sheet ID or URL '{args.sheet_id}'")
            return 1
        sheet["sheet_id"] = sheet_id
        sheet.pop("file", None)
    if args.sheet_name:
        sheet["sheet_name"] = args.sheet_name
    if args.delay_ms is not None:
        config.setdefault("sync", {})["delay_ms"] = args.delay_ms

    if not sheet.get("file") and not sheet.get("sheet_id"):
        print("Error: No sheet given. Use --file, --sheet-id, or the 'sheet' section of config.json")
        return 1

    try:
        return sync(config, args.execute)
    except FileNotFoundError as e:
        print(f"[!] ERROR: File not found: {e.filename}")
        print()
        print("    Export your sheet first:")
        print("    File -> Download -> Microsoft Excel (.xlsx)")
        return 1
    except ApiError as e:
        print()
        print(f"[!] ERROR: {e}")
        print("    Rows before this point are synced; re-run to continue.")
        return 1


if __name__ == "__main__":
    exit(main())
