"""Utility functions for sheet to GitHub sync."""

import json
import os
from datetime import date, datetime, time, timezone

from dateutil import parser as dateparser
from openpyxl.utils.datetime import from_excel

from models import SyncSettings
from patterns import Patterns

# File paths
CONFIG_FILE = "config.json"
LAST_SYNC_FILE = "last_sync.json"

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "GITHUB_TOKEN": ("github", "token"),
    "REPO_OWNER": ("github", "owner"),
    "GITHUB_OWNER": ("github", "owner"),
    "REPO_NAME": ("github", "repo"),
    "GITHUB_REPO": ("github", "repo"),
    "PROJECT_NUMBER": ("github", "project_number"),
    "SHEET_ID": ("sheet", "sheet_id"),
    "SHEET_FILE": ("sheet", "file"),
}


# ============================================================================
# Config
# ============================================================================


def load_config(path: str = CONFIG_FILE) -> dict:
    """Load config.json, or an empty config if the file does not exist."""
    if not os.path.exists(path):
        return {}
    with open(path) as f:
        return json.load(f)


def apply_env_overrides(config: dict, environ: dict | None = None) -> dict:
    """Let environment variables fill in or replace config values."""
    environ = os.environ if environ is None else environ
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            config.setdefault(section, {})[key] = value
    github = config.get("github", {})
    if isinstance(github.get("project_number"), str) and github["project_number"].isdigit():
        github["project_number"] = int(github["project_number"])
    return config


def validate_config(config: dict) -> list[str]:
    """Validate config structure and return list of error messages.

    Returns:
        Empty list if valid, otherwise list of error messages.
    """
    errors = []
    github = config.get("github", {})

    if not github.get("token"):
        errors.append("Missing GitHub token (set GITHUB_TOKEN or github.token)")
    for key in ["owner", "repo"]:
        if not github.get(key):
            errors.append(f"Missing github.{key}")

    project_number = github.get("project_number")
    if project_number is not None and not isinstance(project_number, int):
        errors.append(f"github.project_number must be a number, got '{project_number}'")

    owner_type = github.get("project_owner_type", "user")
    if owner_type not in ("user", "organization"):
        errors.append(f"github.project_owner_type must be 'user' or 'organization', got '{owner_type}'")

    return errors


def print_json_error(path: str, e: json.JSONDecodeError) -> None:
    print(f"[!] ERROR: {path} is not valid JSON!")
    print(f"    Line {e.lineno}, column {e.colno}: {e.msg}")
    print()
    print("    Check for missing commas, quotes, or brackets.")


def load_config_safe(path: str = CONFIG_FILE) -> dict | None:
    """Load config with user-friendly error messages.

    Returns:
        Config dict if valid, None if errors occurred.
    """
    try:
        config = apply_env_overrides(load_config(path))
    except json.JSONDecodeError as e:
        print_json_error(path, e)
        return None

    errors = validate_config(config)
    if errors:
        print("[!] ERROR: configuration is incomplete:")
        for err in errors:
            print(f"    - {err}")
        print()
        if not config.get("github", {}).get("token"):
            print("    Create a token with 'repo' and 'project' scopes, then:")
            print('    $ export GITHUB_TOKEN="ghp_..."')
            print()
        print(f"    See config.example.json for the structure of {path}.")
        return None

    return config


def settings_from_config(config: dict) -> SyncSettings:
    """Build SyncSettings, merging tables from the 'sync' section."""
    sync = config.get("sync", {})
    settings = SyncSettings()
    settings.phase_colors.update(sync.get("phase_colors", {}))
    settings.quarter_colors.update(sync.get("quarter_colors", {}))
    settings.status_colors.update(sync.get("status_colors", {}))
    settings.column_keywords.update(sync.get("columns", {}))
    for key in ["delay_ms", "snapshot_max_age_s", "start_field", "end_field"]:
        if key in sync:
            setattr(settings, key, sync[key])
    return settings


# ============================================================================
# Dates
# ============================================================================


def _iso(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date(value) -> str:
    """Convert a sheet cell to YYYY-MM-DD, or "" if it is not a date.

    Accepts native dates, serial day counts (1899-12-30 epoch), "01-Oct-2025"
    text and anything else dateutil understands.
    """
    if value is None or value == "":
        return ""

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return _iso(value)
    if isinstance(value, date):
        return _iso(value)
    if isinstance(value, time):
        # Time-only cell, no day to take
        return ""

    if isinstance(value, str):
        text = value.strip()
        if Patterns.SERIAL_NUMBER.match(text):
            value = float(text)
    else:
        text = str(value).strip()

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value < 1:
            return ""
        try:
            return _iso(from_excel(value))
        except (OverflowError, ValueError):
            return ""

    if not text:
        return ""

    m = Patterns.DAY_MON_YEAR.search(text)
    if m:
        month = MONTHS.get(m.group(2).lower())
        if month:
            try:
                return _iso(date(int(m.group(3)), month, int(m.group(1))))
            except ValueError:
                return ""

    try:
        return _iso(dateparser.parse(text))
    except (ValueError, OverflowError):
        return ""


def format_date_display(iso_date: str) -> str:
    """Format YYYY-MM-DD as DD-Mon-YYYY for issue bodies."""
    if not iso_date or not Patterns.DATE_FORMAT.match(iso_date):
        return "TBD"
    year, month, day = iso_date.split("-")
    return f"{day}-{MONTH_NAMES[int(month) - 1]}-{year}"


def today_iso() -> str:
    return date.today().isoformat()


# ============================================================================
# Last sync
# ============================================================================


def save_last_sync(info: dict, path: str = LAST_SYNC_FILE) -> None:
    """Save summary of the last executed sync."""
    with open(path, "w") as f:
        json.dump(info, f, indent=2, ensure_ascii=False)


def load_last_sync(path: str = LAST_SYNC_FILE) -> dict | None:
    if os.path.exists(path):
        with open(path) as f:
            return json.load(f)
    return None
