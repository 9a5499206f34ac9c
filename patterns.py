"""Centralized regex patterns for sheet sync."""

import re


class Patterns:
    """Regex patterns used throughout the sync process."""

    # Phase label: "Phase 1", "phase 2: Analysis", "Phase3"
    PHASE = re.compile(r"Phase\s*(\d+)", re.IGNORECASE)

    # Phase description after the colon: "Phase 1: Compliance Analysis"
    PHASE_DESCRIPTION = re.compile(r"Phase\s*\d+\s*:\s*(.+)", re.IGNORECASE)

    # Quarter: "Q3 2026" (first match wins in "Q3 2026 - Q4 2026")
    QUARTER = re.compile(r"Q([1-4])\s+(\d{4})", re.IGNORECASE)

    # Sheet date text: "1-Oct-2025", "01-Oct-2025"
    DAY_MON_YEAR = re.compile(r"(\d{1,2})-([A-Za-z]{3})-(\d{4})")

    # Serial day count typed as text: "45931", "45931.5"
    SERIAL_NUMBER = re.compile(r"^\d{1,5}(\.\d+)?$")

    # Date format: YYYY-MM-DD
    DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    # Google Sheet ID inside a sheet URL
    SHEET_URL_ID = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
