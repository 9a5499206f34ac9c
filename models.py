"""Data models for sheet to GitHub sync."""

from dataclasses import dataclass, field

PHASE_COLORS = {
    "Phase 1": "0052CC",
    "Phase 2": "5319E7",
    "Phase 3": "0E8A16",
    "Phase 4": "D93F0B",
    "Phase 5": "FF6B6B",
}

QUARTER_COLORS = {
    "Q1 2025": "FBCA04",
    "Q2 2025": "F9D0C4",
    "Q3 2025": "C5DEF5",
    "Q4 2025": "BFD4F2",
    "Q1 2026": "D4C5F9",
    "Q2 2026": "FEF2C0",
    "Q3 2026": "BFDADC",
    "Q4 2026": "C2E0C6",
    "Q1 2027": "E6CCFF",
    "Q2 2027": "CCFFE6",
    "Q3 2027": "FFCCCC",
    "Q4 2027": "CCE6FF",
}

STATUS_COLORS = {
    "Started": "0E8A16",
    "Not Started": "E4E669",
    "In Progress": "1D76DB",
    "Completed": "98FF98",
}

# Header keywords per field, in priority order (case-insensitive substring)
COLUMN_KEYWORDS = {
    "phase": ["phase"],
    "activity": ["activity"],
    "task_detail": ["task detail"],
    "principle": ["pt1 principle", "principle"],
    "deliverable": ["deliverable"],
    "owner": ["owner"],
    "quarter": ["quarter"],
    "start_date": ["start date", "start"],
    "end_date": ["end date", "end"],
    "status": ["status"],
}


@dataclass
class TaskRecord:
    """A spreadsheet row with a non-empty activity."""

    activity: str
    phase: str = ""
    task_detail: str = ""
    principle: str = ""
    deliverable: str = ""
    owner: str = ""
    quarter: str = ""
    status: str = ""
    start_date: str = ""  # YYYY-MM-DD or empty
    end_date: str = ""  # YYYY-MM-DD or empty
    row_number: int | None = None

    def __post_init__(self):
        if not self.activity or not self.activity.strip():
            raise ValueError("TaskRecord requires a non-empty activity")


@dataclass
class RemoteItem:
    """An existing GitHub issue. `number` is None for one a dry run would create."""

    number: int | None
    title: str


@dataclass(frozen=True)
class Label:
    """A GitHub label to attach to an issue."""

    name: str
    color: str
    description: str = ""


@dataclass
class ReconcileResult:
    """Outcome of syncing one task to GitHub."""

    number: int | None  # None for a dry-run create
    action: str  # "created" | "updated"
    title: str


@dataclass
class SyncSettings:
    """Tables and tuning knobs for a sync run."""

    phase_colors: dict[str, str] = field(default_factory=lambda: dict(PHASE_COLORS))
    quarter_colors: dict[str, str] = field(default_factory=lambda: dict(QUARTER_COLORS))
    status_colors: dict[str, str] = field(default_factory=lambda: dict(STATUS_COLORS))
    phase_fallback_color: str = "666666"
    quarter_fallback_color: str = "FBCA04"
    status_fallback_color: str = "CCCCCC"
    column_keywords: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in COLUMN_KEYWORDS.items()}
    )
    delay_ms: int = 500
    snapshot_max_age_s: float = 900.0
    start_field: str = "Start Date"
    end_field: str = "End Date"


@dataclass
class SyncState:
    """State tracking for a sync operation."""

    results: list[ReconcileResult] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    skipped: int = 0
    dates_set: int = 0


@dataclass
class DashboardTask:
    """A task as shown on the progress dashboard."""

    id: str
    phase: str
    activity: str
    owner: str
    quarter: str
    start_date: str
    end_date: str
    status: str  # not-started | in-progress | completed
    progress: int


@dataclass
class PhaseSummary:
    """Aggregated progress of all tasks in one phase."""

    name: str
    task_count: int
    progress: int
    start_date: str
    end_date: str


@dataclass
class ProjectSnapshot:
    """Everything the dashboard renders."""

    name: str
    tasks: list[DashboardTask]
    phases: list[PhaseSummary]
    stats: dict[str, int]
    overall_progress: int
    last_updated: str
