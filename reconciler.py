"""Create or update one GitHub issue per task."""

import time

from labels import phase_description, phase_label
from models import ReconcileResult, RemoteItem, TaskRecord
from utils import format_date_display, today_iso


class IssueSnapshot:
    """Issues listed once at the start of a run.

    Issues created during the run are added locally; the server is never
    re-queried, so edits made by others after `fetched_at` are not seen.
    """

    def __init__(self, items: list[RemoteItem], fetched_at: float | None = None):
        self.items = list(items)
        self.fetched_at = time.monotonic() if fetched_at is None else fetched_at

    @classmethod
    def fetch(cls, client) -> "IssueSnapshot":
        issues = client.list_issues()
        return cls([RemoteItem(number=i["number"], title=i["title"]) for i in issues])

    def __len__(self) -> int:
        return len(self.items)

    def add(self, item: RemoteItem) -> None:
        self.items.append(item)

    def find(self, title: str, activity: str) -> RemoteItem | None:
        """First issue with the exact title or containing the activity text."""
        for item in self.items:
            if item.title == title or activity in item.title:
                return item
        return None

    def age(self, now: float | None = None) -> float:
        return (time.monotonic() if now is None else now) - self.fetched_at

    def is_stale(self, max_age_s: float, now: float | None = None) -> bool:
        return self.age(now) > max_age_s


def build_title(task: TaskRecord) -> str:
    return f"[{phase_label(task.phase) or 'Task'}] {task.activity}"


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def build_body(task: TaskRecord, source: str, synced_on: str | None = None) -> str:
    """Render the issue body markdown."""
    phase = phase_label(task.phase) or "N/A"
    description = phase_description(task.phase)
    if description:
        phase = f"{phase} - {description}"

    lines = [
        f"# {task.activity}",
        "",
        "## Status",
        "| Field | Value |",
        "|-------|-------|",
        f"| **Status** | {_cell(task.status or 'Not Started')} |",
        f"| **Phase** | {_cell(phase)} |",
        f"| **Owner** | {_cell(task.owner or 'TBD')} |",
        "",
        "## Timeline",
        "| Field | Value |",
        "|-------|-------|",
        f"| **Start Date** | {format_date_display(task.start_date)} |",
        f"| **End Date** | {format_date_display(task.end_date)} |",
        f"| **Quarter** | {_cell(task.quarter or 'TBD')} |",
        "",
    ]

    for heading, text in [
        ("Task Detail", task.task_detail),
        ("Guiding Principle", task.principle),
        ("Deliverable", task.deliverable),
    ]:
        if text:
            lines.extend([f"## {heading}", text, ""])

    lines.extend(["---", f"*Synced from {source} on {synced_on or today_iso()}*"])
    return "\n".join(lines)


class TaskReconciler:
    """Decides create vs. update for a task against the issue snapshot."""

    def __init__(self, client, snapshot: IssueSnapshot, source: str, board=None, dry_run: bool = False):
        self.client = client
        self.snapshot = snapshot
        self.source = source
        self.board = board
        self.dry_run = dry_run

    def reconcile(self, task: TaskRecord, labels: list[str], synced_on: str | None = None) -> ReconcileResult:
        title = build_title(task)
        body = build_body(task, self.source, synced_on)
        existing = self.snapshot.find(title, task.activity)

        if existing:
            if self.dry_run:
                ref = f"#{existing.number}" if existing.number is not None else "new issue"
                print(f"    [DRY-RUN] Would update {ref}: {existing.title}")
            else:
                self.client.update_issue(existing.number, body, labels)
                print(f"    [~] Updated #{existing.number}: {title}")
            return ReconcileResult(number=existing.number, action="updated", title=title)

        if self.dry_run:
            print(f"    [DRY-RUN] Would create: {title}")
            # Not yet numbered; later rows with the same activity see it as existing
            self.snapshot.add(RemoteItem(number=None, title=title))
            return ReconcileResult(number=None, action="created", title=title)

        issue = self.client.create_issue(title, body, labels)
        number = issue["number"]
        self.snapshot.add(RemoteItem(number=number, title=title))
        print(f"    [+] Created #{number}: {title}")

        if self.board:
            self.board.add_issue(number)
        return ReconcileResult(number=number, action="created", title=title)
