"""Derive phase/quarter/status labels and make sure they exist on GitHub."""

from models import Label, SyncSettings, TaskRecord
from patterns import Patterns


def phase_label(text: str) -> str | None:
    """'Phase 1: Setup' -> 'Phase 1'."""
    m = Patterns.PHASE.search(text or "")
    return f"Phase {int(m.group(1))}" if m else None


def phase_description(text: str) -> str | None:
    """'Phase 1: Setup' -> 'Setup'."""
    m = Patterns.PHASE_DESCRIPTION.search(text or "")
    return m.group(1).strip() if m else None


def quarter_label(text: str) -> str | None:
    """First quarter mentioned: 'Q3 2026 - Q4 2026' -> 'Q3 2026'."""
    m = Patterns.QUARTER.search(text or "")
    return f"Q{m.group(1)} {m.group(2)}" if m else None


class LabelDeriver:
    """Maps a task to labels and creates missing label definitions."""

    def __init__(self, client, settings: SyncSettings, dry_run: bool = False):
        self.client = client
        self.settings = settings
        self.dry_run = dry_run

    def derive(self, task: TaskRecord) -> list[Label]:
        s = self.settings
        labels = []

        phase = phase_label(task.phase)
        if phase:
            labels.append(
                Label(phase, s.phase_colors.get(phase, s.phase_fallback_color), f"{phase} tasks")
            )

        quarter = quarter_label(task.quarter)
        if quarter:
            labels.append(
                Label(
                    quarter,
                    s.quarter_colors.get(quarter, s.quarter_fallback_color),
                    f"{quarter} deliverables",
                )
            )

        if task.status:
            labels.append(
                Label(
                    task.status,
                    s.status_colors.get(task.status, s.status_fallback_color),
                    f"Status: {task.status}",
                )
            )

        unique = {}
        for label in labels:
            unique.setdefault(label.name, label)
        return list(unique.values())

    def ensure(self, label: Label) -> bool:
        """Create the label unless it already exists. Returns True if created.

        Only a 404 on lookup leads to a create; other API errors propagate.
        """
        if self.client.get_label(label.name) is not None:
            return False
        if self.dry_run:
            print(f"    [DRY-RUN] Would create label '{label.name}' (#{label.color})")
            return False
        self.client.create_label(label.name, label.color, label.description)
        print(f"    [+] Created label '{label.name}' (#{label.color})")
        return True

    def ensure_labels(self, task: TaskRecord) -> list[str]:
        labels = self.derive(task)
        for label in labels:
            self.ensure(label)
        return [label.name for label in labels]
