"""Tests for issue title/body rendering and the create-vs-update decision."""

import pytest

from clients import ApiError
from models import RemoteItem, TaskRecord
from project_board import ProjectBoard
from reconciler import IssueSnapshot, TaskReconciler, build_body, build_title


class TestBuildTitle:

    def test_phase_prefix(self):
        assert build_title(TaskRecord(activity="Kickoff", phase="Phase 1: Setup")) == "[Phase 1] Kickoff"

    def test_task_prefix_without_phase(self):
        assert build_title(TaskRecord(activity="Kickoff", phase="Setup")) == "[Task] Kickoff"


class TestBuildBody:

    def test_defaults_never_empty(self):
        body = build_body(TaskRecord(activity="Kickoff"), "plan.xlsx", "2026-10-18")
        assert "| **Status** | Not Started |" in body
        assert "| **Phase** | N/A |" in body
        assert "| **Owner** | TBD |" in body
        assert "| **Start Date** | TBD |" in body
        assert "| **End Date** | TBD |" in body
        assert "| **Quarter** | TBD |" in body
        assert "## Task Detail" not in body
        assert "## Deliverable" not in body
        assert body.endswith("*Synced from plan.xlsx on 2026-10-18*")

    def test_full(self):
        task = TaskRecord(
            activity="Kickoff",
            phase="Phase 1: Setup",
            task_detail="Meet everyone",
            principle="Be clear",
            deliverable="Agenda",
            owner="Ana",
            quarter="Q4 2025",
            status="Started",
            start_date="2025-10-01",
            end_date="2025-10-15",
        )
        body = build_body(task, "plan.xlsx", "2026-10-18")
        assert body.startswith("# Kickoff\n")
        assert "| **Phase** | Phase 1 - Setup |" in body
        assert "| **Start Date** | 01-Oct-2025 |" in body
        assert "| **End Date** | 15-Oct-2025 |" in body
        assert "## Task Detail\nMeet everyone\n" in body
        assert "## Guiding Principle\nBe clear\n" in body
        assert "## Deliverable\nAgenda\n" in body

    def test_pipes_escaped_in_table(self):
        body = build_body(TaskRecord(activity="Kickoff", owner="Ana | Bo"), "plan.xlsx", "2026-10-18")
        assert "| **Owner** | Ana \\| Bo |" in body


class TestIssueSnapshot:

    def test_exact_title(self):
        snapshot = IssueSnapshot([RemoteItem(1, "[Phase 2] Kickoff")])
        assert snapshot.find("[Phase 2] Kickoff", "Something else").number == 1

    def test_substring_match(self):
        snapshot = IssueSnapshot([RemoteItem(7, "[Phase 1] Kickoff Meeting")])
        assert snapshot.find("[Phase 1] Kickoff", "Kickoff").number == 7

    def test_first_match_wins(self):
        snapshot = IssueSnapshot([RemoteItem(1, "Kickoff notes"), RemoteItem(2, "[Phase 1] Kickoff")])
        assert snapshot.find("[Phase 1] Kickoff", "Kickoff").number == 1

    def test_no_match(self):
        assert IssueSnapshot([RemoteItem(1, "[Task] Review")]).find("[Task] Kickoff", "Kickoff") is None

    def test_fetch(self, github):
        github.issues = [{"number": 3, "title": "[Task] Review", "body": "", "labels": []}]
        snapshot = IssueSnapshot.fetch(github)
        assert snapshot.items == [RemoteItem(3, "[Task] Review")]

    def test_staleness(self):
        snapshot = IssueSnapshot([], fetched_at=100.0)
        assert not snapshot.is_stale(900, now=500.0)
        assert snapshot.is_stale(900, now=1001.0)


class TestTaskReconciler:

    def test_creates_when_missing(self, github):
        snapshot = IssueSnapshot([])
        reconciler = TaskReconciler(github, snapshot, "plan.xlsx")
        result = reconciler.reconcile(TaskRecord(activity="Kickoff", phase="Phase 1: Setup"), ["Phase 1"])

        assert (result.action, result.number, result.title) == ("created", 1, "[Phase 1] Kickoff")
        assert github.issues[0]["labels"] == ["Phase 1"]
        assert snapshot.items == [RemoteItem(1, "[Phase 1] Kickoff")]

    def test_substring_match_updates(self, github):
        github.issues = [{"number": 5, "title": "[Phase 1] Kickoff Meeting", "body": "", "labels": ["Old"]}]
        reconciler = TaskReconciler(github, IssueSnapshot.fetch(github), "plan.xlsx")
        result = reconciler.reconcile(TaskRecord(activity="Kickoff", phase="Phase 1: Setup"), ["Phase 1"])

        assert (result.action, result.number) == ("updated", 5)
        assert github.count("create_issue") == 0
        assert github.issues[0]["labels"] == ["Phase 1"]
        # Title is kept as is on update
        assert github.issues[0]["title"] == "[Phase 1] Kickoff Meeting"

    def test_created_issue_added_to_board(self, github):
        board = ProjectBoard(github, "acme", 1)
        reconciler = TaskReconciler(github, IssueSnapshot([]), "plan.xlsx", board=board)
        reconciler.reconcile(TaskRecord(activity="Kickoff"), [])

        assert github.project_items == {1: "PVTI_1"}
        assert board.find_item(1) == "PVTI_1"

    def test_updated_issue_not_re_added_to_board(self, github):
        github.issues = [{"number": 1, "title": "[Task] Kickoff", "body": "", "labels": []}]
        board = ProjectBoard(github, "acme", 1)
        reconciler = TaskReconciler(github, IssueSnapshot.fetch(github), "plan.xlsx", board=board)
        reconciler.reconcile(TaskRecord(activity="Kickoff"), [])
        assert github.count("add_project_item") == 0

    def test_dry_run_writes_nothing(self, github):
        reconciler = TaskReconciler(github, IssueSnapshot([]), "plan.xlsx", dry_run=True)
        result = reconciler.reconcile(TaskRecord(activity="Kickoff"), [])
        assert (result.action, result.number) == ("created", None)
        assert github.calls == []

    def test_dry_run_create_seen_by_later_rows(self, github, capsys):
        snapshot = IssueSnapshot([])
        reconciler = TaskReconciler(github, snapshot, "plan.xlsx", dry_run=True)
        reconciler.reconcile(TaskRecord(activity="Kickoff"), [])
        again = reconciler.reconcile(TaskRecord(activity="Kickoff"), [])

        assert (again.action, again.number) == ("updated", None)
        assert snapshot.items == [RemoteItem(None, "[Task] Kickoff")]
        assert "Would update new issue" in capsys.readouterr().out
        assert github.calls == []

    def test_write_failure_propagates(self, github):
        github.fail_on["create_issue"] = 422
        reconciler = TaskReconciler(github, IssueSnapshot([]), "plan.xlsx")
        with pytest.raises(ApiError) as exc:
            reconciler.reconcile(TaskRecord(activity="Kickoff"), [])
        assert exc.value.status_code == 422
