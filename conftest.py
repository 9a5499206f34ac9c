"""Shared fixtures: an in-memory stand-in for GitHubClient."""

import pytest

from clients import ApiError
from models import SyncSettings


class FakeGitHub:
    """Implements the GitHubClient methods the sync uses, in memory."""

    def __init__(self):
        self.issues: list[dict] = []
        self.labels: dict[str, dict] = {}
        self.project_fields: dict[str, str] = {}  # name -> field id
        self.project_items: dict[int, str] = {}  # issue number -> item id
        self.field_values: dict[tuple[str, str], str] = {}  # (item id, field id) -> date
        self.calls: list[tuple] = []
        self.fail_on: dict[str, int] = {}  # method -> HTTP status to fail with

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise ApiError(f"GitHub: HTTP {self.fail_on[name]}", self.fail_on[name])

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)

    # REST

    def list_issues(self):
        self._call("list_issues")
        return [dict(i) for i in self.issues]

    def get_label(self, name):
        self._call("get_label", name)
        return self.labels.get(name)

    def create_label(self, name, color, description=""):
        self._call("create_label", name, color)
        self.labels[name] = {"name": name, "color": color, "description": description}
        return self.labels[name]

    def create_issue(self, title, body, labels):
        self._call("create_issue", title)
        issue = {"number": len(self.issues) + 1, "title": title, "body": body, "labels": list(labels)}
        self.issues.append(issue)
        return dict(issue)

    def update_issue(self, number, body, labels):
        self._call("update_issue", number)
        issue = next(i for i in self.issues if i["number"] == number)
        issue["body"] = body
        issue["labels"] = list(labels)
        return dict(issue)

    # GraphQL

    def get_issue_node_id(self, number):
        self._call("get_issue_node_id", number)
        return f"I_{number}"

    def get_project_id(self, owner, number, owner_type="user"):
        self._call("get_project_id", owner, number)
        return "PVT_1"

    def list_project_fields(self, project_id):
        self._call("list_project_fields")
        return [{"id": fid, "name": name, "dataType": "DATE"} for name, fid in self.project_fields.items()]

    def list_project_items(self, project_id):
        self._call("list_project_items")
        return [{"id": iid, "number": n} for n, iid in self.project_items.items()]

    def create_date_field(self, project_id, name):
        self._call("create_date_field", name)
        field_id = f"F_{len(self.project_fields) + 1}"
        self.project_fields[name] = field_id
        return {"id": field_id, "name": name}

    def add_project_item(self, project_id, content_id):
        self._call("add_project_item", content_id)
        number = int(content_id.split("_")[1])
        self.project_items[number] = f"PVTI_{number}"
        return self.project_items[number]

    def set_date_field(self, project_id, item_id, field_id, value):
        self._call("set_date_field", item_id, field_id, value)
        self.field_values[(item_id, field_id)] = value


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def settings():
    return SyncSettings(delay_ms=0)
