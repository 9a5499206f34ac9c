"""Tests for the GitHub and Google Sheets clients with a faked HTTP layer."""

import json

import pytest
import requests

import clients
from clients import ApiError, GitHubClient, SheetClient, _handle_api_error

CONFIG = {"github": {"token": "tok", "owner": "acme", "repo": "plan"}}


class FakeResponse:

    def __init__(self, status_code=200, payload=None, content=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        if content is None:
            content = json.dumps(payload).encode() if payload is not None else b""
        self.content = content

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def client():
    return GitHubClient(CONFIG)


def route(monkeypatch, client, responses):
    """Answer session.request calls from a list, recording what was asked."""
    seen = []

    def request(method, url, **kwargs):
        seen.append((method, url, kwargs))
        return responses.pop(0)

    monkeypatch.setattr(client.session, "request", request)
    return seen


class TestHandleApiError:

    @pytest.mark.parametrize(
        "status, fragment",
        [
            (401, "Authentication failed"),
            (403, "Access denied"),
            (404, "Resource not found"),
            (429, "Too many requests"),
            (503, "Service unavailable"),
        ],
    )
    def test_known_statuses(self, status, fragment):
        assert fragment in _handle_api_error(FakeResponse(status), "GitHub")

    def test_validation_message(self):
        response = FakeResponse(422, {"message": "Label does not exist"})
        assert _handle_api_error(response, "GitHub") == "GitHub: Validation failed - Label does not exist"

    def test_unknown_status(self):
        response = FakeResponse(418, reason="I'm a teapot")
        assert _handle_api_error(response, "GitHub") == "GitHub: HTTP 418 - I'm a teapot"


class TestRest:

    def test_auth_header(self, client):
        assert client.session.headers["Authorization"] == "Bearer tok"

    def test_list_issues_pages_until_empty(self, monkeypatch, client):
        seen = route(
            monkeypatch,
            client,
            [
                FakeResponse(200, [{"number": 1, "title": "a"}, {"number": 2, "title": "pr", "pull_request": {}}]),
                FakeResponse(200, [{"number": 3, "title": "b"}]),
                FakeResponse(200, []),
            ],
        )
        issues = client.list_issues()

        assert [i["number"] for i in issues] == [1, 3]
        assert [kw["params"]["page"] for _, _, kw in seen] == [1, 2, 3]
        assert seen[0][2]["params"]["state"] == "all"
        assert seen[0][2]["params"]["per_page"] == 100
        assert seen[0][1] == "https://api.github.com/repos/acme/plan/issues"

    def test_get_label_found(self, monkeypatch, client):
        seen = route(monkeypatch, client, [FakeResponse(200, {"name": "Q3 2026"})])
        assert client.get_label("Q3 2026") == {"name": "Q3 2026"}
        assert seen[0][1].endswith("/labels/Q3%202026")

    def test_get_label_missing(self, monkeypatch, client):
        route(monkeypatch, client, [FakeResponse(404, {"message": "Not Found"})])
        assert client.get_label("Phase 1") is None

    def test_get_label_other_error(self, monkeypatch, client):
        route(monkeypatch, client, [FakeResponse(500)])
        with pytest.raises(ApiError) as exc:
            client.get_label("Phase 1")
        assert exc.value.status_code == 500

    def test_update_issue_replaces_labels(self, monkeypatch, client):
        seen = route(monkeypatch, client, [FakeResponse(200, {"number": 5})])
        client.update_issue(5, "body", ["Phase 1"])
        method, url, kwargs = seen[0]
        assert (method, url) == ("PATCH", "https://api.github.com/repos/acme/plan/issues/5")
        assert kwargs["json"] == {"body": "body", "labels": ["Phase 1"]}

    def test_connection_error(self, monkeypatch, client):
        def request(*args, **kwargs):
            raise requests.exceptions.ConnectionError()

        monkeypatch.setattr(client.session, "request", request)
        with pytest.raises(ApiError, match="Cannot connect"):
            client.create_issue("t", "b", [])


class TestGraphql:

    def test_errors_raise(self, monkeypatch, client):
        route(monkeypatch, client, [FakeResponse(200, {"errors": [{"message": "Bad field"}]})])
        with pytest.raises(ApiError, match="Bad field"):
            client.graphql("query { viewer { login } }")

    def test_project_id_for_organization(self, monkeypatch, client):
        seen = route(monkeypatch, client, [FakeResponse(200, {"data": {"organization": {"projectV2": {"id": "PVT_9"}}}})])
        assert client.get_project_id("acme", 2, "organization") == "PVT_9"
        assert "organization(login: $owner)" in seen[0][2]["json"]["query"]

    def test_project_not_found(self, monkeypatch, client):
        route(monkeypatch, client, [FakeResponse(200, {"data": {"user": {"projectV2": None}}})])
        with pytest.raises(ApiError, match="Project 3 not found"):
            client.get_project_id("acme", 3)

    def test_project_items_paginated_and_filtered(self, monkeypatch, client):
        def page(nodes, has_next, cursor):
            return FakeResponse(
                200,
                {"data": {"node": {"items": {"pageInfo": {"hasNextPage": has_next, "endCursor": cursor}, "nodes": nodes}}}},
            )

        ours = {"number": 1, "repository": {"nameWithOwner": "Acme/Plan"}}
        theirs = {"number": 1, "repository": {"nameWithOwner": "other/repo"}}
        seen = route(
            monkeypatch,
            client,
            [
                page([{"id": "PVTI_1", "content": ours}, {"id": "PVTI_X", "content": theirs}], True, "c1"),
                page([{"id": "PVTI_D", "content": {}}], False, None),
            ],
        )
        assert client.list_project_items("PVT_1") == [{"id": "PVTI_1", "number": 1}]
        assert seen[1][2]["json"]["variables"]["cursor"] == "c1"


class TestSheetClient:

    def test_html_means_not_shared(self, monkeypatch):
        monkeypatch.setattr(clients.requests, "get", lambda url, timeout: FakeResponse(200, content=b"<!DOCTYPE html>"))
        with pytest.raises(ApiError, match="Anyone with the link"):
            SheetClient().fetch_workbook("abc")

    def test_returns_bytes(self, monkeypatch):
        seen = []

        def get(url, timeout):
            seen.append(url)
            return FakeResponse(200, content=b"PK\x03\x04")

        monkeypatch.setattr(clients.requests, "get", get)
        assert SheetClient().fetch_workbook("abc") == b"PK\x03\x04"
        assert seen == ["https://docs.google.com/spreadsheets/d/abc/export?format=xlsx"]
