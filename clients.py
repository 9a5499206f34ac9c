"""API clients for GitHub and Google Sheets."""

from urllib.parse import quote

import requests

GITHUB_API = "https://api.github.com"
SHEET_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=xlsx"


class ApiError(Exception):
    """User-friendly API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _handle_api_error(response: requests.Response, service: str) -> str:
    """Convert HTTP errors to user-friendly messages."""
    status = response.status_code

    messages = {
        401: f"{service}: Authentication failed. Check your GITHUB_TOKEN!",
        403: f"{service}: Access denied or rate limited. Check the token scopes (repo, project)!",
        404: f"{service}: Resource not found. Check owner/repo/project in config.json!",
        422: f"{service}: Validation failed - {_response_message(response)}",
        429: f"{service}: Too many requests. Wait a moment and try again.",
        500: f"{service}: Server error. The service may be temporarily unavailable.",
        502: f"{service}: Bad gateway. The service may be temporarily unavailable.",
        503: f"{service}: Service unavailable. Try again later.",
    }

    return messages.get(status, f"{service}: HTTP {status} - {response.reason}")


def _response_message(response: requests.Response) -> str:
    try:
        return response.json().get("message", response.reason)
    except ValueError:
        return response.reason


class GitHubClient:
    """Client for the GitHub REST and GraphQL APIs."""

    def __init__(self, config: dict):
        github = config["github"]
        self.owner = github["owner"]
        self.repo = github["repo"]
        self.api_url = github.get("api_url", GITHUB_API).rstrip("/")
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {github['token']}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "s2gh-sync",
            }
        )

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, f"{self.api_url}{path}", timeout=30, **kwargs)
        except requests.exceptions.ConnectionError:
            raise ApiError(f"GitHub: Cannot connect to {self.api_url}. Check your network!")
        except requests.exceptions.Timeout:
            raise ApiError("GitHub: Connection timed out. The server may be slow.")

    def _json(self, method: str, path: str, **kwargs):
        r = self._request(method, path, **kwargs)
        if not r.ok:
            raise ApiError(_handle_api_error(r, "GitHub"), r.status_code)
        return r.json() if r.content else None

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------

    def list_issues(self) -> list[dict]:
        """Fetch all issues (open and closed), skipping pull requests."""
        issues = []
        page = 1
        while True:
            batch = self._json(
                "GET",
                f"{self.repo_path}/issues",
                params={"state": "all", "per_page": 100, "page": page},
            )
            if not batch:
                break
            issues.extend(i for i in batch if "pull_request" not in i)
            page += 1
        return issues

    def get_label(self, name: str) -> dict | None:
        """Fetch a label by exact name, None if it does not exist."""
        r = self._request("GET", f"{self.repo_path}/labels/{quote(name, safe='')}")
        if r.status_code == 404:
            return None
        if not r.ok:
            raise ApiError(_handle_api_error(r, "GitHub"), r.status_code)
        return r.json()

    def create_label(self, name: str, color: str, description: str = "") -> dict:
        return self._json(
            "POST",
            f"{self.repo_path}/labels",
            json={"name": name, "color": color, "description": description},
        )

    def create_issue(self, title: str, body: str, labels: list[str]) -> dict:
        return self._json(
            "POST",
            f"{self.repo_path}/issues",
            json={"title": title, "body": body, "labels": labels},
        )

    def update_issue(self, number: int, body: str, labels: list[str]) -> dict:
        """Replace body and labels of an existing issue."""
        return self._json(
            "PATCH",
            f"{self.repo_path}/issues/{number}",
            json={"body": body, "labels": labels},
        )

    # ------------------------------------------------------------------
    # GraphQL (Projects V2)
    # ------------------------------------------------------------------

    def graphql(self, query: str, variables: dict | None = None) -> dict:
        data = self._json("POST", "/graphql", json={"query": query, "variables": variables or {}})
        if data.get("errors"):
            messages = "; ".join(e.get("message", str(e)) for e in data["errors"])
            raise ApiError(f"GitHub GraphQL: {messages}")
        return data["data"]

    def get_issue_node_id(self, number: int) -> str:
        query = """
            query($owner: String!, $repo: String!, $number: Int!) {
              repository(owner: $owner, name: $repo) {
                issue(number: $number) { id }
              }
            }
        """
        data = self.graphql(query, {"owner": self.owner, "repo": self.repo, "number": number})
        return data["repository"]["issue"]["id"]

    def get_project_id(self, owner: str, number: int, owner_type: str = "user") -> str:
        """Resolve a ProjectV2 id for a user- or organization-owned project."""
        if owner_type not in ("user", "organization"):
            raise ApiError(f"GitHub: Unknown project owner type '{owner_type}'")
        query = f"""
            query($owner: String!, $number: Int!) {{
              {owner_type}(login: $owner) {{
                projectV2(number: $number) {{ id }}
              }}
            }}
        """
        data = self.graphql(query, {"owner": owner, "number": number})
        project = (data.get(owner_type) or {}).get("projectV2")
        if not project:
            raise ApiError(f"GitHub: Project {number} not found for {owner_type} '{owner}'", 404)
        return project["id"]

    def list_project_fields(self, project_id: str) -> list[dict]:
        query = """
            query($projectId: ID!) {
              node(id: $projectId) {
                ... on ProjectV2 {
                  fields(first: 50) {
                    nodes {
                      ... on ProjectV2FieldCommon { id name dataType }
                    }
                  }
                }
              }
            }
        """
        data = self.graphql(query, {"projectId": project_id})
        return [f for f in data["node"]["fields"]["nodes"] if f]

    def list_project_items(self, project_id: str) -> list[dict]:
        """Fetch board items that link to issues of this repository."""
        query = """
            query($projectId: ID!, $cursor: String) {
              node(id: $projectId) {
                ... on ProjectV2 {
                  items(first: 100, after: $cursor) {
                    pageInfo { hasNextPage endCursor }
                    nodes {
                      id
                      content {
                        ... on Issue { number repository { nameWithOwner } }
                      }
                    }
                  }
                }
              }
            }
        """
        full_name = f"{self.owner}/{self.repo}".lower()
        items = []
        cursor = None
        while True:
            data = self.graphql(query, {"projectId": project_id, "cursor": cursor})
            page = data["node"]["items"]
            for node in page["nodes"]:
                content = node.get("content") or {}
                repo = (content.get("repository") or {}).get("nameWithOwner", "")
                if content.get("number") and repo.lower() == full_name:
                    items.append({"id": node["id"], "number": content["number"]})
            if not page["pageInfo"]["hasNextPage"]:
                break
            cursor = page["pageInfo"]["endCursor"]
        return items

    def create_date_field(self, project_id: str, name: str) -> dict:
        mutation = """
            mutation($projectId: ID!, $name: String!) {
              createProjectV2Field(input: {projectId: $projectId, dataType: DATE, name: $name}) {
                projectV2Field {
                  ... on ProjectV2Field { id name }
                }
              }
            }
        """
        data = self.graphql(mutation, {"projectId": project_id, "name": name})
        return data["createProjectV2Field"]["projectV2Field"]

    def add_project_item(self, project_id: str, content_id: str) -> str:
        """Attach an issue to the board, returning the board item id."""
        mutation = """
            mutation($projectId: ID!, $contentId: ID!) {
              addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
                item { id }
              }
            }
        """
        data = self.graphql(mutation, {"projectId": project_id, "contentId": content_id})
        return data["addProjectV2ItemById"]["item"]["id"]

    def set_date_field(self, project_id: str, item_id: str, field_id: str, value: str) -> None:
        mutation = """
            mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: Date!) {
              updateProjectV2ItemFieldValue(input: {
                projectId: $projectId, itemId: $itemId, fieldId: $fieldId,
                value: {date: $value}
              }) {
                projectV2Item { id }
              }
            }
        """
        self.graphql(
            mutation,
            {"projectId": project_id, "itemId": item_id, "fieldId": field_id, "value": value},
        )


class SheetClient:
    """Client for Google Sheets xlsx exports."""

    def fetch_workbook(self, sheet_id: str) -> bytes:
        """Download a sheet shared as "Anyone with the link can view"."""
        url = SHEET_EXPORT_URL.format(sheet_id=sheet_id)
        try:
            r = requests.get(url, timeout=30)
        except requests.exceptions.ConnectionError:
            raise ApiError("Google Sheets: Cannot connect to docs.google.com. Check your network!")
        except requests.exceptions.Timeout:
            raise ApiError("Google Sheets: Connection timed out. The server may be slow.")

        if not r.ok:
            raise ApiError(_handle_api_error(r, "Google Sheets"), r.status_code)
        # A login page instead of a workbook means the sheet is not shared
        if r.content[:1] == b"<":
            raise ApiError(
                "Google Sheets: Got an HTML page instead of a workbook. "
                'Share the sheet as "Anyone with the link can view"!'
            )
        return r.content
