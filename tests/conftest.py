"""
Pytest configuration and fixtures.

Provides an in-memory issue tracker that behaves like the Gitea client, and
factories for Asana task data and export files.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any, Literal

import pytest

from asana_to_gitea_migrator.exceptions import AssigneeNotFoundError, TransportError
from asana_to_gitea_migrator.models import GiteaIssue, GiteaLabel

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from asana_to_gitea_migrator.models import IssueRequest


class FakeIssueTracker:
    """In-memory IssueTracker recording every call."""

    def __init__(self) -> None:
        self.labels: list[GiteaLabel] = []
        self.issues: list[GiteaIssue] = []
        self.create_requests: list[IssueRequest] = []
        self.get_labels_calls: int = 0
        self.get_issues_calls: int = 0
        self.create_label_calls: list[str] = []
        # Failure injection
        self.unknown_users: set[str] = set()
        self.failing_titles: set[str] = set()
        self.failing_labels: set[str] = set()
        self.fail_get_issues: bool = False
        self.fail_get_labels: bool = False

    def add_issue(self, title: str, body: str, *, state: Literal["open", "closed"] = "open") -> GiteaIssue:
        number = len(self.issues) + 1
        issue = GiteaIssue(id=1000 + number, number=number, title=title, body=body, state=state)
        self.issues.append(issue)
        return issue

    def get_labels(self) -> list[GiteaLabel]:
        self.get_labels_calls += 1
        if self.fail_get_labels:
            msg = "Gitea API error: 500 Internal Server Error - labels"
            raise TransportError(msg, status=500)
        return list(self.labels)

    def create_label(self, name: str, color: str, description: str = "") -> GiteaLabel:
        self.create_label_calls.append(name)
        if name in self.failing_labels:
            msg = f"Gitea API error: 422 Unprocessable Entity - {name}"
            raise TransportError(msg, status=422)
        label = GiteaLabel(id=500 + len(self.labels), name=name, color=color, description=description)
        self.labels.append(label)
        return label

    def get_issues(self, state: Literal["open", "closed", "all"] = "all") -> list[GiteaIssue]:
        self.get_issues_calls += 1
        if self.fail_get_issues:
            msg = "Gitea API error: 503 Service Unavailable - issues"
            raise TransportError(msg, status=503)
        if state == "all":
            return list(self.issues)
        return [issue for issue in self.issues if issue.state == state]

    def create_issue(self, request: IssueRequest) -> GiteaIssue:
        self.create_requests.append(copy.deepcopy(request))
        if request.assignees and any(user in self.unknown_users for user in request.assignees):
            msg = "Gitea API error: 422 Unprocessable Entity - Assignee does not exist"
            raise AssigneeNotFoundError(msg, status=422)
        if request.title in self.failing_titles:
            msg = "Gitea API error: 500 Internal Server Error - boom"
            raise TransportError(msg, status=500)
        return self.add_issue(request.title, request.body, state="closed" if request.closed else "open")


@pytest.fixture
def tracker() -> FakeIssueTracker:
    return FakeIssueTracker()


@pytest.fixture
def make_task_data() -> Callable[..., dict[str, Any]]:
    """Factory for one entry of an Asana export's ``data`` array."""

    def _make(
        gid: str,
        name: str,
        *,
        section: str | None = "To do",
        project: str = "Test Project",
        assignee: str | None = None,
        notes: str = "",
        completed: bool = False,
        completed_at: str | None = None,
        due_on: str | None = None,
        due_at: str | None = None,
        permalink_url: str = "",
    ) -> dict[str, Any]:
        project_ref = {"gid": "789", "name": project, "resource_type": "project"}
        memberships: list[dict[str, Any]] = []
        if section is not None:
            memberships.append(
                {"project": project_ref, "section": {"gid": "101", "name": section, "resource_type": "section"}}
            )
        return {
            "gid": gid,
            "name": name,
            "notes": notes,
            "completed": completed,
            "completed_at": completed_at,
            "created_at": "2025-01-01T00:00:00Z",
            "modified_at": "2025-01-02T00:00:00Z",
            "due_on": due_on,
            "due_at": due_at,
            "assignee": {"gid": "456", "name": assignee, "resource_type": "user"} if assignee else None,
            "memberships": memberships,
            "projects": [project_ref],
            "permalink_url": permalink_url,
            "resource_type": "task",
        }

    return _make


@pytest.fixture
def write_export(tmp_path: Path) -> Callable[[str, list[dict[str, Any]]], Path]:
    """Write an export file into ``tmp_path / "exports"`` and return its path."""
    exports_dir = tmp_path / "exports"
    exports_dir.mkdir()

    def _write(filename: str, tasks: list[dict[str, Any]]) -> Path:
        path = exports_dir / filename
        _ = path.write_text(json.dumps({"data": tasks}), encoding="utf-8")
        return path

    return _write
