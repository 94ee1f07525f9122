"""Tests for detecting already migrated tasks among existing issues."""

from __future__ import annotations

import pytest

from asana_to_gitea_migrator.duplicates import DuplicateIndex
from asana_to_gitea_migrator.models import GiteaIssue


def _issue(number: int, body: str) -> GiteaIssue:
    return GiteaIssue(id=100 + number, number=number, title=f"Issue {number}", body=body)


@pytest.mark.unit
class TestDuplicateIndex:
    def test_build_from_multiple_issues(self) -> None:
        issues = [
            _issue(1, "- **Asana ID**: 111"),
            _issue(2, "notes\n---\n- **Asana ID**: 222"),
            _issue(3, "No marker here"),
        ]

        index = DuplicateIndex.build(issues)

        assert len(index) == 2
        assert "111" in index
        assert "222" in index
        found = index.lookup("222")
        assert found is not None
        assert found.number == 2

    def test_issues_without_body_are_ignored(self) -> None:
        index = DuplicateIndex.build([_issue(1, ""), _issue(2, "**Asana ID**: 5")])
        assert len(index) == 1

    def test_last_issue_wins(self) -> None:
        index = DuplicateIndex.build([_issue(1, "**Asana ID**: 7"), _issue(2, "**Asana ID**: 7")])

        found = index.lookup("7")
        assert found is not None
        assert found.number == 2

    def test_lookup_missing(self) -> None:
        assert DuplicateIndex.build([_issue(1, "**Asana ID**: 7")]).lookup("8") is None

    def test_empty(self) -> None:
        index = DuplicateIndex.build([])
        assert len(index) == 0
        assert index.lookup("1") is None
