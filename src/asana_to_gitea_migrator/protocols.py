"""Protocol defining the contract for the target issue tracker.

The migration architecture separates concerns into three components:

1. Export reader: Loads Asana export files into typed ``AsanaTask`` records
2. IssueTracker: Lists and creates labels and issues in the target (Gitea)
3. Migrator: Decides per task whether to skip or create, and keeps the ledger

This separation allows:
- Testing the migrator against an in-memory tracker
- Keeping HTTP details (authentication, pagination, status codes) out of the
  migration logic
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from .models import GiteaIssue, GiteaLabel, IssueRequest


class IssueTracker(Protocol):
    """Protocol for the issue tracker that receives migrated tasks.

    All calls are blocking. Implementations raise ``TransportError`` for
    network failures and non-2xx responses, and ``AssigneeNotFoundError``
    when an issue is rejected because a requested assignee does not exist.

    Example implementations:
        - GiteaClient: Uses the Gitea REST API v1 through requests
    """

    def get_labels(self) -> list[GiteaLabel]:
        """Return all labels of the repository."""
        ...

    def create_label(self, name: str, color: str, description: str = "") -> GiteaLabel:
        """Create a label and return it.

        Args:
            name: Label name
            color: Hex color without '#' prefix
            description: Label description
        """
        ...

    def get_issues(self, state: Literal["open", "closed", "all"] = "all") -> list[GiteaIssue]:
        """Return all issues of the repository in the given state."""
        ...

    def create_issue(self, request: IssueRequest) -> GiteaIssue:
        """Create an issue and return it.

        Raises:
            AssigneeNotFoundError: If a requested assignee does not exist
            TransportError: For any other failure
        """
        ...
