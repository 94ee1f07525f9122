"""Build Gitea issue requests from Asana task data."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import IssueRequest
from .provenance import format_provenance_marker
from .user_mapping import map_asana_user

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import AsanaTask, UserMapping

# Grouping key for tasks that belong to no section
UNCATEGORIZED = "Uncategorized"

# Asana due dates without a time are due at the end of that day (UTC)
END_OF_DAY_SUFFIX = "T23:59:59Z"


def build_issue_body(task: AsanaTask) -> str:
    """Build the issue body: task notes followed by the migration metadata block.

    The metadata block always holds the provenance marker, so the issue can
    be matched back to its task by a later run.

    Args:
        task: Asana task

    Returns:
        Complete issue body in markdown
    """
    body_parts: list[str] = []

    notes = task.notes.strip()
    if notes:
        body_parts.append(notes)
        body_parts.append("")

    body_parts.append("---")
    body_parts.append("### Migration Metadata")
    body_parts.append(f"- {format_provenance_marker(task.gid)}")
    body_parts.append(f"- **Created**: {task.created_at}")
    body_parts.append(f"- **Modified**: {task.modified_at}")

    if task.completed_at:
        body_parts.append(f"- **Completed**: {task.completed_at}")

    if task.assignee is not None:
        body_parts.append(f"- **Original Assignee**: {task.assignee.name}")

    if task.section_name is not None:
        body_parts.append(f"- **Section**: {task.section_name}")

    if task.permalink_url:
        body_parts.append(f"- **[Original Task]({task.permalink_url})**")

    return "\n".join(body_parts)


def resolve_due_date(task: AsanaTask) -> str | None:
    """Return the Gitea due date for a task.

    A precise ``due_at`` is passed through unchanged. A date-only ``due_on``
    becomes the end of that day in UTC.
    """
    if task.due_at:
        return task.due_at
    if task.due_on:
        return f"{task.due_on}{END_OF_DAY_SUFFIX}"
    return None


def convert_task_to_issue(task: AsanaTask, user_mappings: Sequence[UserMapping]) -> IssueRequest:
    """Convert an Asana task to a Gitea issue request.

    Labels are not set here; the migrator attaches them per run.
    """
    gitea_user = map_asana_user(task.assignee, user_mappings)

    return IssueRequest(
        title=task.name,
        body=build_issue_body(task),
        closed=task.completed,
        assignees=[gitea_user] if gitea_user else None,
        due_date=resolve_due_date(task),
    )


def group_tasks_by_section(tasks: Iterable[AsanaTask]) -> dict[str, list[AsanaTask]]:
    """Group tasks by the section of their first membership, keeping first-seen order."""
    groups: dict[str, list[AsanaTask]] = {}
    for task in tasks:
        section = task.section_name if task.section_name is not None else UNCATEGORIZED
        groups.setdefault(section, []).append(task)
    return groups
