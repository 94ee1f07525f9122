"""Data models exchanged between the export reader, the Gitea client and the migrator.

Asana exports and Gitea responses are untyped JSON. The ``from_dict``
constructors are the only place where that JSON is inspected: they coerce
known fields into the dataclasses below, default optional fields that are
missing or have the wrong type, and reject records that lack an identity.
Everything downstream works with these typed records only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from .exceptions import LoadError

# Section name used for memberships that carry a project but no section
NO_SECTION = "(no section)"


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) and value else None


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _named_ref(value: object) -> str | None:
    """Return the ``name`` of an Asana compact record ({"gid": ..., "name": ...})."""
    if isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str):
            return name
    return None


@dataclass(frozen=True)
class AsanaUser:
    """Compact Asana user reference. Exports carry a display name, not an email."""

    gid: str
    name: str


@dataclass(frozen=True)
class AsanaMembership:
    """One (project, section) membership of a task."""

    project_name: str
    section_name: str


@dataclass(frozen=True)
class AsanaTask:
    """A task from an Asana project export."""

    gid: str
    name: str
    notes: str = ""
    completed: bool = False
    completed_at: str | None = None
    created_at: str = ""
    modified_at: str = ""
    due_on: str | None = None  # Date only, e.g. "2025-12-31"
    due_at: str | None = None  # Precise timestamp, e.g. "2025-06-01T10:00:00Z"
    assignee: AsanaUser | None = None
    memberships: tuple[AsanaMembership, ...] = ()
    projects: tuple[str, ...] = ()
    permalink_url: str = ""

    @property
    def section_name(self) -> str | None:
        """Section of the first membership, which decides grouping."""
        if not self.memberships:
            return None
        return self.memberships[0].section_name

    @classmethod
    def from_dict(cls, data: object) -> AsanaTask:
        """Build a task from one entry of an export's ``data`` array.

        Raises:
            LoadError: If the entry is not an object or has no gid/name
        """
        if not isinstance(data, dict):
            msg = f"Expected task object, got {type(data).__name__}"
            raise LoadError(msg)
        raw: dict[str, Any] = data

        gid = raw.get("gid")
        if isinstance(gid, int) and not isinstance(gid, bool):
            gid = str(gid)
        name = raw.get("name")
        if not isinstance(gid, str) or not gid or not isinstance(name, str):
            msg = f"Task without gid or name: {raw.get('gid')!r}"
            raise LoadError(msg)

        assignee = None
        raw_assignee = raw.get("assignee")
        if isinstance(raw_assignee, dict):
            assignee_name = _named_ref(raw_assignee)
            if assignee_name:
                assignee = AsanaUser(gid=str(raw_assignee.get("gid", "")), name=assignee_name)

        memberships: list[AsanaMembership] = []
        raw_memberships = raw.get("memberships")
        if isinstance(raw_memberships, list):
            for membership in raw_memberships:
                if not isinstance(membership, dict):
                    continue
                project_name = _named_ref(membership.get("project")) or ""
                section_name = _named_ref(membership.get("section")) or NO_SECTION
                memberships.append(AsanaMembership(project_name=project_name, section_name=section_name))

        projects: list[str] = []
        raw_projects = raw.get("projects")
        if isinstance(raw_projects, list):
            projects = [n for n in (_named_ref(p) for p in raw_projects) if n]

        return cls(
            gid=gid,
            name=name,
            notes=_str(raw, "notes"),
            completed=raw.get("completed") is True,
            completed_at=_opt_str(raw, "completed_at"),
            created_at=_str(raw, "created_at"),
            modified_at=_str(raw, "modified_at"),
            due_on=_opt_str(raw, "due_on"),
            due_at=_opt_str(raw, "due_at"),
            assignee=assignee,
            memberships=tuple(memberships),
            projects=tuple(projects),
            permalink_url=_str(raw, "permalink_url"),
        )


@dataclass(frozen=True)
class UserMapping:
    """Maps an Asana identity hint (an email) to a Gitea username."""

    asana_email: str
    gitea_username: str


@dataclass
class IssueRequest:
    """Payload for creating a Gitea issue.

    ``assignees`` and ``labels`` are ``None`` when nothing is requested. An
    empty list would be sent to Gitea as "assign to nobody", which is not the
    same request.
    """

    title: str
    body: str
    closed: bool = False
    assignees: list[str] | None = None
    labels: list[int] | None = None
    due_date: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for ``POST /repos/{owner}/{repo}/issues``."""
        payload: dict[str, Any] = {"title": self.title, "body": self.body, "closed": self.closed}
        if self.assignees is not None:
            payload["assignees"] = list(self.assignees)
        if self.labels is not None:
            payload["labels"] = list(self.labels)
        if self.due_date is not None:
            payload["due_date"] = self.due_date
        return payload


@dataclass
class GiteaLabel:
    """A repository label in Gitea."""

    id: int
    name: str
    color: str  # Hex color without '#' prefix (e.g., "ff0000")
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GiteaLabel:
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            color=str(data.get("color") or "").lstrip("#"),
            description=str(data.get("description") or ""),
        )


@dataclass
class GiteaIssue:
    """An existing Gitea issue as returned by the issues API."""

    id: int
    number: int
    title: str
    body: str = ""
    state: Literal["open", "closed"] = "open"
    assignees: list[str] = field(default_factory=list)  # Gitea logins
    labels: list[str] = field(default_factory=list)  # Label names

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GiteaIssue:
        raw_assignees = data.get("assignees") or []
        raw_labels = data.get("labels") or []
        return cls(
            id=int(data["id"]),
            number=int(data["number"]),
            title=str(data.get("title") or ""),
            body=str(data.get("body") or ""),
            state="closed" if data.get("state") == "closed" else "open",
            assignees=[str(a["login"]) for a in raw_assignees if isinstance(a, dict) and "login" in a],
            labels=[str(lb["name"]) for lb in raw_labels if isinstance(lb, dict) and "name" in lb],
        )
