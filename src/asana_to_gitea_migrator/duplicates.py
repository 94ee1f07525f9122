"""
Detection of tasks that already exist as Gitea issues.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .provenance import extract_asana_id

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import GiteaIssue

logger: logging.Logger = logging.getLogger(__name__)


class DuplicateIndex:
    """Lookup from Asana gid to the Gitea issue whose body carries that gid.

    Catches tasks that were migrated but are unknown to the ledger, e.g. after
    the ledger file was lost or a run was killed between creating an issue and
    saving the ledger.
    """

    def __init__(self, issues_by_gid: dict[str, GiteaIssue] | None = None) -> None:
        self._issues_by_gid: dict[str, GiteaIssue] = issues_by_gid or {}

    @classmethod
    def build(cls, issues: Iterable[GiteaIssue]) -> DuplicateIndex:
        """Index existing issues by the Asana gid found in their body.

        Issues without a provenance marker are ignored. When several issues
        claim the same gid, the last one wins.
        """
        issues_by_gid: dict[str, GiteaIssue] = {}
        for issue in issues:
            asana_gid = extract_asana_id(issue.body)
            if asana_gid is None:
                continue
            if asana_gid in issues_by_gid:
                logger.debug(
                    f"Issues #{issues_by_gid[asana_gid].number} and #{issue.number} both claim Asana task {asana_gid}"
                )
            issues_by_gid[asana_gid] = issue
        return cls(issues_by_gid)

    def lookup(self, asana_gid: str) -> GiteaIssue | None:
        return self._issues_by_gid.get(asana_gid)

    def __contains__(self, asana_gid: object) -> bool:
        return asana_gid in self._issues_by_gid

    def __len__(self) -> int:
        return len(self._issues_by_gid)
