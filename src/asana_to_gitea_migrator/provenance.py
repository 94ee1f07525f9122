"""Provenance marker embedded in migrated issue bodies.

Every issue created by the migrator carries a ``**Asana ID**: <gid>`` line.
Scanning existing issue bodies for that line is how tasks that were already
migrated are recognised, independently of the local ledger.
"""

from __future__ import annotations

import re
from typing import Final

PROVENANCE_LABEL: Final[str] = "Asana ID"

_PROVENANCE_PATTERN: Final[re.Pattern[str]] = re.compile(rf"\*\*{re.escape(PROVENANCE_LABEL)}\*\*:\s*(\d+)")


def format_provenance_marker(asana_gid: str) -> str:
    """Return the marker line identifying the Asana task an issue was created from."""
    return f"**{PROVENANCE_LABEL}**: {asana_gid}"


def extract_asana_id(body: str | None) -> str | None:
    """Extract the Asana task gid from an issue body.

    Args:
        body: Issue body in markdown, possibly empty

    Returns:
        The first gid found after the marker label, or None if the body has no marker
    """
    if not body:
        return None
    match = _PROVENANCE_PATTERN.search(body)
    return match.group(1) if match else None
