"""
Label reconciliation for migrated issues.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .exceptions import TransportError

if TYPE_CHECKING:
    from .protocols import IssueTracker

logger: logging.Logger = logging.getLogger(__name__)

SECTION_COLORS: Final[tuple[str, ...]] = (
    "5319e7",  # purple
    "0075ca",  # blue
    "008672",  # teal
    "d73a4a",  # red
    "cfd3d7",  # gray
    "a2eeef",  # light blue
    "7057ff",  # indigo
    "d876e3",  # pink
    "008b02",  # green
    "e99695",  # light red
)


def _to_int32(value: int) -> int:
    """Wrap an integer to a signed 32-bit value."""
    return ((value + 2**31) % 2**32) - 2**31


def section_color(name: str) -> str:
    """Derive a stable label color from a section name.

    Uses the rolling hash ``hash = ord(ch) + ((hash << 5) - hash)`` with the
    shift done in signed 32-bit arithmetic, so colors match the ones earlier
    migrations of the same sections received.
    """
    name_hash = 0
    for char in name:
        name_hash = ord(char) + (_to_int32(_to_int32(name_hash) << 5) - name_hash)
    return SECTION_COLORS[abs(name_hash) % len(SECTION_COLORS)]


class LabelManager:
    """Ensures labels exist in the target repository, once per name per run.

    The repository's label list is fetched lazily on first use. Every name is
    resolved at most once; later calls for the same name return the memoized
    result, including ``None`` for a label that could not be resolved.
    """

    def __init__(self, client: IssueTracker) -> None:
        self._client: IssueTracker = client
        self._existing: dict[str, int] | None = None
        self._resolved: dict[str, int | None] = {}

    def _existing_labels(self) -> dict[str, int]:
        if self._existing is None:
            self._existing = {label.name: label.id for label in self._client.get_labels()}
            logger.debug(f"Found {len(self._existing)} existing labels")
        return self._existing

    def ensure_label(self, name: str, color: str | None = None, description: str = "") -> int | None:
        """Return the id of the label called ``name``, creating it if needed.

        Matching is exact and case-sensitive. Failures are logged and return
        None: a missing label never stops a task from being migrated.

        Args:
            name: Label name
            color: Hex color without '#'; derived from the name when omitted
            description: Description used if the label is created

        Returns:
            The label id, or None if the label could not be looked up or created
        """
        if name in self._resolved:
            return self._resolved[name]

        label_id: int | None = None
        try:
            existing_id = self._existing_labels().get(name)
            if existing_id is not None:
                logger.debug(f'Label "{name}" already exists')
                label_id = existing_id
            else:
                label = self._client.create_label(name, color or section_color(name), description)
                label_id = label.id
                self._existing_labels()[name] = label.id
                logger.info(f'Created label "{name}"')
        except TransportError as e:
            logger.error(f'Failed to ensure label "{name}": {e}')  # noqa: TRY400

        self._resolved[name] = label_id
        return label_id
