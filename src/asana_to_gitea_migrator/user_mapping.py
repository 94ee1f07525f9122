"""
Mapping of Asana assignees to Gitea users.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import ConfigurationError
from .models import UserMapping

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import AsanaUser

logger: logging.Logger = logging.getLogger(__name__)

# Accepted key names per entry: (asana identity hint, gitea identity)
_KEY_ALIASES: tuple[tuple[str, str], ...] = (
    ("asanaEmail", "giteaUsername"),
    ("asanaEmail", "giteaEmail"),
    ("sourceHint", "targetIdentity"),
)


def map_asana_user(asana_user: AsanaUser | None, mappings: Sequence[UserMapping]) -> str | None:
    """Map an Asana assignee to a Gitea username.

    Asana exports only carry the assignee's display name, so the local part
    of each mapping's email (text before ``@``) is looked up as a
    case-insensitive substring of that name. Mappings are tried in order and
    the first match wins.

    Args:
        asana_user: The task's assignee, if any
        mappings: Ordered user mappings

    Returns:
        The Gitea username, or None if the task is unassigned or nobody matches
    """
    if asana_user is None:
        return None

    lower_name = asana_user.name.lower()
    for mapping in mappings:
        email_prefix = mapping.asana_email.split("@", 1)[0].lower()
        if email_prefix and email_prefix in lower_name:
            return mapping.gitea_username
    return None


def _parse_entry(entry: Any, index: int, path: Path) -> UserMapping:  # noqa: ANN401 - raw JSON
    if isinstance(entry, dict):
        for source_key, target_key in _KEY_ALIASES:
            source = entry.get(source_key)
            target = entry.get(target_key)
            if isinstance(source, str) and isinstance(target, str) and source and target:
                return UserMapping(asana_email=source, gitea_username=target)
    msg = f"Invalid user mapping entry #{index} in {path}: {entry!r}"
    raise ConfigurationError(msg)


def load_user_mappings(path: Path | str, default: Sequence[UserMapping] | None = None) -> list[UserMapping]:
    """Load user mappings from a JSON array of ``{"asanaEmail", "giteaUsername"}`` objects.

    Args:
        path: Location of the mapping file
        default: Mappings to use when the file does not exist

    Returns:
        Mappings in file order

    Raises:
        ConfigurationError: If the file is missing and no default is given, or if it is malformed
    """
    path = Path(path)
    if not path.exists():
        if default is None:
            msg = f"User mapping file not found: {path}"
            raise ConfigurationError(msg)
        logger.warning(f"User mapping file {path} not found, using {len(default)} built-in mapping(s)")
        return list(default)

    try:
        raw: object = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        msg = f"Failed to read user mapping file {path}: {e}"
        raise ConfigurationError(msg) from e

    if not isinstance(raw, list):
        msg = f"User mapping file {path} must contain a JSON array"
        raise ConfigurationError(msg)

    mappings = [_parse_entry(entry, i, path) for i, entry in enumerate(raw)]
    logger.info(f"Loaded {len(mappings)} user mapping(s) from {path}")
    return mappings
