"""
Configuration for a migration run, from command line options and environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final

from . import utils
from .exceptions import ConfigurationError
from .ledger import DEFAULT_LEDGER_FILE
from .migrator import DEFAULT_REQUEST_DELAY, GENERIC_SECTION_NAMES
from .user_mapping import load_user_mappings

if TYPE_CHECKING:
    import argparse

    from .models import UserMapping

logger: logging.Logger = logging.getLogger(__name__)

TOKEN_ENV_VAR: Final[str] = "GITEA_TOKEN"  # noqa: S105
URL_ENV_VAR: Final[str] = "GITEA_URL"
OWNER_ENV_VAR: Final[str] = "GITEA_OWNER"
REPO_ENV_VAR: Final[str] = "GITEA_REPO"

DEFAULT_GITEA_URL: Final[str] = "https://git.example.com"
DEFAULT_EXPORTS_DIR: Final[str] = "exports"
DEFAULT_USER_MAPPING_FILE: Final[str] = "user-mapping.json"


@dataclass
class MigrationConfig:
    """Everything a migration run needs, resolved and validated."""

    gitea_url: str
    gitea_token: str
    repo_owner: str
    repo_name: str
    exports_dir: Path = Path(DEFAULT_EXPORTS_DIR)
    ledger_path: Path = Path(DEFAULT_LEDGER_FILE)
    user_mappings: list[UserMapping] = field(default_factory=list)
    request_delay: float = DEFAULT_REQUEST_DELAY
    generic_sections: frozenset[str] = GENERIC_SECTION_NAMES
    validate_access: bool = True


def get_token(pass_path: str | None = None) -> str:
    """Get the Gitea token from a pass path, or the GITEA_TOKEN environment variable.

    Raises:
        ConfigurationError: If no token is found
    """
    if pass_path:
        try:
            return utils.get_pass_value(pass_path)
        except (ValueError, utils.PassError) as e:
            msg = f"Failed to read Gitea token from pass: {e}"
            raise ConfigurationError(msg) from e

    token = os.environ.get(TOKEN_ENV_VAR)
    if token:
        return token

    msg = f"{TOKEN_ENV_VAR} environment variable is required. Please set it to your Gitea API token."
    raise ConfigurationError(msg)


def _required(value: str | None, option: str, env_var: str) -> str:
    value = value or os.environ.get(env_var)
    if not value:
        msg = f"Gitea {option} is required: pass --{option} or set {env_var}"
        raise ConfigurationError(msg)
    return value


def load_config(args: argparse.Namespace) -> MigrationConfig:
    """Resolve the run configuration: command line first, then environment, then defaults.

    Raises:
        ConfigurationError: If the token, owner or repository is missing, or the user mapping is invalid
    """
    token = get_token(args.gitea_pass_token)
    gitea_url: str = args.gitea_url or os.environ.get(URL_ENV_VAR) or DEFAULT_GITEA_URL
    owner = _required(args.owner, "owner", OWNER_ENV_VAR)
    repo = _required(args.repo, "repo", REPO_ENV_VAR)

    # An explicitly requested mapping file must exist; the default one is optional
    if args.user_mapping:
        user_mappings = load_user_mappings(args.user_mapping)
    else:
        user_mappings = load_user_mappings(DEFAULT_USER_MAPPING_FILE, default=[])

    if args.request_delay < 0:
        msg = f"Request delay must not be negative: {args.request_delay}"
        raise ConfigurationError(msg)

    return MigrationConfig(
        gitea_url=gitea_url,
        gitea_token=token,
        repo_owner=owner,
        repo_name=repo,
        exports_dir=Path(args.exports_dir),
        ledger_path=Path(args.ledger),
        user_mappings=user_mappings,
        request_delay=args.request_delay,
        generic_sections=GENERIC_SECTION_NAMES | frozenset(args.generic_section or []),
        validate_access=not args.skip_validation,
    )
