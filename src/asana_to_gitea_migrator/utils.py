"""
Utility functions for the Asana to Gitea migration tool.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from subprocess import CompletedProcess
from typing import Final

LOG_FILE: Final[str] = "migration.log"
LOG_FORMAT: Final[str] = "%(asctime)s - %(levelname)s - %(message)s"

_CONSOLE_LEVELS: Final[dict[int, int]] = {0: logging.WARNING, 1: logging.INFO}


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path format is invalid or not in the password store."""


class PassphraseRequiredError(PassError):
    """Raised when a GPG passphrase is required for the pass utility."""


def setup_logging(*, verbosity: int = 0) -> None:
    """Configure logging for the migration process.

    The console shows warnings by default, info with ``-v`` and debug with
    ``-vv``. The log file always receives everything.
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(_CONSOLE_LEVELS.get(verbosity, logging.DEBUG))

    file_handler = logging.FileHandler(LOG_FILE, mode="a")
    file_handler.setLevel(logging.DEBUG)

    logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, handlers=[console_handler, file_handler])


def _run_pass(pass_path: str, passphrase: str | None = None) -> CompletedProcess[str]:
    if passphrase is None:
        return subprocess.run(["pass", pass_path], capture_output=True, text=True, check=True)  # noqa: S603, S607
    env = os.environ.copy() | {"PASSWORD_STORE_GPG_OPTS": "--pinentry-mode=loopback --passphrase-fd 0"}
    return subprocess.run(  # noqa: S603
        ["pass", pass_path], input=passphrase, capture_output=True, text=True, check=True, env=env  # noqa: S607
    )


def _describe_failure(pass_path: str, error: subprocess.CalledProcessError) -> str:
    return (
        f"Failed to get value from pass at '{pass_path}'.\n"
        f"Output: {error.stdout.strip()}\n"
        f"Error: {error.stderr.strip()}\n"
        f"Return code: {error.returncode}"
    )


def get_pass_value(pass_path: str) -> str:
    """Get a secret from the ``pass`` password store.

    Raises:
        ValueError: If the path contains characters pass paths cannot have
        InvalidPassPathError: If the path is not in the password store
        PassphraseRequiredError: If the GPG key needs a passphrase that could not be supplied
        PassError: For any other pass failure
    """
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)

    try:
        return _run_pass(pass_path).stdout.strip()
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.lower()
        if e.returncode == 1 and "not in the password store" in stderr:
            msg = f"Pass path '{pass_path}' not found or invalid."
            raise InvalidPassPathError(msg) from e
        if not (e.returncode == 2 and "gpg" in stderr and "public key decryption failed" in stderr):
            raise PassError(_describe_failure(pass_path, e)) from e

    # The GPG key is locked: ask for the passphrase (interactive sessions only)
    try:
        passphrase = input("Enter passphrase for GPG key used by pass: ")
    except EOFError as e:
        msg = "Passphrase input was interrupted. Please run the command in an interactive session."
        raise PassphraseRequiredError(msg) from e

    try:
        return _run_pass(pass_path, passphrase).stdout.strip()
    except subprocess.CalledProcessError as e:
        raise PassphraseRequiredError(_describe_failure(pass_path, e)) from e
