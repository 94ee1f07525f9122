"""
Custom exception classes for the Asana to Gitea migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when a credential, setting or user mapping file is missing or invalid."""


class ExportDirectoryError(MigrationError):
    """Raised when the exports directory cannot be listed."""


class LoadError(MigrationError):
    """Raised when an Asana export file cannot be parsed."""


class LedgerPersistenceError(MigrationError):
    """Raised when the migration ledger cannot be written to disk."""


class TransportError(MigrationError):
    """Raised when a Gitea API call fails (network error or non-2xx response)."""

    status: int | None

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AssigneeNotFoundError(TransportError):
    """Raised when Gitea rejects an issue because a requested assignee does not exist."""
