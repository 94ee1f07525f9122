"""
Asana to Gitea Migration Tool

Migrates Asana project exports to Gitea issues. Re-running a migration never
creates duplicates, and an interrupted run resumes where it stopped.
"""

from __future__ import annotations

from .cli import main
from .exceptions import (
    AssigneeNotFoundError,
    ConfigurationError,
    ExportDirectoryError,
    LedgerPersistenceError,
    LoadError,
    MigrationError,
    TransportError,
)
from .gitea_client import GiteaClient
from .ledger import MigrationLedger, load_ledger, save_ledger
from .migrator import AsanaToGiteaMigrator, ExportStats, RunReport
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AsanaToGiteaMigrator",
    "AssigneeNotFoundError",
    "ConfigurationError",
    "ExportDirectoryError",
    "ExportStats",
    "GiteaClient",
    "LedgerPersistenceError",
    "LoadError",
    "MigrationError",
    "MigrationLedger",
    "RunReport",
    "TransportError",
    "load_ledger",
    "main",
    "save_ledger",
    "setup_logging",
]
