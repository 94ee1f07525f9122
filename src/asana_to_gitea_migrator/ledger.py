"""Migration ledger: the on-disk record of tasks already migrated.

The ledger is a single JSON file::

    {
      "version": 1,
      "exports": [
        {
          "exportFile": "project.json",
          "timestamp": "2025-01-01T00:00:00+00:00",
          "tasks": [
            {"sourceId": "1201", "targetId": 7, "title": "Task", "migratedAt": "..."}
          ]
        }
      ]
    }

It is loaded once per run, updated in memory, and saved after every issue
that gets created so an interrupted run can resume where it stopped. Only
one process is expected to write the file at a time.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from .exceptions import LedgerPersistenceError

logger: logging.Logger = logging.getLogger(__name__)

LEDGER_VERSION: Final[int] = 1
DEFAULT_LEDGER_FILE: Final[str] = "migration-state.json"


def utc_now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


@dataclass
class MigratedTask:
    """An Asana task that has a Gitea issue."""

    asana_gid: str
    gitea_issue_number: int
    title: str
    migrated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceId": self.asana_gid,
            "targetId": self.gitea_issue_number,
            "title": self.title,
            "migratedAt": self.migrated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigratedTask:
        # Ledgers written by the original tool use asanaGid / giteaIssueNumber
        gid = data.get("sourceId", data.get("asanaGid"))
        number = data.get("targetId", data.get("giteaIssueNumber"))
        if gid is None or number is None:
            msg = f"Ledger task entry without source or target id: {data!r}"
            raise ValueError(msg)
        return cls(
            asana_gid=str(gid),
            gitea_issue_number=int(number),
            title=str(data.get("title", "")),
            migrated_at=str(data.get("migratedAt", "")),
        )


@dataclass
class ExportProgress:
    """Progress of one export file."""

    export_file: str
    timestamp: str = field(default_factory=utc_now_iso)
    tasks: list[MigratedTask] = field(default_factory=list)

    def find_task(self, asana_gid: str) -> MigratedTask | None:
        for task in self.tasks:
            if task.asana_gid == asana_gid:
                return task
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exportFile": self.export_file,
            "timestamp": self.timestamp,
            "tasks": [task.to_dict() for task in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportProgress:
        export_file = data.get("exportFile")
        raw_tasks = data.get("tasks", [])
        if not isinstance(export_file, str) or not isinstance(raw_tasks, list):
            msg = f"Invalid ledger export entry: {data!r}"
            raise ValueError(msg)
        progress = cls(export_file=export_file, timestamp=str(data.get("timestamp", "")))
        for raw_task in raw_tasks:
            progress.upsert(MigratedTask.from_dict(raw_task))
        return progress

    def upsert(self, task: MigratedTask) -> None:
        """Insert a task, replacing an existing entry with the same gid in place."""
        for i, existing in enumerate(self.tasks):
            if existing.asana_gid == task.asana_gid:
                self.tasks[i] = task
                return
        self.tasks.append(task)


@dataclass
class MigrationLedger:
    """All export progress known to this tool."""

    version: int = LEDGER_VERSION
    exports: list[ExportProgress] = field(default_factory=list)

    def find_export(self, export_file: str) -> ExportProgress | None:
        for progress in self.exports:
            if progress.export_file == export_file:
                return progress
        return None

    def is_migrated(self, asana_gid: str, export_file: str | None = None) -> bool:
        """Check whether a task is recorded, in one export or in any export."""
        if export_file is not None:
            progress = self.find_export(export_file)
            return progress is not None and progress.find_task(asana_gid) is not None
        return any(progress.find_task(asana_gid) is not None for progress in self.exports)

    def record(self, export_file: str, task: MigratedTask) -> None:
        """Record a migrated task under its export file and refresh the export timestamp."""
        progress = self.find_export(export_file)
        if progress is None:
            progress = ExportProgress(export_file=export_file)
            self.exports.append(progress)
        progress.upsert(task)
        progress.timestamp = utc_now_iso()

    def migrated_count(self) -> int:
        return sum(len(progress.tasks) for progress in self.exports)

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "exports": [progress.to_dict() for progress in self.exports]}

    @classmethod
    def from_dict(cls, data: object) -> MigrationLedger:
        if not isinstance(data, dict):
            msg = "Ledger root must be a JSON object"
            raise ValueError(msg)
        raw: dict[str, Any] = data
        version = raw.get("version", LEDGER_VERSION)
        raw_exports = raw.get("exports", [])
        if not isinstance(version, int) or not isinstance(raw_exports, list):
            msg = "Ledger has an invalid version or exports list"
            raise ValueError(msg)
        return cls(version=version, exports=[ExportProgress.from_dict(entry) for entry in raw_exports])


def load_ledger(path: Path | str) -> MigrationLedger:
    """Load the ledger from disk.

    A missing file yields an empty ledger. So does an unreadable or malformed
    one, after logging a warning: losing the ledger only costs a remote scan,
    which still finds every migrated task.

    Args:
        path: Ledger file location

    Returns:
        The loaded ledger, or an empty one
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No ledger at {path}, starting with an empty one")
        return MigrationLedger()

    try:
        ledger = MigrationLedger.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load migration ledger from {path}, starting with an empty one: {e}")
        return MigrationLedger()

    logger.info(f"Loaded migration ledger ({len(ledger.exports)} previous exports, {ledger.migrated_count()} tasks)")
    return ledger


def save_ledger(ledger: MigrationLedger, path: Path | str) -> None:
    """Write the ledger to disk, replacing the previous file atomically.

    Raises:
        LedgerPersistenceError: If the file cannot be written
    """
    path = Path(path)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        _ = tmp_path.write_text(json.dumps(ledger.to_dict(), indent=2) + "\n", encoding="utf-8")
        _ = tmp_path.replace(path)
    except OSError as e:
        msg = f"Failed to save migration ledger to {path}: {e}"
        raise LedgerPersistenceError(msg) from e
