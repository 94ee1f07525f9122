"""Migration orchestrator that moves Asana exports into a Gitea repository.

Migration Flow
--------------
A run processes every export file in the exports directory, one after the
other, against a single ledger:

Run start
    - Load the ledger (empty if missing or unreadable)
    - List the export files; failing to list them aborts the run

Per export
    - Load the tasks; an unreadable export is skipped
    - List all existing issues once and index them by the Asana gid found in
      their body (DuplicateIndex); failing to list them skips the export,
      since duplicates could not be detected
    - Group tasks by section
    - Ensure the "asana", "Project: <name>" and per-section labels

Per task
    ::

        ledger has (export, gid)?  ── yes ──► LEDGER_HIT  (no remote call)
                │ no
                ▼
        issue body claims gid?     ── yes ──► REMOTE_HIT  (ledger backfilled)
                │ no
                ▼
        create issue ── assignee not found ──► retry once without assignees
                │                                      │
                ├── ok ◄───────────────────────────────┤
                │   ledger updated and saved, pause     │
                ▼                                      ▼
             CREATED                                FAILED

Run end
    - Save the ledger once more

Error Handling
--------------
- A failed task is logged and counted; the export continues.
- A failed label lookup or creation only drops that label.
- A ledger that cannot be saved stops the run: progress would no longer be
  tracked.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final, Literal

from .duplicates import DuplicateIndex
from .exceptions import AssigneeNotFoundError, LoadError, TransportError
from .exports import list_export_files, load_export
from .issue_builder import UNCATEGORIZED, convert_task_to_issue, group_tasks_by_section
from .labels import LabelManager
from .ledger import MigratedTask, load_ledger, save_ledger
from .models import NO_SECTION

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .ledger import MigrationLedger
    from .models import AsanaTask, GiteaIssue, IssueRequest, UserMapping
    from .protocols import IssueTracker

logger = logging.getLogger(__name__)

# Sections that do not get a label of their own
GENERIC_SECTION_NAMES: Final[frozenset[str]] = frozenset({"Untitled section", UNCATEGORIZED, NO_SECTION})

IMPORT_LABEL: Final[str] = "asana"
IMPORT_LABEL_COLOR: Final[str] = "1d76db"
PROJECT_LABEL_COLOR: Final[str] = "0e8a16"

# Pause after each created issue, in seconds
DEFAULT_REQUEST_DELAY: Final[float] = 0.1

TaskOutcome = Literal["ledger_hit", "remote_hit", "created", "failed"]


@dataclass
class CreationResult:
    """Outcome of one issue creation attempt.

    ``assignee_not_found`` is the only failure the migrator recovers from.
    """

    status: Literal["ok", "assignee_not_found", "failed"]
    issue: GiteaIssue | None = None
    error: str = ""


@dataclass
class ExportStats:
    """Statistics collected while migrating one export file."""

    export_file: str
    project_name: str = ""
    created: int = 0
    ledger_hits: int = 0
    remote_hits: int = 0
    failed: int = 0
    label_failures: int = 0  # labels that could not be looked up or created
    errors: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.ledger_hits + self.remote_hits

    def count(self, outcome: TaskOutcome) -> None:
        if outcome == "created":
            self.created += 1
        elif outcome == "ledger_hit":
            self.ledger_hits += 1
        elif outcome == "remote_hit":
            self.remote_hits += 1
        else:
            self.failed += 1


@dataclass
class RunReport:
    """Result of a migration run over all export files."""

    exports: list[ExportStats] = field(default_factory=list)
    failed_exports: dict[str, str] = field(default_factory=dict)  # export file -> error

    @property
    def exports_processed(self) -> int:
        return len(self.exports) + len(self.failed_exports)

    @property
    def created(self) -> int:
        return sum(stats.created for stats in self.exports)

    @property
    def skipped(self) -> int:
        return sum(stats.skipped for stats in self.exports)

    @property
    def failed(self) -> int:
        return sum(stats.failed for stats in self.exports)

    @property
    def label_failures(self) -> int:
        return sum(stats.label_failures for stats in self.exports)


class AsanaToGiteaMigrator:
    """Migrates Asana export files into Gitea issues, idempotently.

    Usage:
        client = GiteaClient(url, token, owner, repo)
        migrator = AsanaToGiteaMigrator(client, exports_dir="exports", ledger_path="migration-state.json")
        report = migrator.migrate_all()

    The ledger is never stored on the migrator: it is loaded by
    ``migrate_all`` and handed explicitly to every export and task.
    """

    def __init__(
        self,
        client: IssueTracker,
        *,
        exports_dir: Path | str,
        ledger_path: Path | str,
        user_mappings: Sequence[UserMapping] = (),
        request_delay: float = DEFAULT_REQUEST_DELAY,
        generic_sections: Iterable[str] = GENERIC_SECTION_NAMES,
    ) -> None:
        self.client: IssueTracker = client
        self.exports_dir: Path = Path(exports_dir)
        self.ledger_path: Path = Path(ledger_path)
        self.user_mappings: list[UserMapping] = list(user_mappings)
        self.request_delay: float = request_delay
        self.generic_sections: frozenset[str] = frozenset(generic_sections)
        self.labels: LabelManager = LabelManager(client)

    def migrate_all(self) -> RunReport:
        """Migrate every export file in the exports directory.

        Raises:
            ExportDirectoryError: If the exports directory cannot be listed
            LedgerPersistenceError: If the ledger cannot be saved
        """
        ledger = load_ledger(self.ledger_path)
        files = list_export_files(self.exports_dir)
        logger.info(f"Found {len(files)} export files in {self.exports_dir}")

        report = RunReport()
        for path in files:
            try:
                report.exports.append(self.migrate_export(path, ledger))
            except (LoadError, TransportError) as e:
                logger.error(f"Skipping export {path.name}: {e}")  # noqa: TRY400
                report.failed_exports[path.name] = str(e)

        save_ledger(ledger, self.ledger_path)

        logger.info(
            f"All migrations complete: {report.exports_processed} export files processed, "
            f"{report.created} created, {report.skipped} skipped, {report.failed} failed"
        )
        if report.failed_exports:
            logger.warning(f"{len(report.failed_exports)} export file(s) could not be migrated")
        if report.label_failures:
            logger.warning(f"{report.label_failures} label(s) could not be created or looked up")
        return report

    def migrate_export(self, path: Path | str, ledger: MigrationLedger) -> ExportStats:
        """Migrate all tasks of one export file.

        Raises:
            LoadError: If the export cannot be read
            TransportError: If existing issues cannot be listed
            LedgerPersistenceError: If the ledger cannot be saved
        """
        path = Path(path)
        export_file = path.name
        logger.info(f"Migrating: {path}")

        tasks = load_export(path)
        stats = ExportStats(export_file=export_file)
        if not tasks:
            logger.info(f"No tasks found in {export_file}, skipping")
            return stats

        stats.project_name = tasks[0].projects[0] if tasks[0].projects else path.stem
        logger.info(f"Project: {stats.project_name} ({len(tasks)} tasks)")

        existing_issues = self.client.get_issues("all")
        duplicates = DuplicateIndex.build(existing_issues)
        logger.info(f"Found {len(duplicates)} previously migrated tasks in Gitea")

        tasks_by_section = group_tasks_by_section(tasks)
        logger.debug(f"Found {len(tasks_by_section)} sections")

        base_labels = self._export_labels(stats)
        section_labels = self._section_labels(tasks_by_section, stats)

        for section_name, section_tasks in tasks_by_section.items():
            logger.info(f"Migrating section: {section_name} ({len(section_tasks)} tasks)")
            section_label = section_labels.get(section_name)
            label_ids = [*base_labels, section_label] if section_label is not None else base_labels

            for task in section_tasks:
                outcome = self.migrate_task(
                    task,
                    export_file=export_file,
                    ledger=ledger,
                    duplicates=duplicates,
                    label_ids=label_ids,
                )
                stats.count(outcome)
                if outcome == "failed":
                    stats.errors.append(f"{task.gid}: {task.name}")

        logger.info(
            f"Migration of {export_file} complete: {stats.created} created, "
            f"{stats.skipped} skipped, {stats.failed} failed, {stats.label_failures} label failures"
        )
        return stats

    def migrate_task(
        self,
        task: AsanaTask,
        *,
        export_file: str,
        ledger: MigrationLedger,
        duplicates: DuplicateIndex,
        label_ids: Sequence[int] = (),
    ) -> TaskOutcome:
        """Migrate one task unless it was migrated before.

        Raises:
            LedgerPersistenceError: If the ledger cannot be saved after creating the issue
        """
        if ledger.is_migrated(task.gid, export_file):
            logger.debug(f"  Skipped (in ledger): {task.name}")
            return "ledger_hit"

        existing = duplicates.lookup(task.gid)
        if existing is not None:
            logger.debug(f"  Skipped (in Gitea as #{existing.number}): {task.name}")
            ledger.record(export_file, MigratedTask(task.gid, existing.number, task.name))
            return "remote_hit"

        request = convert_task_to_issue(task, self.user_mappings)
        if label_ids:
            request.labels = list(label_ids)

        result = self._create_issue(request)
        if result.status == "assignee_not_found":
            logger.warning(f'  Assignee {request.assignees} not found for task "{task.name}", creating without assignee')
            request.assignees = None
            result = self._create_issue(request)

        if result.issue is None:
            logger.error(f'  Failed to create issue for task "{task.name}" ({task.gid}): {result.error}')
            return "failed"

        logger.debug(f"  Created issue #{result.issue.number}: {result.issue.title}")
        ledger.record(export_file, MigratedTask(task.gid, result.issue.number, task.name))
        save_ledger(ledger, self.ledger_path)
        time.sleep(self.request_delay)
        return "created"

    def _create_issue(self, request: IssueRequest) -> CreationResult:
        try:
            issue = self.client.create_issue(request)
        except AssigneeNotFoundError as e:
            return CreationResult("assignee_not_found", error=str(e))
        except TransportError as e:
            return CreationResult("failed", error=str(e))
        return CreationResult("ok", issue=issue)

    def _export_labels(self, stats: ExportStats) -> list[int]:
        """Ensure the import marker and project labels, returning the ids that resolved."""
        project_name = stats.project_name
        candidates = [
            self.labels.ensure_label(IMPORT_LABEL, IMPORT_LABEL_COLOR, "Imported from Asana"),
            self.labels.ensure_label(
                f"Project: {project_name}", PROJECT_LABEL_COLOR, f"Tasks from Asana project: {project_name}"
            ),
        ]
        label_ids = [label_id for label_id in candidates if label_id is not None]
        stats.label_failures += len(candidates) - len(label_ids)
        return label_ids

    def _section_labels(self, tasks_by_section: dict[str, list[AsanaTask]], stats: ExportStats) -> dict[str, int]:
        section_labels: dict[str, int] = {}
        for section_name in tasks_by_section:
            if section_name in self.generic_sections:
                logger.debug(f"Skipping label creation for generic section: {section_name}")
                continue
            label_id = self.labels.ensure_label(section_name, description=f"Tasks from Asana section: {section_name}")
            if label_id is None:
                stats.label_failures += 1
            else:
                section_labels[section_name] = label_id
        return section_labels
