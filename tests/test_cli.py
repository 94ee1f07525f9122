"""
Tests for CLI module.
"""

import logging
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from asana_to_gitea_migrator.cli import _print_report, main, parse_arguments
from asana_to_gitea_migrator.config import MigrationConfig
from asana_to_gitea_migrator.exceptions import TransportError
from asana_to_gitea_migrator.migrator import GENERIC_SECTION_NAMES, ExportStats, RunReport
from asana_to_gitea_migrator.utils import setup_logging


@pytest.fixture
def gitea_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in an empty directory with the Gitea connection set through the environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITEA_TOKEN", "env-token")
    monkeypatch.setenv("GITEA_OWNER", "org")
    monkeypatch.setenv("GITEA_REPO", "tasks")
    monkeypatch.delenv("GITEA_URL", raising=False)
    return tmp_path


@pytest.mark.unit
class TestPrintReport:
    """Test run report printing."""

    def test_report_with_failures(self, capsys: pytest.CaptureFixture[str]) -> None:
        report = RunReport(
            exports=[
                ExportStats(
                    "a.json", "Website", created=3, ledger_hits=2, failed=1, label_failures=1, errors=["9: Broken task"]
                )
            ],
            failed_exports={"b.json": "Failed to read export b.json"},
        )
        config = MigrationConfig("https://gitea.local", "t", "org", "tasks")

        _print_report(report, config)
        out = capsys.readouterr().out

        assert "https://gitea.local/org/tasks" in out
        assert "Export files processed: 2" in out
        assert "a.json (Website): 3 created, 2 skipped, 1 failed, 1 label failures" in out
        assert "failed: 9: Broken task" in out
        assert "b.json: NOT MIGRATED" in out
        assert "Total: 3 created, 2 skipped, 1 failed" in out
        assert "Labels not applied: 1" in out

    def test_empty_report(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_report(RunReport(), MigrationConfig("https://gitea.local", "t", "org", "tasks"))
        out = capsys.readouterr().out

        assert "Export files processed: 0" in out
        assert "Total: 0 created, 0 skipped, 0 failed" in out
        assert "Labels not applied" not in out


@pytest.mark.unit
class TestParseArguments:
    def test_defaults(self) -> None:
        args = parse_arguments([])

        assert args.exports_dir == "exports"
        assert args.ledger == "migration-state.json"
        assert args.user_mapping is None
        assert args.request_delay == 0.1
        assert args.generic_section is None
        assert args.skip_validation is False
        assert args.verbose == 0

    def test_repeatable_options(self) -> None:
        args = parse_arguments(["--generic-section", "Backlog", "--generic-section", "Inbox", "-vv"])

        assert args.generic_section == ["Backlog", "Inbox"]
        assert args.verbose == 2


@pytest.mark.unit
class TestSetupLogging:
    """Test setup_logging verbosity levels."""

    @pytest.fixture(autouse=True)
    def _in_tmp_dir(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)

    def _get_console_handler(self, root_logger: logging.Logger) -> logging.StreamHandler[Any]:
        console_handlers = [
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert console_handlers, "Expected at least one console StreamHandler"
        return console_handlers[0]

    def _console_level(self, verbosity: int) -> int:
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        root_logger.handlers.clear()

        try:
            setup_logging(verbosity=verbosity)
            return self._get_console_handler(root_logger).level
        finally:
            for h in root_logger.handlers:
                h.close()
            root_logger.handlers = original_handlers

    def test_default_shows_only_warnings_on_console(self) -> None:
        assert self._console_level(0) == logging.WARNING

    def test_verbose_shows_info_on_console(self) -> None:
        assert self._console_level(1) == logging.INFO

    def test_extra_verbose_shows_debug_on_console(self) -> None:
        assert self._console_level(2) == logging.DEBUG
        assert self._console_level(5) == logging.DEBUG

    def test_log_file_written(self, tmp_path: Path) -> None:
        _ = self._console_level(0)
        assert (tmp_path / "migration.log").exists()


@pytest.mark.unit
@pytest.mark.usefixtures("gitea_env")
class TestMain:
    """Test the main entry point with the Gitea client and migrator mocked."""

    def _run_main(self, argv: list[str], report: RunReport | None = None) -> tuple[int, MagicMock, MagicMock]:
        with (
            patch("asana_to_gitea_migrator.cli.setup_logging"),
            patch("asana_to_gitea_migrator.cli.GiteaClient") as mock_client,
            patch("asana_to_gitea_migrator.cli.AsanaToGiteaMigrator") as mock_migrator,
        ):
            mock_migrator.return_value.migrate_all.return_value = report or RunReport()

            with pytest.raises(SystemExit) as exc_info:
                main(argv)

            code = exc_info.value.code
            assert isinstance(code, int)
            return code, mock_client, mock_migrator

    def test_success_exits_zero(self) -> None:
        code, mock_client, mock_migrator = self._run_main([])

        assert code == 0
        mock_client.assert_called_once_with("https://git.example.com", "env-token", "org", "tasks")
        mock_client.return_value.validate_access.assert_called_once()
        mock_migrator.return_value.migrate_all.assert_called_once()

    def test_options_forwarded_to_migrator(self, gitea_env: Path) -> None:
        _ = (gitea_env / "mapping.json").write_text('[{"asanaEmail": "jane@example.com", "giteaUsername": "jane"}]')

        code, _, mock_migrator = self._run_main(
            [
                "--exports-dir",
                "dumps",
                "--ledger",
                "state.json",
                "-u",
                "mapping.json",
                "--request-delay",
                "0",
                "--generic-section",
                "Backlog",
            ]
        )

        assert code == 0
        _, kwargs = mock_migrator.call_args
        assert kwargs["exports_dir"] == Path("dumps")
        assert kwargs["ledger_path"] == Path("state.json")
        assert [m.gitea_username for m in kwargs["user_mappings"]] == ["jane"]
        assert kwargs["request_delay"] == 0
        assert kwargs["generic_sections"] == GENERIC_SECTION_NAMES | {"Backlog"}

    def test_command_line_overrides_environment(self) -> None:
        code, mock_client, _ = self._run_main(["--gitea-url", "https://other.local", "--owner", "me", "--repo", "r"])

        assert code == 0
        mock_client.assert_called_once_with("https://other.local", "env-token", "me", "r")

    def test_skip_validation(self) -> None:
        _, mock_client, _ = self._run_main(["--skip-validation"])
        mock_client.return_value.validate_access.assert_not_called()

    def test_failed_exports_still_exit_zero(self) -> None:
        report = RunReport(failed_exports={"broken.json": "Failed to read export"})
        code, _, _ = self._run_main([], report)
        assert code == 0

    def test_missing_token_exits_one(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITEA_TOKEN")

        code, mock_client, _ = self._run_main([])

        assert code == 1
        mock_client.assert_not_called()

    def test_missing_user_mapping_file_exits_one(self) -> None:
        code, _, mock_migrator = self._run_main(["--user-mapping", "nope.json"])

        assert code == 1
        mock_migrator.assert_not_called()

    def test_migration_error_exits_one(self) -> None:
        with (
            patch("asana_to_gitea_migrator.cli.setup_logging"),
            patch("asana_to_gitea_migrator.cli.GiteaClient"),
            patch("asana_to_gitea_migrator.cli.AsanaToGiteaMigrator") as mock_migrator,
        ):
            mock_migrator.return_value.migrate_all.side_effect = TransportError("Gitea API error: 502 Bad Gateway")

            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
