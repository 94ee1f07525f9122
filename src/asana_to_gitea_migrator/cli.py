"""
Command-line interface for the Asana to Gitea migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from .config import DEFAULT_EXPORTS_DIR, MigrationConfig, load_config
from .exceptions import MigrationError
from .gitea_client import GiteaClient
from .ledger import DEFAULT_LEDGER_FILE
from .migrator import DEFAULT_REQUEST_DELAY, AsanaToGiteaMigrator
from .utils import setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .migrator import RunReport

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate Asana project exports to Gitea issues. Safe to re-run: migrated tasks are skipped."
    )

    _ = parser.add_argument("--gitea-url", help="Gitea base URL (default: $GITEA_URL)")
    _ = parser.add_argument("--owner", help="Gitea repository owner (default: $GITEA_OWNER)")
    _ = parser.add_argument("--repo", help="Gitea repository name (default: $GITEA_REPO)")

    _ = parser.add_argument(
        "--gitea-pass-token", help="Path for Gitea token in pass utility (default: use $GITEA_TOKEN)"
    )

    _ = parser.add_argument(
        "--exports-dir",
        "-e",
        default=DEFAULT_EXPORTS_DIR,
        help=f"Directory containing Asana export JSON files (default: {DEFAULT_EXPORTS_DIR})",
    )
    _ = parser.add_argument(
        "--ledger", default=DEFAULT_LEDGER_FILE, help=f"Migration ledger file (default: {DEFAULT_LEDGER_FILE})"
    )
    _ = parser.add_argument(
        "--user-mapping", "-u", help="JSON file mapping Asana emails to Gitea usernames (default: user-mapping.json)"
    )

    _ = parser.add_argument(
        "--request-delay",
        type=float,
        default=DEFAULT_REQUEST_DELAY,
        help=f"Seconds to wait after each created issue (default: {DEFAULT_REQUEST_DELAY})",
    )
    _ = parser.add_argument(
        "--generic-section",
        action="append",
        help="Section name that should not get its own label. Can be specified multiple times.",
    )
    _ = parser.add_argument("--skip-validation", action="store_true", help="Do not check Gitea API access first")

    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase console verbosity (-v info, -vv debug)"
    )

    return parser.parse_args(argv)


def _print_report(report: RunReport, config: MigrationConfig) -> None:
    print(f"\nTarget: {config.gitea_url}/{config.repo_owner}/{config.repo_name}")
    print(f"Export files processed: {report.exports_processed}")
    for stats in report.exports:
        line = (
            f"  {stats.export_file} ({stats.project_name or '-'}): "
            f"{stats.created} created, {stats.skipped} skipped, {stats.failed} failed"
        )
        if stats.label_failures:
            line += f", {stats.label_failures} label failures"
        print(line)
        for error in stats.errors:
            print(f"    failed: {error}")
    for export_file, error in report.failed_exports.items():
        print(f"  {export_file}: NOT MIGRATED - {error}")
    print(f"Total: {report.created} created, {report.skipped} skipped, {report.failed} failed")
    if report.label_failures:
        print(f"Labels not applied: {report.label_failures}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    # Setup logging
    verbosity: int = getattr(args, "verbose", 0)
    setup_logging(verbosity=verbosity)

    try:
        config = load_config(args)
        logger.info(f"Target: {config.gitea_url}/{config.repo_owner}/{config.repo_name}")
        logger.info(f"Exports directory: {config.exports_dir}")

        client = GiteaClient(config.gitea_url, config.gitea_token, config.repo_owner, config.repo_name)
        if config.validate_access:
            client.validate_access()

        migrator = AsanaToGiteaMigrator(
            client,
            exports_dir=config.exports_dir,
            ledger_path=config.ledger_path,
            user_mappings=config.user_mappings,
            request_delay=config.request_delay,
            generic_sections=config.generic_sections,
        )

        # Execute migration
        report = migrator.migrate_all()

    except MigrationError:
        logger.exception("Migration failed")
        sys.exit(1)

    _print_report(report, config)
    sys.exit(0)
