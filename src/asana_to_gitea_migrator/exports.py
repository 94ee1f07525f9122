"""
Reading Asana project exports from disk.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .exceptions import ExportDirectoryError, LoadError
from .models import AsanaTask

logger: logging.Logger = logging.getLogger(__name__)


def list_export_files(exports_dir: Path | str) -> list[Path]:
    """Return the ``.json`` files in the exports directory, sorted by name.

    Raises:
        ExportDirectoryError: If the directory cannot be listed
    """
    exports_dir = Path(exports_dir)
    try:
        entries = list(exports_dir.iterdir())
    except OSError as e:
        msg = f"Cannot list exports directory {exports_dir}: {e}"
        raise ExportDirectoryError(msg) from e

    files = sorted(entry for entry in entries if entry.suffix == ".json" and entry.is_file())
    logger.debug(f"Found {len(files)} export files in {exports_dir}")
    return files


def load_export(path: Path | str) -> list[AsanaTask]:
    """Load the tasks of one Asana export (``{"data": [task, ...]}``).

    Raises:
        LoadError: If the file cannot be read or does not have the expected shape
    """
    path = Path(path)
    try:
        raw: object = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        msg = f"Failed to read export {path}: {e}"
        raise LoadError(msg) from e

    if not isinstance(raw, dict) or not isinstance(raw.get("data"), list):
        msg = f"Export {path} has no 'data' array"
        raise LoadError(msg)

    try:
        return [AsanaTask.from_dict(entry) for entry in raw["data"]]
    except LoadError as e:
        msg = f"Invalid task in export {path}: {e}"
        raise LoadError(msg) from e
