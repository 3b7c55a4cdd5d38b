"""Discovery of per-run report files beneath a directory tree."""
from __future__ import annotations

import logging
from pathlib import Path

from zephyr_reports.utils.artifacts import REPORT_PREFIX

LOGGER = logging.getLogger(__name__)


def is_report_file(path: Path) -> bool:
    return path.name.startswith(f"{REPORT_PREFIX}-") and path.suffix.lower() == ".json"


def discover_report_files(root: Path, *, exclude: Path | None = None) -> list[Path]:
    """Locate per-run report files under ``root``.

    ``exclude`` is typically the merge destination so a merge never reads its
    own output. Returns an empty list when ``root`` is missing or holds no
    matching files.
    """

    root = Path(root)
    if not root.is_dir():
        LOGGER.warning("Report directory does not exist: %s", root)
        return []

    excluded = exclude.resolve() if exclude is not None else None
    candidates = sorted(
        path
        for path in root.rglob("*")
        if path.is_file() and is_report_file(path) and path.resolve() != excluded
    )
    if not candidates:
        LOGGER.warning("No %s-*.json found under %s", REPORT_PREFIX, root)
    return candidates


__all__ = ["discover_report_files", "is_report_file"]
