"""Utilities for laying out and persisting report artifacts on disk."""
from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Any, Mapping

DEFAULT_ROOT_DIR = "functional-output"
DEFAULT_NAMESPACE = "zephyr"
REPORT_PREFIX = "zephyr-report"
TEMP_DIR_NAME = "temp"

_TEST_FILE_SUFFIX = re.compile(r"\.(?:cy|spec|test)\.[cm]?[jt]sx?$", re.IGNORECASE)


def utc_timestamp(moment: datetime | None = None) -> str:
    """Return a fixed-width UTC ISO-8601 timestamp, e.g. ``2024-01-01T00:00:00.000Z``.

    Millisecond precision is always emitted so timestamps compare correctly as
    plain strings.
    """

    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def namespace_root(root_dir: str | Path, namespace: str = DEFAULT_NAMESPACE) -> Path:
    return Path(root_dir).resolve() / namespace


def temp_root(root_dir: str | Path, namespace: str = DEFAULT_NAMESPACE) -> Path:
    """Directory under which every per-run report is written."""

    return namespace_root(root_dir, namespace) / TEMP_DIR_NAME


def strip_test_suffix(name: str) -> str:
    """Drop a ``.cy.ts``-style test file suffix from ``name``."""

    return _TEST_FILE_SUFFIX.sub("", name)


def _relative_parts(directory: PurePath) -> tuple[str, ...]:
    # Absolute and parent-relative source paths must stay inside temp/.
    return tuple(part for part in directory.parts if part not in (directory.anchor, "..", "."))


def run_report_path(
    source_file: str | None,
    generated_at: str,
    *,
    root_dir: str | Path = DEFAULT_ROOT_DIR,
    namespace: str = DEFAULT_NAMESPACE,
) -> Path:
    """Resolve the per-run report location for ``source_file``.

    Without a source identifier a placeholder keyed by ``generated_at`` is used.
    """

    source = source_file or f"{REPORT_PREFIX}-{generated_at}"
    source_path = PurePath(source)
    directory = temp_root(root_dir, namespace).joinpath(*_relative_parts(source_path.parent))
    base = strip_test_suffix(source_path.name)
    if not base.startswith(f"{REPORT_PREFIX}-"):
        base = f"{REPORT_PREFIX}-{base}"
    return directory / f"{base}.json"


def merged_report_path(
    root_dir: str | Path,
    shard: str,
    *,
    namespace: str = DEFAULT_NAMESPACE,
) -> Path:
    return namespace_root(root_dir, namespace) / f"{REPORT_PREFIX}-{shard}.json"


def write_json(path: Path, payload: Mapping[str, Any]) -> Path:
    """Persist ``payload`` to ``path`` as 2-space indented UTF-8 JSON.

    Parent directories are created on demand. ``OSError`` is left to the caller.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False, default=str)
    return path


__all__ = [
    "DEFAULT_NAMESPACE",
    "DEFAULT_ROOT_DIR",
    "REPORT_PREFIX",
    "TEMP_DIR_NAME",
    "merged_report_path",
    "namespace_root",
    "run_report_path",
    "strip_test_suffix",
    "temp_root",
    "utc_timestamp",
    "write_json",
]
