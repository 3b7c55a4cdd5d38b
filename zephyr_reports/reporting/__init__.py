"""Reporting utilities for discovering and merging per-shard reports."""

from __future__ import annotations

from .discovery import discover_report_files
from .merge import (
    PRIMARY_SHARD,
    MergeOutcome,
    MergeStatus,
    ReportLoadResult,
    clean_reports,
    combine_reports,
    load_report,
    merge_report_files,
    merge_reports,
)

__all__ = [
    "PRIMARY_SHARD",
    "MergeOutcome",
    "MergeStatus",
    "ReportLoadResult",
    "clean_reports",
    "combine_reports",
    "discover_report_files",
    "load_report",
    "merge_report_files",
    "merge_reports",
]
