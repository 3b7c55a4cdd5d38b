"""Per-run JSON test reports and their cross-shard merge.

Collect a run:
    >>> collector = ReportCollector.from_runner(runner)

Merge every shard's report on the primary shard:
    >>> outcome = merge_reports("functional-output", shard="1", dedupe=True)
    >>> outcome.report.stats.tests
"""

from __future__ import annotations

from .collector import ReportCollector, build_test_record, strip_title_tags
from .config import ReportSettings, load_settings, shard_from_environment
from .models import (
    REPORTER_ID,
    InvalidReportError,
    Report,
    ReportMeta,
    ReportStats,
    TestError,
    TestRecord,
    TestStatus,
)
from .reporting import (
    MergeOutcome,
    MergeStatus,
    clean_reports,
    combine_reports,
    discover_report_files,
    merge_reports,
)
from .tags import extract_tags, resolve_overrides

__all__ = [
    "REPORTER_ID",
    "InvalidReportError",
    "MergeOutcome",
    "MergeStatus",
    "Report",
    "ReportCollector",
    "ReportMeta",
    "ReportSettings",
    "ReportStats",
    "TestError",
    "TestRecord",
    "TestStatus",
    "build_test_record",
    "clean_reports",
    "combine_reports",
    "discover_report_files",
    "extract_tags",
    "load_settings",
    "merge_reports",
    "resolve_overrides",
    "shard_from_environment",
    "strip_title_tags",
]
