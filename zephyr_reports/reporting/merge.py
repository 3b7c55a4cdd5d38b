"""Merge helpers for collating per-shard reports into one consolidated report."""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from zephyr_reports.models import InvalidReportError, Report, ReportMeta, ReportStats, TestRecord
from zephyr_reports.reporting.discovery import discover_report_files
from zephyr_reports.utils.artifacts import (
    DEFAULT_NAMESPACE,
    merged_report_path,
    namespace_root,
    temp_root,
    utc_timestamp,
    write_json,
)

LOGGER = logging.getLogger(__name__)

PRIMARY_SHARD = "1"


class MergeStatus(str, Enum):
    MERGED = "merged"
    SKIPPED_SECONDARY_SHARD = "skipped_secondary_shard"
    MISSING_DIRECTORY = "missing_directory"
    NO_CANDIDATE_FILES = "no_candidate_files"
    NO_VALID_REPORTS = "no_valid_reports"


@dataclass(frozen=True)
class ReportLoadResult:
    """Outcome of reading one candidate report file."""

    path: Path
    report: Report | None = None
    diagnostic: str | None = None

    @property
    def ok(self) -> bool:
        return self.report is not None


@dataclass
class MergeOutcome:
    status: MergeStatus
    output_path: Path | None = None
    files: list[ReportLoadResult] = field(default_factory=list)
    report: Report | None = None

    @property
    def merged(self) -> bool:
        return self.status is MergeStatus.MERGED

    @property
    def skipped(self) -> list[ReportLoadResult]:
        return [result for result in self.files if not result.ok]


def load_report(path: Path) -> ReportLoadResult:
    """Read and validate the report at ``path`` without raising."""

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        diagnostic = f"unreadable: {exc}"
    except json.JSONDecodeError as exc:
        diagnostic = f"invalid JSON: {exc}"
    else:
        try:
            report = Report.from_dict(payload)
        except InvalidReportError as exc:
            diagnostic = f"invalid report shape: {exc}"
        else:
            LOGGER.debug("Loaded %s (%d tests)", path, len(report.tests))
            return ReportLoadResult(path=path, report=report)
    LOGGER.warning("Skipping %s (%s)", path, diagnostic)
    return ReportLoadResult(path=path, diagnostic=diagnostic)


def _earliest(current: str | None, candidate: str | None) -> str | None:
    if not candidate:
        return current
    if current is None:
        return candidate
    return min(current, candidate)


def _latest(current: str | None, candidate: str | None) -> str | None:
    if not candidate:
        return current
    if current is None:
        return candidate
    return max(current, candidate)


def dedupe_tests(tests: Iterable[TestRecord]) -> list[TestRecord]:
    """Drop records whose identity was already seen, keeping the first one."""

    seen: set[tuple[str, str, tuple[str, ...]]] = set()
    unique: list[TestRecord] = []
    for record in tests:
        key = record.identity
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def combine_reports(
    reports: Sequence[Report],
    *,
    dedupe: bool = False,
    generated_at: str | None = None,
) -> Report:
    """Build a fresh report from ``reports``; inputs are left untouched.

    Statistics are always recounted from the combined tests since deduplication
    changes cardinality.
    """

    started_at: str | None = None
    ended_at: str | None = None
    tests: list[TestRecord] = []
    for report in reports:
        started_at = _earliest(started_at, report.meta.started_at)
        ended_at = _latest(ended_at, report.meta.ended_at)
        tests.extend(report.tests)

    if dedupe:
        tests = dedupe_tests(tests)

    return Report(
        meta=ReportMeta(
            generated_at=generated_at or utc_timestamp(),
            started_at=started_at,
            ended_at=ended_at,
        ),
        stats=ReportStats.from_tests(tests),
        tests=tests,
    )


def _gate_allows(shard: str, allow_merge_on_all_shards: bool) -> bool:
    if allow_merge_on_all_shards or shard == PRIMARY_SHARD:
        return True
    LOGGER.warning(
        "Shard %r is not the primary shard %r; skipping redundant merge", shard, PRIMARY_SHARD
    )
    return False


def merge_report_files(
    paths: Sequence[Path],
    output_path: Path,
    *,
    shard: str,
    dedupe: bool = False,
    allow_merge_on_all_shards: bool = False,
) -> MergeOutcome:
    """Merge the reports stored at ``paths`` into ``output_path``."""

    if not _gate_allows(shard, allow_merge_on_all_shards):
        return MergeOutcome(status=MergeStatus.SKIPPED_SECONDARY_SHARD)

    if not paths:
        LOGGER.warning("No candidate report files to merge")
        return MergeOutcome(status=MergeStatus.NO_CANDIDATE_FILES)

    results = [load_report(path) for path in paths]
    reports = [result.report for result in results if result.report is not None]
    if not reports:
        LOGGER.warning("Found %d candidate files but none were valid reports", len(results))
        return MergeOutcome(status=MergeStatus.NO_VALID_REPORTS, files=results)

    merged = combine_reports(reports, dedupe=dedupe)
    write_json(output_path, merged.to_dict())
    LOGGER.info("Merged %d reports -> %s (%d tests)", len(reports), output_path, merged.stats.tests)
    return MergeOutcome(
        status=MergeStatus.MERGED,
        output_path=output_path,
        files=results,
        report=merged,
    )


def merge_reports(
    root_dir: str | Path,
    *,
    shard: str,
    dedupe: bool = False,
    allow_merge_on_all_shards: bool = False,
    namespace: str = DEFAULT_NAMESPACE,
) -> MergeOutcome:
    """Merge every per-run report under ``root_dir`` into the shard's merged report."""

    if not _gate_allows(shard, allow_merge_on_all_shards):
        return MergeOutcome(status=MergeStatus.SKIPPED_SECONDARY_SHARD)

    source_root = temp_root(root_dir, namespace)
    output_path = merged_report_path(root_dir, shard, namespace=namespace)
    if not source_root.is_dir():
        LOGGER.warning("Report directory does not exist: %s", source_root)
        return MergeOutcome(status=MergeStatus.MISSING_DIRECTORY)

    paths = discover_report_files(source_root, exclude=output_path)
    if not paths:
        return MergeOutcome(status=MergeStatus.NO_CANDIDATE_FILES)

    return merge_report_files(
        paths,
        output_path,
        shard=shard,
        dedupe=dedupe,
        allow_merge_on_all_shards=True,
    )


def clean_reports(root_dir: str | Path, *, namespace: str = DEFAULT_NAMESPACE) -> bool:
    """Remove the whole report namespace under ``root_dir``."""

    target = namespace_root(root_dir, namespace)
    if not target.exists():
        LOGGER.warning("Report directory does not exist: %s", target)
        return False
    shutil.rmtree(target)
    return True


__all__ = [
    "PRIMARY_SHARD",
    "MergeOutcome",
    "MergeStatus",
    "ReportLoadResult",
    "clean_reports",
    "combine_reports",
    "dedupe_tests",
    "load_report",
    "merge_report_files",
    "merge_reports",
]
