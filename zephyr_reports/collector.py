"""Runner event collector producing one report per test run.

The collector listens to a runner's lifecycle notifications (``start``,
``pass``, ``fail``, ``pending`` and ``end``), converts every completed test into
a :class:`~zephyr_reports.models.TestRecord` and writes the finished report
exactly once when the run ends.

Runner objects are duck-typed. Tests are expected to expose ``title`` and may
expose ``full_title`` (string or zero-argument callable), ``file``,
``duration`` and ``parent``; suites expose ``title``, ``file`` and ``parent``.
"""
from __future__ import annotations

import logging
import re
import traceback
from pathlib import Path
from typing import Any

from zephyr_reports.models import Report, ReportMeta, TestError, TestRecord, TestStatus
from zephyr_reports.tags import extract_tags, resolve_overrides
from zephyr_reports.utils.artifacts import (
    DEFAULT_NAMESPACE,
    DEFAULT_ROOT_DIR,
    run_report_path,
    utc_timestamp,
    write_json,
)

LOGGER = logging.getLogger(__name__)

_TITLE_TAGS = re.compile(r"(.*?)(\s*\[.*\])?")


def strip_title_tags(title: str) -> str:
    """Remove a trailing ``[tag, ...]`` annotation from ``title``.

    ``"Login works [smoke, p1]"`` becomes ``"Login works"``; titles without the
    annotation are returned untouched.
    """

    match = _TITLE_TAGS.fullmatch(title)
    if match is None or match.group(2) is None:
        return title
    return match.group(1).strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_full_title(test: Any, fallback: str) -> str:
    candidate = getattr(test, "full_title", None)
    if callable(candidate):
        candidate = candidate()
    if isinstance(candidate, str) and candidate:
        return candidate
    return fallback


def resolve_location(test: Any) -> tuple[str | None, tuple[str, ...]]:
    """Return the originating file of ``test`` and its suite path.

    A test carrying its own ``file`` has no recorded parents. Otherwise suites
    are walked outwards, collecting non-blank titles until one of them provides
    a file.
    """

    file = getattr(test, "file", None) or None
    parents: list[str] = []
    parent = getattr(test, "parent", None)
    while file is None and parent is not None:
        file = getattr(parent, "file", None) or None
        title = getattr(parent, "title", None)
        if isinstance(title, str) and title.strip():
            parents.insert(0, title)
        parent = getattr(parent, "parent", None)
    return (str(file) if file is not None else None), tuple(parents)


def describe_error(error: Any) -> TestError:
    message = getattr(error, "message", None)
    if message is None:
        message = str(error)
    stack = getattr(error, "stack", None)
    if stack is None and isinstance(error, BaseException) and error.__traceback__ is not None:
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return TestError(message=str(message), stack=None if stack is None else str(stack))


def build_test_record(test: Any, status: TestStatus, error: Any = None) -> TestRecord:
    raw_title = getattr(test, "title", None) or ""
    title = strip_title_tags(str(raw_title))
    file, parents = resolve_location(test)
    overrides = resolve_overrides(test)
    duration = getattr(test, "duration", None)
    return TestRecord(
        title=title,
        full_title=resolve_full_title(test, title),
        status=status,
        parents=parents,
        file=file,
        duration_ms=duration if _is_number(duration) else None,
        tags=tuple(extract_tags(overrides)),
        config_overrides=overrides,
        error=describe_error(error) if status is TestStatus.FAILED and error is not None else None,
    )


class ReportCollector:
    """Accumulate a single run's report and persist it when the run ends."""

    def __init__(
        self,
        source_file: str | None = None,
        *,
        root_dir: str | Path = DEFAULT_ROOT_DIR,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        generated_at = utc_timestamp()
        self.output_path = run_report_path(
            source_file, generated_at, root_dir=root_dir, namespace=namespace
        )
        self.report = Report(meta=ReportMeta(generated_at=generated_at))
        self._finalised = False

    @classmethod
    def from_runner(cls, runner: Any, **kwargs: Any) -> "ReportCollector":
        """Build a collector keyed by the runner's root suite file and attach it."""

        suite = getattr(runner, "suite", None)
        source = getattr(suite, "file", None)
        collector = cls(str(source) if source else None, **kwargs)
        collector.attach(runner)
        return collector

    @property
    def finalised(self) -> bool:
        return self._finalised

    def attach(self, runner: Any) -> None:
        """Subscribe to ``runner`` notifications via its ``on``/``once`` methods."""

        subscribe_once = getattr(runner, "once", None) or runner.on
        subscribe_once("start", lambda *_: self.handle_start())
        runner.on("pass", lambda test, *_: self.handle_pass(test))
        runner.on("fail", lambda test, error=None, *_: self.handle_fail(test, error))
        runner.on("pending", lambda test, *_: self.handle_pending(test))

        def _on_end(*_: Any) -> None:
            stats = getattr(runner, "stats", None)
            self.handle_end(getattr(stats, "duration", None))

        subscribe_once("end", _on_end)

    def _ignore_if_finalised(self, event: str) -> bool:
        if self._finalised:
            LOGGER.warning("Ignoring '%s' notification for finalised report %s", event, self.output_path)
        return self._finalised

    def handle_start(self) -> None:
        if self._ignore_if_finalised("start"):
            return
        self.report.meta.started_at = utc_timestamp()

    def handle_pass(self, test: Any) -> None:
        self._record(test, TestStatus.PASSED)

    def handle_fail(self, test: Any, error: Any = None) -> None:
        self._record(test, TestStatus.FAILED, error)

    def handle_pending(self, test: Any) -> None:
        self._record(test, TestStatus.PENDING)

    def _record(self, test: Any, status: TestStatus, error: Any = None) -> None:
        if self._ignore_if_finalised(status.value):
            return
        self.report.stats.record(status)
        self.report.tests.append(build_test_record(test, status, error))

    def handle_end(self, duration_ms: float | None = None) -> Path | None:
        """Finalise the report and write it to :attr:`output_path`."""

        if self._ignore_if_finalised("end"):
            return None
        self.report.meta.ended_at = utc_timestamp()
        self.report.stats.duration_ms = duration_ms if _is_number(duration_ms) else None
        self._finalised = True
        write_json(self.output_path, self.report.to_dict())
        LOGGER.info("Wrote %d test records to %s", self.report.stats.tests, self.output_path)
        return self.output_path


__all__ = [
    "ReportCollector",
    "build_test_record",
    "describe_error",
    "resolve_full_title",
    "resolve_location",
    "strip_title_tags",
]
