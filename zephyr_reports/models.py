"""Canonical report schema shared by the collector and the merger."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

REPORTER_ID = "zephyr-json"


class InvalidReportError(ValueError):
    """Raised when a payload does not follow the report schema."""


class TestStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"

    __test__ = False


@dataclass(frozen=True)
class TestError:
    __test__ = False

    message: str
    stack: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.stack is not None:
            payload["stack"] = self.stack
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TestError":
        stack = payload.get("stack")
        return cls(message=str(payload.get("message", "")), stack=None if stack is None else str(stack))


@dataclass(frozen=True)
class TestRecord:
    """One completed test as emitted by the runner."""

    __test__ = False

    title: str
    full_title: str
    status: TestStatus
    parents: tuple[str, ...] = ()
    file: str | None = None
    duration_ms: float | None = None
    tags: tuple[str, ...] = ()
    config_overrides: Mapping[str, Any] = field(default_factory=dict)
    error: TestError | None = None

    @property
    def identity(self) -> tuple[str, str, tuple[str, ...]]:
        """Deduplication key: full title, originating file and suite path."""

        return (self.full_title, self.file or "", self.parents)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": self.title, "fullTitle": self.full_title}
        if self.file is not None:
            payload["file"] = self.file
        payload["parents"] = list(self.parents)
        if self.duration_ms is not None:
            payload["durationMs"] = self.duration_ms
        payload["status"] = self.status.value
        payload["tags"] = list(self.tags)
        payload["configOverrides"] = dict(self.config_overrides)
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TestRecord":
        if not isinstance(payload, Mapping):
            raise InvalidReportError(f"Test entry must be an object, got {type(payload).__name__}")
        try:
            status = TestStatus(payload.get("status"))
        except ValueError as exc:
            raise InvalidReportError(f"Unknown test status {payload.get('status')!r}") from exc

        title = str(payload.get("title") or "")
        parents = _string_list(payload, "parents")
        tags = _string_list(payload, "tags")
        overrides = payload.get("configOverrides")
        error = payload.get("error")
        duration = payload.get("durationMs")
        file = payload.get("file")
        return cls(
            title=title,
            full_title=str(payload.get("fullTitle") or title),
            status=status,
            parents=parents,
            file=None if file is None else str(file),
            duration_ms=duration if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
            tags=tags,
            config_overrides=dict(overrides) if isinstance(overrides, Mapping) else {},
            error=(
                TestError.from_dict(error)
                if status is TestStatus.FAILED and isinstance(error, Mapping)
                else None
            ),
        )


def _string_list(payload: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = payload.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise InvalidReportError(f"Test field {key!r} must be a list, got {type(value).__name__}")
    return tuple(str(item) for item in value)


@dataclass
class ReportStats:
    tests: int = 0
    passes: int = 0
    failures: int = 0
    pending: int = 0
    duration_ms: float | None = None

    def record(self, status: TestStatus) -> None:
        self.tests += 1
        if status is TestStatus.PASSED:
            self.passes += 1
        elif status is TestStatus.FAILED:
            self.failures += 1
        elif status is TestStatus.PENDING:
            self.pending += 1

    @property
    def is_consistent(self) -> bool:
        return self.tests == self.passes + self.failures + self.pending

    @classmethod
    def from_tests(cls, tests: Iterable[TestRecord]) -> "ReportStats":
        """Recount totals from ``tests``.

        A summed duration of exactly zero is reported as absent rather than ``0``.
        """

        stats = cls()
        total_duration: float = 0
        for record in tests:
            stats.record(record.status)
            total_duration += record.duration_ms or 0
        stats.duration_ms = total_duration or None
        return stats

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "tests": self.tests,
            "passes": self.passes,
            "failures": self.failures,
            "pending": self.pending,
        }
        if self.duration_ms is not None:
            payload["durationMs"] = self.duration_ms
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ReportStats":
        def _count(key: str) -> int:
            try:
                return int(payload.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        duration = payload.get("durationMs")
        return cls(
            tests=_count("tests"),
            passes=_count("passes"),
            failures=_count("failures"),
            pending=_count("pending"),
            duration_ms=duration if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
        )


@dataclass
class ReportMeta:
    generated_at: str
    started_at: str | None = None
    ended_at: str | None = None
    reporter: str = REPORTER_ID

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"reporter": self.reporter, "generatedAt": self.generated_at}
        if self.started_at is not None:
            payload["startedAt"] = self.started_at
        if self.ended_at is not None:
            payload["endedAt"] = self.ended_at
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ReportMeta":
        started = payload.get("startedAt")
        ended = payload.get("endedAt")
        return cls(
            generated_at=str(payload.get("generatedAt") or ""),
            started_at=str(started) if started else None,
            ended_at=str(ended) if ended else None,
            reporter=str(payload.get("reporter")),
        )


@dataclass
class Report:
    meta: ReportMeta
    stats: ReportStats = field(default_factory=ReportStats)
    tests: list[TestRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "stats": self.stats.to_dict(),
            "tests": [record.to_dict() for record in self.tests],
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "Report":
        if not is_report_payload(payload):
            raise InvalidReportError("Payload is not a zephyr-json report")
        return cls(
            meta=ReportMeta.from_dict(payload["meta"]),
            stats=ReportStats.from_dict(payload["stats"]),
            tests=[TestRecord.from_dict(entry) for entry in payload["tests"]],
        )


def is_report_payload(payload: Any) -> bool:
    """Return ``True`` when ``payload`` has the outer shape of a report."""

    if not isinstance(payload, Mapping):
        return False
    meta = payload.get("meta")
    if not isinstance(meta, Mapping) or meta.get("reporter") != REPORTER_ID:
        return False
    return isinstance(payload.get("tests"), list) and isinstance(payload.get("stats"), Mapping)


__all__ = [
    "REPORTER_ID",
    "InvalidReportError",
    "Report",
    "ReportMeta",
    "ReportStats",
    "TestError",
    "TestRecord",
    "TestStatus",
    "is_report_payload",
]
