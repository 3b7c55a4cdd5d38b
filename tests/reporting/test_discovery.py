from __future__ import annotations

from pathlib import Path

import pytest

from zephyr_reports.reporting.discovery import discover_report_files


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}", encoding="utf-8")
    return path


def test_discovery_filters_by_prefix_and_extension(tmp_path: Path) -> None:
    expected = [
        _touch(tmp_path / "a" / "zephyr-report-login.json"),
        _touch(tmp_path / "b" / "c" / "zephyr-report-cart.JSON"),
    ]
    _touch(tmp_path / "a" / "cypress-report-login.json")
    _touch(tmp_path / "a" / "zephyr-report-login.json.bak")
    _touch(tmp_path / "zephyr-report.json")
    (tmp_path / "d" / "zephyr-report-dir.json").mkdir(parents=True)

    assert discover_report_files(tmp_path) == sorted(expected)


def test_discovery_excludes_merge_output(tmp_path: Path) -> None:
    kept = _touch(tmp_path / "zephyr-report-run.json")
    merged = _touch(tmp_path / "zephyr-report-1.json")

    assert discover_report_files(tmp_path, exclude=merged) == [kept]


def test_discovery_of_missing_root_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING"):
        assert discover_report_files(tmp_path / "missing") == []
    assert "does not exist" in caplog.text


def test_discovery_without_matches_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    _touch(tmp_path / "other.json")
    with caplog.at_level("WARNING"):
        assert discover_report_files(tmp_path) == []
    assert "No zephyr-report-*.json found" in caplog.text
