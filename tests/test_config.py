from __future__ import annotations

import json
from pathlib import Path

import pytest
from omegaconf.errors import ConfigKeyError

from zephyr_reports.config import (
    SHARD_ENV_VAR,
    ReportSettings,
    clean_from_settings,
    load_settings,
    merge_from_settings,
    shard_from_environment,
)
from zephyr_reports.models import REPORTER_ID
from zephyr_reports.reporting.merge import MergeStatus


def test_defaults_read_shard_from_environment() -> None:
    settings = load_settings(environ={SHARD_ENV_VAR: "3"})

    assert settings == ReportSettings(
        root_dir="functional-output",
        namespace="zephyr",
        dedupe=False,
        allow_merge_on_all_shards=False,
        shard="3",
    )


def test_shard_defaults_to_primary_when_unset() -> None:
    assert shard_from_environment({}) == "1"
    assert shard_from_environment({SHARD_ENV_VAR: ""}) == "1"


def test_yaml_and_dotlist_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "reports.yaml"
    config_path.write_text("root_dir: build/output\ndedupe: true\nshard: '2'\n", encoding="utf-8")

    settings = load_settings(
        config_path,
        overrides=["allow_merge_on_all_shards=true", "namespace=qa"],
        environ={SHARD_ENV_VAR: "5"},
    )

    assert settings.root_dir == "build/output"
    assert settings.dedupe is True
    assert settings.allow_merge_on_all_shards is True
    assert settings.namespace == "qa"
    assert settings.shard == "2"


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigKeyError, match="not_a_setting"):
        load_settings(overrides=["not_a_setting=1"], environ={})


def test_settings_drive_merge_and_cleanup(tmp_path: Path) -> None:
    root_dir = tmp_path / "functional-output"
    report = {
        "meta": {"reporter": REPORTER_ID, "generatedAt": "2024-01-01T00:00:00.000Z"},
        "stats": {"tests": 1, "passes": 1, "failures": 0, "pending": 0},
        "tests": [{"title": "t", "fullTitle": "t", "parents": [], "status": "passed", "tags": [], "configOverrides": {}}],
    }
    source = root_dir / "zephyr" / "temp" / "zephyr-report-t.json"
    source.parent.mkdir(parents=True)
    source.write_text(json.dumps(report), encoding="utf-8")

    secondary = load_settings(overrides=[f"root_dir={root_dir}"], environ={SHARD_ENV_VAR: "2"})
    assert merge_from_settings(secondary).status is MergeStatus.SKIPPED_SECONDARY_SHARD

    primary = load_settings(overrides=[f"root_dir={root_dir}", "dedupe=true"], environ={})
    outcome = merge_from_settings(primary)
    assert outcome.status is MergeStatus.MERGED
    assert outcome.output_path is not None and outcome.output_path.name == "zephyr-report-1.json"

    assert clean_from_settings(primary)
    assert not (root_dir / "zephyr").exists()
