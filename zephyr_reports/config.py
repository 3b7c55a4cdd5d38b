"""OmegaConf-backed settings for collecting, merging and cleaning reports."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from omegaconf import OmegaConf

from zephyr_reports.reporting.merge import MergeOutcome, clean_reports, merge_reports
from zephyr_reports.utils.artifacts import DEFAULT_NAMESPACE, DEFAULT_ROOT_DIR

SHARD_ENV_VAR = "CYPRESS_THREAD"
DEFAULT_SHARD = "1"


@dataclass
class ReportSettings:
    """Configuration surface shared by the collector, merger and cleanup."""

    root_dir: str = DEFAULT_ROOT_DIR
    namespace: str = DEFAULT_NAMESPACE
    dedupe: bool = False
    allow_merge_on_all_shards: bool = False
    shard: Optional[str] = None


def shard_from_environment(environ: Mapping[str, str] | None = None) -> str:
    """Read the shard identifier from the process environment."""

    environ = os.environ if environ is None else environ
    return environ.get(SHARD_ENV_VAR) or DEFAULT_SHARD


def load_settings(
    path: str | Path | None = None,
    overrides: Sequence[str] = (),
    environ: Mapping[str, str] | None = None,
) -> ReportSettings:
    """Compose settings from defaults, an optional YAML file and dotlist overrides.

    ``shard`` falls back to :data:`SHARD_ENV_VAR` when neither source sets it.
    """

    cfg = OmegaConf.structured(ReportSettings)
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(str(path)))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    settings = OmegaConf.to_object(cfg)
    if not isinstance(settings, ReportSettings):
        raise TypeError("Resolved settings must be a ReportSettings instance")
    if not settings.shard:
        settings.shard = shard_from_environment(environ)
    return settings


def merge_from_settings(settings: ReportSettings) -> MergeOutcome:
    return merge_reports(
        settings.root_dir,
        shard=settings.shard or shard_from_environment(),
        dedupe=settings.dedupe,
        allow_merge_on_all_shards=settings.allow_merge_on_all_shards,
        namespace=settings.namespace,
    )


def clean_from_settings(settings: ReportSettings) -> bool:
    return clean_reports(settings.root_dir, namespace=settings.namespace)


__all__ = [
    "DEFAULT_SHARD",
    "SHARD_ENV_VAR",
    "ReportSettings",
    "clean_from_settings",
    "load_settings",
    "merge_from_settings",
    "shard_from_environment",
]
