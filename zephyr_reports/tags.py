"""Tag extraction from per-test runner configuration overrides."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Sequence

OverrideAccessor = Callable[[Any], Any]


def _own_config(test: Any) -> Any:
    return getattr(test, "test_config", None)


def _own_config_override(test: Any) -> Any:
    return getattr(test, "test_config_override", None)


def _context_config(test: Any) -> Any:
    context = getattr(test, "ctx", None)
    current = getattr(context, "test", None)
    return getattr(current, "test_config", None)


# Lookup order for a test's override metadata; the first non-empty mapping wins.
OVERRIDE_ACCESSORS: tuple[tuple[str, OverrideAccessor], ...] = (
    ("test.test_config", _own_config),
    ("test.test_config_override", _own_config_override),
    ("test.ctx.test.test_config", _context_config),
)


def resolve_overrides(test: Any) -> dict[str, Any]:
    """Return the override mapping attached to ``test`` or an empty dict."""

    for _, accessor in OVERRIDE_ACCESSORS:
        candidate = accessor(test)
        if isinstance(candidate, Mapping) and candidate:
            return dict(candidate)
    return {}


def _tag_values(candidate: Any) -> Iterable[Any]:
    if isinstance(candidate, Sequence) and not isinstance(candidate, (str, bytes)):
        return candidate
    return ()


def extract_tags(overrides: Mapping[str, Any] | None) -> list[str]:
    """Collect unique tags from ``overrides`` in first-seen order.

    Locations are scanned in priority order: the direct ``tags`` array, the
    ``overrides.tags`` of each ``testConfigList`` entry, then
    ``unverifiedTestConfig.tags``.
    """

    if not isinstance(overrides, Mapping):
        return []

    sources: list[Any] = [overrides.get("tags")]

    entries = overrides.get("testConfigList")
    for entry in _tag_values(entries):
        if not isinstance(entry, Mapping):
            continue
        nested = entry.get("overrides")
        if isinstance(nested, Mapping):
            sources.append(nested.get("tags"))

    unverified = overrides.get("unverifiedTestConfig")
    if isinstance(unverified, Mapping):
        sources.append(unverified.get("tags"))

    tags: dict[str, None] = {}
    for source in sources:
        for value in _tag_values(source):
            tag = str(value).strip()
            if tag:
                tags.setdefault(tag, None)
    return list(tags)


__all__ = ["OVERRIDE_ACCESSORS", "extract_tags", "resolve_overrides"]
