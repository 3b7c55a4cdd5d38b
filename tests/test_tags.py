from __future__ import annotations

from types import SimpleNamespace

from zephyr_reports.tags import extract_tags, resolve_overrides


def test_direct_tags_precede_nested_override_tags() -> None:
    overrides = {
        "testConfigList": [
            {"overrides": {"tags": ["regression", "smoke"]}},
            {"overrides": {"tags": ["p2"]}},
        ],
        "tags": ["smoke", "p1"],
    }

    assert extract_tags(overrides) == ["smoke", "p1", "regression", "p2"]


def test_tags_are_trimmed_stringified_and_deduplicated() -> None:
    overrides = {
        "tags": [" smoke ", "", "   ", 7],
        "unverifiedTestConfig": {"tags": ["smoke", "7", "Smoke"]},
    }

    assert extract_tags(overrides) == ["smoke", "7", "Smoke"]


def test_malformed_locations_are_ignored() -> None:
    overrides = {
        "tags": "smoke",
        "testConfigList": [None, {"overrides": None}, {"overrides": {"tags": ["ok"]}}],
        "unverifiedTestConfig": ["nope"],
    }

    assert extract_tags(overrides) == ["ok"]
    assert extract_tags({}) == []
    assert extract_tags(None) == []


def test_resolve_overrides_follows_accessor_precedence() -> None:
    context = SimpleNamespace(test=SimpleNamespace(test_config={"tags": ["ctx"]}))

    own = SimpleNamespace(test_config={"tags": ["own"]}, test_config_override={"tags": ["override"]}, ctx=context)
    assert resolve_overrides(own) == {"tags": ["own"]}

    empty_own = SimpleNamespace(test_config={}, test_config_override={"tags": ["override"]}, ctx=context)
    assert resolve_overrides(empty_own) == {"tags": ["override"]}

    context_only = SimpleNamespace(ctx=context)
    assert resolve_overrides(context_only) == {"tags": ["ctx"]}

    assert resolve_overrides(SimpleNamespace(test_config="not a mapping")) == {}
