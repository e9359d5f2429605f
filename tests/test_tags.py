"""Tests for tags.py — tag naming grammar."""

from datetime import datetime, timezone

import pytest

from conductor_deploy.tags import (
    Namespace,
    Tag,
    classify_slot,
    format_tag,
    group_by_component,
    newest_first,
    parse,
    parse_component_ref,
)


@pytest.mark.parametrize(
    "name",
    [
        "components/agents/greeter/staging",
        "components/prompts/welcome/v1.2.3",
        "logic/agents/classifier/production",
        "components/prompts/welcome/v1.2.3-rc1",
        "components/configs/app/feature/branch-name",
    ],
)
def test_round_trip(name):
    assert format_tag(parse(name)) == name


@pytest.mark.parametrize(
    "name",
    [
        "v1.0.0",
        "prompts/welcome/v1.0.0",
        "release/agents/greeter/v1.0.0",
        "components/agents/greeter",
        "components//greeter/staging",
    ],
)
def test_parse_rejects_non_conforming(name):
    assert parse(name) is None


def test_parse_fields():
    tag = parse("logic/agents/classifier/production", commit="abc1234")
    assert tag.namespace == Namespace.LOGIC
    assert tag.component_type == "agents"
    assert tag.component_name == "classifier"
    assert tag.slot == "production"
    assert tag.commit == "abc1234"
    assert not tag.is_version
    assert tag.component == "agents/classifier"


def test_slot_with_slashes_kept_whole():
    tag = parse("components/configs/app/feature/x")
    assert tag.component_name == "app"
    assert tag.slot == "feature/x"


@pytest.mark.parametrize(
    "slot,expected",
    [
        ("v1.2.3", True),
        ("v1.2", False),
        ("production", False),
        ("v1.2.3-rc1", True),
        ("1.2.3", False),
        ("version-1.2.3", False),
        ("v10.20.30", True),
    ],
)
def test_classify_slot(slot, expected):
    assert classify_slot(slot) is expected


def test_with_slot_drops_commit_and_date():
    tag = parse("components/agents/greeter/v1.0.0", commit="abc", date=datetime.now(timezone.utc))
    env = tag.with_slot("staging")
    assert env.name == "components/agents/greeter/staging"
    assert env.commit == ""
    assert env.date is None


def _tag(slot, minute=None, name="greeter"):
    date = datetime(2024, 1, 1, 0, minute, tzinfo=timezone.utc) if minute is not None else None
    return Tag(Namespace.COMPONENT, "agents", name, slot, date=date)


def test_newest_first_by_date():
    tags = [_tag("v1.0.0", 1), _tag("v1.2.0", 3), _tag("v1.1.0", 2)]
    assert [t.slot for t in newest_first(tags)] == ["v1.2.0", "v1.1.0", "v1.0.0"]


def test_newest_first_tie_broken_by_version():
    tags = [_tag("v1.9.0", 5), _tag("v1.10.0", 5), _tag("v1.2.0", 5)]
    assert [t.slot for t in newest_first(tags)] == ["v1.10.0", "v1.9.0", "v1.2.0"]


def test_newest_first_undated_last():
    tags = [_tag("v9.0.0"), _tag("v1.0.0", 1)]
    assert [t.slot for t in newest_first(tags)] == ["v1.0.0", "v9.0.0"]


def test_group_by_component_preserves_order():
    tags = [_tag("v2.0.0", 2), _tag("v1.0.0", 1, name="other"), _tag("v1.0.0", 1)]
    groups = group_by_component(tags)
    assert list(groups) == ["agents/greeter", "agents/other"]
    assert [t.slot for t in groups["agents/greeter"]] == ["v2.0.0", "v1.0.0"]


def test_parse_component_ref():
    assert parse_component_ref("agents/greeter") == (None, "agents", "greeter")
    assert parse_component_ref("logic/agents/greeter") == (Namespace.LOGIC, "agents", "greeter")
    expected = (Namespace.COMPONENT, "prompts", "welcome")
    assert parse_component_ref("components/prompts/welcome") == expected


@pytest.mark.parametrize("ref", ["greeter", "a/b/c", "agents/", "a/b/c/d"])
def test_parse_component_ref_invalid(ref):
    with pytest.raises(ValueError):
        parse_component_ref(ref)
