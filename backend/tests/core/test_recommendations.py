"""Recommendation Parsing — tests for analysis output normalization.

Tests cover:
    - plain JSON array with camelCase keys
    - fenced / prefixed output falls back to the first [...] block
    - at most MAX_RECOMMENDATIONS consumed, non-objects dropped
    - normalization: unknown kind -> custom, priority clamped (infinity too),
      bad or infinite cost -> 0, blank title -> default, long target_id cut
    - no array / not an array -> ParseError
"""

import json

import pytest

from axle.core.domain_types import TaskKind
from axle.core.errors import ParseError
from axle.core.recommendations import (
    MAX_RECOMMENDATIONS, TARGET_ID_CHARS, parse_recommendations, to_recommendation,
)


def test_parses_camel_case_recommendation():
    recs = parse_recommendations(
        '[{"action":"Refresh title","kind":"seo_optimize","priority":3,"estimatedCost":5}]',
    )
    assert len(recs) == 1
    rec = recs[0]
    assert rec.title == "Refresh title"
    assert rec.kind == TaskKind.SEO_OPTIMIZE
    assert rec.priority == 3
    assert rec.estimated_cost == 5.0
    assert rec.target_id is None


def test_parses_snake_case_and_target_id():
    recs = parse_recommendations(json.dumps([{
        "action": "Pin it", "kind": "pinterest_pin", "priority": 2,
        "estimated_cost": 1.5, "target_id": 123, "reason": "Trending",
    }]))
    assert recs[0].target_id == "123"
    assert recs[0].reason == "Trending"


def test_extracts_array_from_fenced_output():
    text = 'Here you go:\n```json\n[{"action": "A", "kind": "listing_refresh"}]\n```'
    recs = parse_recommendations(text)
    assert recs[0].kind == TaskKind.LISTING_REFRESH


def test_consumes_at_most_five():
    items = [{"action": f"A{i}", "kind": "custom"} for i in range(8)]
    recs = parse_recommendations(json.dumps(items))
    assert len(recs) == MAX_RECOMMENDATIONS
    assert [r.title for r in recs] == ["A0", "A1", "A2", "A3", "A4"]


def test_non_object_items_dropped():
    recs = parse_recommendations('[1, "x", {"action": "Keep"}]')
    assert [r.title for r in recs] == ["Keep"]


def test_unknown_kind_becomes_custom():
    assert to_recommendation({"kind": "launch_rocket"}).kind == TaskKind.CUSTOM


def test_type_key_accepted_for_kind():
    assert to_recommendation({"type": "ad_launch"}).kind == TaskKind.AD_LAUNCH


@pytest.mark.parametrize("raw, expected", [
    (0, 5), (-3, 1), (42, 10), ("7", 7), ("high", 5), (None, 5),
    (float("inf"), 5), ("Infinity", 5), ("NaN", 5),
])
def test_priority_clamped(raw, expected):
    assert to_recommendation({"priority": raw}).priority == expected


@pytest.mark.parametrize("raw", [
    -5, "free", None, float("nan"), float("inf"), "Infinity",
])
def test_invalid_cost_becomes_zero(raw):
    assert to_recommendation({"estimated_cost": raw}).estimated_cost == 0.0


def test_missing_action_gets_default_title():
    assert to_recommendation({}).title == "Recommendation"


def test_whitespace_action_gets_default_title():
    assert to_recommendation({"action": "   "}).title == "Recommendation"


def test_action_is_stripped():
    assert to_recommendation({"action": "  Refresh tags \n"}).title == "Refresh tags"


def test_long_target_id_is_cut_to_column_width():
    url = "https://www.etsy.com/listing/" + "x" * 300
    rec = to_recommendation({"target_id": url})
    assert rec.target_id == url[:TARGET_ID_CHARS]


def test_blank_target_id_becomes_none():
    assert to_recommendation({"targetId": "  "}).target_id is None


def test_overflowing_priority_in_json_output_is_clamped_not_raised():
    text = '[{"action": "x", "kind": "seo_optimize", "priority": 1e400, "estimatedCost": 1}]'
    [rec] = parse_recommendations(text)
    assert rec.priority == 5
    assert rec.estimated_cost == 1.0


def test_prose_without_array_raises_parse_error():
    with pytest.raises(ParseError):
        parse_recommendations("I recommend improving your photos.")


def test_object_instead_of_array_raises_parse_error():
    with pytest.raises(ParseError):
        parse_recommendations('{"action": "x"}')


def test_malformed_array_raises_parse_error():
    with pytest.raises(ParseError):
        parse_recommendations("[{'action': 'single quotes'}]")
