"""Recommendation Parsing — turns analysis output into normalized task proposals.

Invariants:
    - PURE: no IO; parse_recommendations raises only ParseError
    - At most MAX_RECOMMENDATIONS items are consumed, in output order
    - Non-object items are dropped; every surviving field is normalized
      (kind -> TaskKind, priority clamped 1–10, finite cost >= 0, title stripped,
      target_id cut to TARGET_ID_CHARS)

Design Decisions:
    - Two fallback levels (direct JSON, first [...] block): the model often wraps
      output in ```json fences or a preamble
    - Accepts both snake_case and camelCase keys — prompt asks for snake_case,
      older prompts and models answer in camelCase
"""

import json
import math
import re
from dataclasses import dataclass

from axle.core.domain_types import (
    DEFAULT_PRIORITY, MAX_PRIORITY, MIN_PRIORITY, TaskKind,
)
from axle.core.errors import ParseError

MAX_RECOMMENDATIONS = 5
DEFAULT_TITLE = "Recommendation"
TARGET_ID_CHARS = 120  # agent_tasks.target_id column width


@dataclass(frozen=True)
class Recommendation:
    """A task proposed by the analysis handler."""
    title: str
    kind: TaskKind
    priority: int
    estimated_cost: float
    target_id: str | None
    reason: str


def _pick(item: dict, *keys: str):
    for key in keys:
        if item.get(key) not in (None, ""):
            return item[key]
    return None


def _as_priority(value: object) -> int:
    try:
        priority = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PRIORITY
    if priority == 0:
        return DEFAULT_PRIORITY
    return max(MIN_PRIORITY, min(MAX_PRIORITY, priority))


def _as_cost(value: object) -> float:
    try:
        cost = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(cost) or cost < 0:
        return 0.0
    return cost


def _load_array(text: str) -> list:
    text = (text or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\[[\s\S]*\]", text)
        if not match:
            raise ParseError("No JSON array found in analysis output")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ParseError(f"Malformed JSON array in analysis output: {e}")
    if not isinstance(data, list):
        raise ParseError("Analysis output is not a JSON array")
    return data


def _as_target(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip()[:TARGET_ID_CHARS] or None


def to_recommendation(item: dict) -> Recommendation:
    title = str(_pick(item, "action", "title") or "").strip()
    return Recommendation(
        title=title or DEFAULT_TITLE,
        kind=TaskKind.parse(_pick(item, "kind", "type") or TaskKind.CUSTOM.value),
        priority=_as_priority(item.get("priority")),
        estimated_cost=_as_cost(_pick(item, "estimated_cost", "estimatedCost")),
        target_id=_as_target(_pick(item, "target_id", "targetId")),
        reason=str(item.get("reason") or ""),
    )


def parse_recommendations(text: str) -> list[Recommendation]:
    """Parse up to MAX_RECOMMENDATIONS proposals. Raises ParseError."""
    items = _load_array(text)[:MAX_RECOMMENDATIONS]
    return [to_recommendation(item) for item in items if isinstance(item, dict)]
