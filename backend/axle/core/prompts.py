"""Prompt Templates — system instructions and user messages per task kind.

Invariants:
    - PURE: string building only
    - Every TaskKind resolves to a system prompt (unknown kinds use the generic one)
    - User messages embed title, description and target id verbatim

Design Decisions:
    - Plain str templates: the reasoning service takes a (system, user) pair, nothing more
"""

import json

from axle.core.domain_types import TaskKind

ANALYSIS_SYSTEM = (
    "You are an Etsy shop optimization agent. Output ONLY valid JSON, no markdown."
)

_ANALYSIS_TEMPLATE = """You are Axle's autonomous analysis agent. Analyze this shop data and provide 3-5 specific, actionable recommendations. Be concise.

Shop snapshot: {snapshot}
Recent listings ({listing_count}): {listings}
Monthly spend entries: {spend_entries}

Output a JSON array of recommendations: [{{"action": "...", "kind": "seo_optimize|listing_refresh|pinterest_pin|pinterest_strategy|ad_launch", "priority": 1-10, "estimated_cost": 0.00, "target_id": "optional", "reason": "..."}}]"""

_SYSTEM_PROMPTS: dict[TaskKind, str] = {
    TaskKind.SEO_OPTIMIZE: (
        "You are an Etsy SEO expert. Provide optimized title, tags (13 max), "
        "and first paragraph of description. Output as JSON: "
        "{title, tags: [], description}"
    ),
    TaskKind.LISTING_REFRESH: (
        "You are an Etsy listing optimization agent. Suggest specific changes "
        "to refresh a stale listing. Output as JSON: "
        "{changes: [{field, before, after, reason}]}"
    ),
    TaskKind.PINTEREST_PIN: (
        "You are a Pinterest marketing expert. Create an engaging pin for this "
        "Etsy listing. Output as JSON: {pinTitle, pinDescription, "
        "boardSuggestion, hashtags: [], bestTimeToPost}"
    ),
    TaskKind.PINTEREST_STRATEGY: (
        "You are a Pinterest marketing strategist for Etsy sellers. Create a "
        "pinning strategy. Output as JSON: {boards: [{name, description, "
        "pinFrequency}], contentCalendar: [{day, pinType, topic}], tips: []}"
    ),
}

GENERIC_SYSTEM = (
    "You are Axle, an autonomous Etsy shop operator. "
    "Complete this task and report results."
)


def build_analysis_message(
    snapshot: dict | None, listings: list[dict], spend_entries: int,
) -> str:
    return _ANALYSIS_TEMPLATE.format(
        snapshot=json.dumps(snapshot if snapshot is not None else "No data yet", default=str),
        listing_count=len(listings),
        listings=json.dumps(listings[:10], default=str),
        spend_entries=spend_entries,
    )


def system_prompt_for(kind: TaskKind) -> str:
    return _SYSTEM_PROMPTS.get(kind, GENERIC_SYSTEM)


def build_task_message(
    kind: TaskKind, title: str, description: str, target_id: str | None,
) -> str:
    """User message for a single-call kind."""
    description = description or ""
    if kind == TaskKind.SEO_OPTIMIZE:
        return (
            "Optimize this listing for Etsy search:\n"
            f"Title: {title}\nDescription: {description}\n"
            f"Target: {target_id or 'general'}"
        )
    if kind == TaskKind.LISTING_REFRESH:
        return (
            "This listing needs refreshing:\n"
            f"Title: {title}\nDetails: {description}\n"
            f"Target ID: {target_id or 'unknown'}"
        )
    if kind == TaskKind.PINTEREST_PIN:
        return (
            "Create a Pinterest pin for this Etsy listing:\n"
            f"Title: {title}\nDetails: {description}\n"
            f"Target ID: {target_id or 'unknown'}"
        )
    if kind == TaskKind.PINTEREST_STRATEGY:
        return (
            "Create a Pinterest strategy for this shop:\n"
            f"Shop focus: {title}\nDetails: {description}\n"
            f"Target ID: {target_id or 'none'}"
        )
    message = f"Task: {title}\nDetails: {description}"
    if target_id:
        message += f"\nTarget ID: {target_id}"
    return message
