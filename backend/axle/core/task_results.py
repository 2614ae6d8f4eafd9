"""Task Results — tagged result variants stored in AgentTask.result_payload.

Invariants:
    - Every handler returns exactly one TaskResult
    - to_payload() produces a JSON-safe dict; the variant is recoverable from its keys
    - RawResult is the degradation target when reasoning output cannot be interpreted
    - reasoning_calls counts calls made to produce the result (drives spend accounting)

Design Decisions:
    - Frozen dataclasses over pydantic: pure core values with no validation needs
"""

from dataclasses import dataclass, field

from axle.core.domain_types import TaskKind


@dataclass(frozen=True)
class SkippedResult:
    """Handler decided there was nothing worth spending a call on."""
    reason: str
    reasoning_calls: int = 0

    def to_payload(self) -> dict:
        return {"skipped": True, "reason": self.reason}


@dataclass(frozen=True)
class AnalysisResult:
    """Analysis produced recommendations that were fanned out as new tasks."""
    recommendations: int
    created_task_ids: list[str] = field(default_factory=list)
    response: str = ""
    reasoning_calls: int = 1

    def to_payload(self) -> dict:
        return {
            "recommendations": self.recommendations,
            "created_task_ids": list(self.created_task_ids),
            "response": self.response,
        }


@dataclass(frozen=True)
class RawResult:
    """Reasoning output kept verbatim because it could not be interpreted."""
    raw: str
    reasoning_calls: int = 1

    def to_payload(self) -> dict:
        return {"raw": self.raw}


@dataclass(frozen=True)
class TextResult:
    """Kind-specific free-text result stored under a per-kind key."""
    key: str
    text: str
    reasoning_calls: int = 1

    def to_payload(self) -> dict:
        return {self.key: self.text}


TaskResult = SkippedResult | AnalysisResult | RawResult | TextResult


# Result key per text-producing kind; anything else reports under "output".
RESULT_KEYS: dict[TaskKind, str] = {
    TaskKind.SEO_OPTIMIZE: "seo_suggestions",
    TaskKind.LISTING_REFRESH: "refresh_plan",
    TaskKind.PINTEREST_PIN: "pin_plan",
    TaskKind.PINTEREST_STRATEGY: "strategy",
}
GENERIC_RESULT_KEY = "output"


def text_result_for(kind: TaskKind, text: str) -> TextResult:
    return TextResult(RESULT_KEYS.get(kind, GENERIC_RESULT_KEY), text)
