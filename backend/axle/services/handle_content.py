"""Content Handlers — single-call kinds whose result is the reasoning text.

Invariants:
    - Exactly one reasoning call per task
    - Result key is chosen by kind (core/task_results.RESULT_KEYS); unmapped kinds
      report under "output"
    - Text is stored verbatim, never parsed
"""

from axle.core.domain_types import TaskKind
from axle.core.prompts import build_task_message, system_prompt_for
from axle.core.repository_protocols import ReasoningClient, TaskLike
from axle.core.task_results import TaskResult, text_result_for


class ContentHandlers:
    """seo_optimize, listing_refresh, pinterest_pin, pinterest_strategy, generic."""

    def __init__(self, reasoning: ReasoningClient):
        self._reasoning = reasoning

    async def seo_optimize(self, task: TaskLike) -> TaskResult:
        return await self._complete(TaskKind.SEO_OPTIMIZE, task)

    async def listing_refresh(self, task: TaskLike) -> TaskResult:
        return await self._complete(TaskKind.LISTING_REFRESH, task)

    async def pinterest_pin(self, task: TaskLike) -> TaskResult:
        return await self._complete(TaskKind.PINTEREST_PIN, task)

    async def pinterest_strategy(self, task: TaskLike) -> TaskResult:
        return await self._complete(TaskKind.PINTEREST_STRATEGY, task)

    async def generic(self, task: TaskLike) -> TaskResult:
        """Fallback for custom, ad_launch and anything without its own template."""
        return await self._complete(TaskKind.CUSTOM, task)

    async def _complete(self, kind: TaskKind, task: TaskLike) -> TaskResult:
        text = await self._reasoning.complete(
            system_prompt_for(kind),
            build_task_message(kind, task.title, task.description, task.target_id),
        )
        return text_result_for(kind, text)
