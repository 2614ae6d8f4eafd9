"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping lets tests pass plain fakes
"""

from typing import Protocol
from uuid import UUID


class TaskLike(Protocol):
    """Structural contract for AgentTask objects passed to handlers."""
    id: UUID
    kind: str
    title: str
    description: str
    priority: int
    estimated_cost: float
    target_id: str | None
    status: str


class ReasoningClient(Protocol):
    """Contract for the external text-completion capability."""
    async def complete(self, system_prompt: str, user_message: str) -> str: ...
