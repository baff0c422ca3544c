"""Simple in-memory store for generated plans and their task state."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, List

from .schemas import PlanRecord, Task


class PlanNotFoundError(KeyError):
    """Raised when a session or plan does not exist."""


class TaskNotFoundError(KeyError):
    """Raised when a task id is not part of the session's current plan."""


@dataclass(frozen=True)
class GenerationAllowance:
    """Outcome of a generation limit check."""

    allowed: bool
    remaining: int
    message: str


@dataclass
class _SessionState:
    # Oldest first; the last entry is the current plan.
    plans: List[PlanRecord] = field(default_factory=list)
    generation_count: int = 0


class PlanStore:
    """Persist per-session plans so the UI can rebuild its timeline views."""

    def __init__(self) -> None:
        self._sessions: DefaultDict[str, _SessionState] = defaultdict(_SessionState)
        self._lock = threading.Lock()

    def consume_generation(self, session_id: str, max_generations: int) -> GenerationAllowance:
        """Count one generation against the session, refusing once the limit is reached."""

        with self._lock:
            state = self._sessions[session_id]
            if state.generation_count >= max_generations:
                return GenerationAllowance(allowed=False, remaining=0, message="Generation limit reached")
            state.generation_count += 1
            return GenerationAllowance(
                allowed=True,
                remaining=max_generations - state.generation_count,
                message="Generation allowed",
            )

    def save_plan(self, session_id: str, plan: PlanRecord) -> None:
        """Store *plan* as the session's current plan."""

        with self._lock:
            self._sessions[session_id].plans.append(plan.model_copy(deep=True))

    def current_plan(self, session_id: str) -> PlanRecord:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None or not state.plans:
                raise PlanNotFoundError(session_id)
            return state.plans[-1].model_copy(deep=True)

    def history(self, session_id: str) -> List[PlanRecord]:
        """Return earlier plans, most recent first, excluding the current one."""

        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                return []
            return [plan.model_copy(deep=True) for plan in reversed(state.plans[:-1])]

    def delete_plan(self, session_id: str, plan_id: str) -> None:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is not None:
                for index, plan in enumerate(state.plans):
                    if plan.id == plan_id:
                        del state.plans[index]
                        return
            raise PlanNotFoundError(plan_id)

    def set_task_completed(self, session_id: str, task_id: str, completed: bool) -> Task:
        """Mark a task of the current plan as done or not done."""

        with self._lock:
            state = self._sessions.get(session_id)
            if state is None or not state.plans:
                raise PlanNotFoundError(session_id)
            for task in state.plans[-1].tasks:
                if task.id == task_id:
                    task.completed = completed
                    return task.model_copy()
            raise TaskNotFoundError(task_id)
